import pytest

from featherweb.errors import InvalidHeaderName, InvalidHeaderValue
from featherweb.headers import HeaderMap


def test_lookup_is_case_insensitive():
    headers = HeaderMap()
    headers.insert("X-Custom", "test")
    assert headers.get("x-custom") == "test"
    assert headers.get("X-CUSTOM") == "test"
    assert headers["x-Custom"] == "test"
    assert "X-CUSTOM" in headers


def test_names_are_stored_lower_case():
    headers = HeaderMap()
    headers.insert("Content-Type", "text/plain")
    assert headers.items() == [("content-type", "text/plain")]


def test_insert_replaces_existing_value():
    headers = HeaderMap()
    headers.insert("Accept", "a")
    headers.insert("ACCEPT", "b")
    assert len(headers) == 1
    assert headers.get("accept") == "b"


def test_get_returns_default_when_missing():
    headers = HeaderMap()
    assert headers.get("missing") is None
    assert headers.get("missing", "fallback") == "fallback"


def test_remove_returns_value_and_deletes():
    headers = HeaderMap({"Host": "example.com"})
    assert headers.remove("HOST") == "example.com"
    assert "host" not in headers
    assert headers.remove("host") is None


def test_items_keep_insertion_order():
    headers = HeaderMap([("b", "2"), ("a", "1"), ("c", "3")])
    assert [name for name, _ in headers.items()] == ["b", "a", "c"]
    assert list(headers) == ["b", "a", "c"]


def test_bytes_names_and_values_are_accepted():
    headers = HeaderMap()
    headers.insert(b"User-Agent", b"test")
    assert headers.get("user-agent") == "test"


@pytest.mark.parametrize("name", ["", "with space", "colon:", "tab\tname", "(paren)"])
def test_invalid_names_rejected(name):
    headers = HeaderMap()
    with pytest.raises(InvalidHeaderName):
        headers.insert(name, "ok")
    assert len(headers) == 0


@pytest.mark.parametrize("value", ["a\r\nb", "nul\x00", "del\x7f"])
def test_invalid_values_rejected(value):
    headers = HeaderMap()
    with pytest.raises(InvalidHeaderValue):
        headers.insert("x-test", value)
    assert "x-test" not in headers


def test_tab_allowed_in_value():
    headers = HeaderMap()
    headers.insert("x-test", "a\tb")
    assert headers.get("x-test") == "a\tb"


def test_item_access_and_deletion():
    headers = HeaderMap()
    headers["X-One"] = "1"
    del headers["x-one"]
    with pytest.raises(KeyError):
        headers["x-one"]
    with pytest.raises(KeyError):
        del headers["x-one"]
    assert len(headers) == 0


def test_equality_ignores_name_case():
    assert HeaderMap({"A-B": "v"}) == HeaderMap({"a-b": "v"})
    assert not HeaderMap({"a": "1"}) == HeaderMap({"a": "2"})