import io
import re

import pytest

from featherweb.errors import HeaderError
from featherweb.response import Response


def _text(response):
    return response.to_raw().decode("utf-8", errors="replace")


def test_response_creation():
    response = Response()
    response.set_status(200)
    response.send_text("Hello World")
    raw = _text(response)
    lower = raw.lower()
    assert "HTTP/1.1 200 OK" in raw
    assert "content-type: text/plain" in lower
    assert "content-length: 11" in lower
    assert "Hello World" in raw


def test_response_with_custom_headers():
    response = Response()
    response.set_status(201)
    response.add_header("X-Custom", "test")
    response.send_text("Created")
    raw = _text(response)
    assert "HTTP/1.1 201 Created" in raw
    assert "x-custom: test" in raw.lower()


def test_json_response():
    response = Response()
    response.set_status(200)
    response.send_json({"message": "test"})
    raw = _text(response)
    assert "content-type: application/json" in raw.lower()
    assert '{"message":"test"}' in raw


def test_error_response():
    response = Response()
    response.set_status(404)
    response.send_text("Not Found")
    assert "HTTP/1.1 404 Not Found" in _text(response)


def test_response_headers_case_insensitivity():
    response = Response()
    response.add_header("Content-Type", "text/plain")
    response.add_header("CONTENT-LENGTH", "5")
    lower = _text(response).lower()
    assert "content-type: text/plain" in lower
    assert "content-length: 5" in lower


def test_set_status_returns_self_and_clamps():
    response = Response()
    assert response.set_status(404) is response
    assert response.status == 404
    assert response.set_status(1000).status == 500
    assert response.set_status(99).status == 500


def test_unknown_reason():
    response = Response().set_status(299)
    assert _text(response).startswith("HTTP/1.1 299 Unknown\r\n")


def test_date_header_added_once():
    raw = _text(Response())
    assert re.search(r"\r\ndate: [A-Z][a-z]{2}, \d{1,2} [A-Z][a-z]{2} \d{4} \d{2}:\d{2}:\d{2} \+0000\r\n", raw)
    response = Response()
    response.add_header("Date", "fixed")
    raw = _text(response)
    assert raw.count("date:") == 1
    assert "date: fixed\r\n" in raw


def test_empty_body_has_no_content_length():
    raw = Response().to_raw()
    assert b"content-length" not in raw
    assert raw.endswith(b"\r\n\r\n")


def test_content_length_added_for_raw_body():
    response = Response(body=b"abc")
    raw = response.to_raw()
    assert b"content-length: 3\r\n" in raw
    assert raw.endswith(b"\r\n\r\nabc")


def test_send_text_counts_bytes():
    response = Response()
    response.send_text("héllo")
    assert response.body == "héllo".encode("utf-8")
    assert response.headers.get("content-length") == str(len("héllo".encode("utf-8")))
    assert response.headers.get("content-type") == "text/plain;charset=utf-8"


def test_send_html():
    response = Response()
    response.send_html("<h1>Hi</h1>")
    assert response.headers.get("content-type") == "text/html"
    assert response.body == b"<h1>Hi</h1>"


def test_send_bytes_leaves_content_type():
    response = Response()
    response.send_bytes(b"\x00\x01\x02")
    assert response.body == b"\x00\x01\x02"
    assert response.headers.get("content-type") is None
    assert response.headers.get("content-length") == "3"


def test_send_json_failure_gives_500():
    response = Response()
    response.send_json(object())
    assert response.status == 500
    assert response.body == b"Internal Server Error"
    assert response.headers.get("content-type") == "text/plain"


def test_add_header_invalid_value():
    response = Response()
    with pytest.raises(HeaderError):
        response.add_header("X-Test", "bad\r\nvalue")
    assert "x-test" not in response.headers


def test_send_file(tmp_path):
    path = tmp_path / "data.bin"
    path.write_bytes(b"file contents")
    response = Response()
    with path.open("rb") as handle:
        response.send_file(handle)
    assert response.status == 200
    assert response.body == b"file contents"
    assert response.headers.get("content-length") == str(len(b"file contents"))


def test_send_file_too_large(tmp_path):
    path = tmp_path / "big.bin"
    with path.open("wb") as handle:
        handle.truncate(Response.MAX_FILE_SIZE_BYTES + 1)
    response = Response()
    with path.open("rb") as handle:
        response.send_file(handle)
    assert response.status == 413
    assert response.body == b"File size exceeds 4MB limit. Use chunked encoding for larger files."


def test_send_file_without_descriptor():
    response = Response()
    response.send_file(io.BytesIO(b"data"))
    assert response.status == 500
    assert response.body == b"Failed to read file metadata."