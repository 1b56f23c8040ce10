# featherweb

A small, synchronous web framework built around middleware. Routes are
registered Express-style (`app.get`, `app.post`, ...), every handler is a
middleware that receives the request, the response and the application
context, and everything runs on the standard library alone.

## A first application

```python
from featherweb.app import App


def hello(request, response, ctx):
    response.send_text("Hello, world!")


app = App()
app.get("/", hello)
app.listen("127.0.0.1:5050")
```

`listen` prints the address, then blocks while serving requests. The address
may be a `"host:port"` string or a `(host, port)` tuple.

`App()` attaches a log handler to the `featherweb` logger at INFO level; pass
`App(install_logger=False)` to manage logging yourself. A prepared
`featherweb.server.ServerConfig` can be given as `App(config)`.

## Routing

Routes are added per HTTP method with `get`, `post`, `put`, `delete`,
`patch`, `head` and `options`, or with `route(method, path, middleware)`.
Path segments that start with a colon are captured as parameters:

```python
def show_user(request, response, ctx):
    response.send_text(f"Welcome User: {request.param('id')}")


app.get("/users/:id", show_user)
```

Leading and trailing slashes are ignored when matching, and the pattern and
path must have the same number of segments. The first route whose method and
path match handles the request; if none matches, the response is
`404 Not Found`. The matching function is available on its own as
`featherweb.app_service.match_route(pattern, path)`.

## Requests

`featherweb.request.Request` carries `method`, `uri`, `version`, `headers`
(a case-insensitive `featherweb.headers.HeaderMap`) and `body` (bytes), plus:

- `path()` – the percent-decoded request path
- `uri_path` / `query_string` – the raw path and query string
- `query()` – the query string as a dictionary (later duplicates win)
- `json()` – the body parsed as JSON
- `param(key)` – a route parameter, or `None`

`Request.parse(raw)` builds a request from raw bytes and raises
`featherweb.errors.RequestParseError` on malformed input.

## Responses

`featherweb.response.Response` is filled in by the middleware:

```python
def login(request, response, ctx):
    data = request.json()
    if "username" in data:
        response.set_status(200).send_json(
            {"message": "Login successful", "username": data["username"]}
        )
    else:
        response.set_status(400).send_json({"error": "Username is required"})
```

`set_status` returns the response so calls can be chained; codes outside
100–999 become 500. The senders are `send_text`, `send_html`, `send_json`,
`send_bytes` and `send_file`; each sets the body and `content-length`, and
all but `send_bytes` and `send_file` set `content-type`. `send_json` answers
500 when the data cannot be serialized, and `send_file` answers 413 for files
over 4 MB. `add_header(key, value)` sets any header and raises
`featherweb.errors.HeaderError` for an invalid name or value. `to_raw()`
produces the HTTP/1.1 bytes, adding a `date` header (and `content-length`
when there is a body) if they are not already set.

## Middleware

Global middleware runs before route handling, in the order it was added:

```python
from featherweb.builtins import Cors, Logger, ServeStatic

app.use_middleware(Logger())
app.use_middleware(Cors("https://app.example.com"))
app.use_middleware(ServeStatic("./public"))
```

- `Logger` logs the method and path of each request.
- `Cors` sets `Access-Control-Allow-Origin` (to `*` when no origin is given).
- `ServeStatic` serves files from a directory, setting the content type with
  `guess_content_type` from the extension. It answers 403 for directories and
  for paths that resolve outside the base directory, and 404 for missing
  files.

Any callable taking `(request, response, ctx)` is a middleware, as is any
subclass of `featherweb.middleware.Middleware` that implements `handle`.
Returning `None` or `MiddlewareResult.NEXT` continues;
`MiddlewareResult.NEXT_ROUTE` stops a chain. Two or more middlewares can be
joined into one with `chain`; they run in order:

```python
from featherweb.middleware import chain


def first(request, response, ctx):
    response.set_status(201)


def second(request, response, ctx):
    response.send_text("Chained middlewares")


app.get("/chain", chain(first, second))
```

## Errors

An exception raised by a middleware is caught. Without an error handler the
client receives a 500 response (a failing global middleware also stops the
request there). A custom handler receives the exception, the request and the
response, and handling then carries on:

```python
def on_error(error, request, response):
    if isinstance(error, OSError):
        response.set_status(500).send_text("Missing data on the server")


app.set_error_handler(on_error)
```

## Application state

`app.context()` returns the `featherweb.context.AppContext` that every
middleware receives as `ctx`. `set_state(value)` stores a value under its
type (or under an explicit `key`); `get_state(key)` returns it or raises
`StateNotFoundError`; `try_get_state(key)` returns `None` instead;
`remove_state(key)` reports whether something was removed. `copy()` returns a
handle sharing the same store.

Values changed from several requests at once can be wrapped in `State`, which
guards its contents with a lock:

```python
from featherweb.context import State

app.context().set_state(State({"count": 0}))


def increment(request, response, ctx):
    counter = ctx.get_state(State)
    count = counter.with_mut_scope(lambda c: c.update(count=c["count"] + 1) or c["count"])
    response.send_text(f"Counter incremented: {count}")
```

`lock()` is a context manager yielding the value, `with_scope(func)` and
`with_mut_scope(func)` call `func` with the value under the lock, and
`get_clone()` returns a deep copy. The lock is not reentrant.

## Server

```python
app.max_body(10 * 1024 * 1024)  # largest accepted request, default 8 KB
app.read_timeout(60)            # seconds, default 30
```

`workers(count)` and `stack_size(size)` are recorded in the `ServerConfig`,
but the server runs each connection on its own thread regardless of them.

`featherweb.server.Server` can also be used directly with any
`featherweb.service.Service`; `app.build_service()` returns the one an
application uses. `Server.run(address)` blocks until `shutdown()` is called.

HTTP/1.1 connections are kept alive unless the client sends a `Connection`
header other than `keep-alive` or the response sets `Connection: close`;
HTTP/1.0 connections are closed after one response. Malformed requests
receive `400 Bad Request`, requests of `max_body` bytes or more
`413 Payload Too Large`, silent clients `408 Request Timeout`, and a service
that raises `500 Internal Server Error`.

## What it does not do

- Each request is read with a single receive of up to `max_body` bytes; a
  request that arrives in several pieces is not reassembled.
- There is no TLS, no chunked transfer encoding and no token-based
  authentication.
- There is no command-line program; applications are started from Python
  with `App.listen`.