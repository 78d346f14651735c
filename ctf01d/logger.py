"""WSGI middleware that logs each request with its duration."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable, Iterator
from urllib.parse import quote

log = logging.getLogger(__name__)

_UNITS = ((1.0, "s"), (1e-3, "ms"), (1e-6, "µs"))


def _format_duration(seconds: float) -> str:
    for scale, unit in _UNITS:
        if seconds >= scale:
            value = f"{seconds / scale:.3f}".rstrip("0").rstrip(".")
            return value + unit
    return f"{round(seconds * 1e9)}ns"


def _request_uri(environ) -> str:
    uri = environ.get("REQUEST_URI") or environ.get("RAW_URI")
    if uri:
        return uri
    path = quote(environ.get("SCRIPT_NAME", "") + environ.get("PATH_INFO", "")) or "/"
    query = environ.get("QUERY_STRING", "")
    return f"{path}?{query}" if query else path


class _LoggedBody:
    def __init__(self, body: Iterable[bytes], on_close: Callable[[], None]) -> None:
        self._body = body
        self._on_close = on_close
        self._closed = False

    def __iter__(self) -> Iterator[bytes]:
        return iter(self._body)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            close = getattr(self._body, "close", None)
            if close is not None:
                close()
        finally:
            self._on_close()


class RequestLogger:
    """Wrap *app* and log method, URI, *name* and elapsed time per request."""

    def __init__(self, app, name: str) -> None:
        self.app = app
        self.name = name

    def __call__(self, environ, start_response):
        start = time.perf_counter()
        method = environ.get("REQUEST_METHOD", "GET")
        uri = _request_uri(environ)

        def emit() -> None:
            elapsed = _format_duration(time.perf_counter() - start)
            log.info("%s %s %s %s", method, uri, self.name, elapsed)

        body = self.app(environ, start_response)
        return _LoggedBody(body, emit)