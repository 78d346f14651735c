"""WSGI application serving a single-page front end from a directory."""

from __future__ import annotations

import os
import posixpath
import stat
from pathlib import Path

from werkzeug.utils import send_file
from werkzeug.wrappers import Request, Response

_TEXT = "text/plain; charset=utf-8"


def _text(status: int, body: str) -> Response:
    return Response(body, status=status, content_type=_TEXT)


class HtmlRouter:
    """Serve static files from *root*, falling back to ``index.html``."""

    def __init__(self, root: str | os.PathLike[str] = "./html/") -> None:
        self.root = Path(root)

    def __call__(self, environ, start_response):
        response = self._respond(Request(environ))
        return response(environ, start_response)

    def _respond(self, request: Request) -> Response:
        path = request.path
        if path.startswith("/api/") or path.endswith("/api"):
            return _text(404, "API handler not found")

        clean = posixpath.normpath("/" + path.lstrip("/"))
        target = self.root.joinpath(*(part for part in clean.split("/") if part))

        try:
            missing_or_dir = stat.S_ISDIR(target.stat().st_mode)
        except FileNotFoundError:
            missing_or_dir = True
        except OSError as exc:
            return _text(500, str(exc))

        if missing_or_dir:
            if path.startswith("/assets/"):
                return _text(404, "File in assets not found")
            return self._send(self.root / "index.html", request)
        return self._send(target, request)

    @staticmethod
    def _send(path: Path, request: Request) -> Response:
        try:
            return send_file(path, request.environ)
        except (FileNotFoundError, IsADirectoryError):
            return _text(404, "404 page not found")