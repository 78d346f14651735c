"""Session-cookie authentication middleware."""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol, runtime_checkable

from werkzeug.http import parse_cookie
from werkzeug.wrappers import Response

log = logging.getLogger(__name__)

SCOPES_KEY = "sessionAuth.Scopes"
USER_ID_KEY = "ctf01d.user_id"
SESSION_COOKIE = "session_id"


class InvalidSession(Exception):
    """Raised when a session id is unknown or expired."""


@runtime_checkable
class SessionStore(Protocol):
    """Something that resolves a session id to the id of its user."""

    def user_for_session(self, session_id: str) -> Any:
        """Return the user id for *session_id*, or raise InvalidSession."""


def _unauthorized(message: str) -> Response:
    return Response(
        json.dumps({"error": message}),
        status=401,
        content_type="application/json; charset=utf-8",
    )


class AuthenticationMiddleware:
    """Require a valid session cookie on routes that declare session scopes.

    A route opts in by putting ``SCOPES_KEY`` into the WSGI environ; the
    resolved user id is stored under ``USER_ID_KEY``.
    """

    def __init__(self, app, sessions: SessionStore) -> None:
        self.app = app
        self.sessions = sessions

    def __call__(self, environ, start_response):
        if SCOPES_KEY not in environ:
            return self.app(environ, start_response)

        cookies = parse_cookie(environ.get("HTTP_COOKIE", ""))
        session_id = cookies.get(SESSION_COOKIE, "")
        if not session_id:
            return _unauthorized("Session cookie required")(environ, start_response)

        try:
            user_id = self.sessions.user_for_session(session_id)
        except Exception as exc:  # any lookup failure means the session is unusable
            log.warning("session lookup failed: %s", exc)
            return _unauthorized("Invalid session")(environ, start_response)

        environ[USER_ID_KEY] = user_id
        return self.app(environ, start_response)