"""Request ID middleware.

Forwards a client-supplied request ID (or generates one), exposes it on
request.state and in the logging context, and echoes it on the response.
Client values must match a short alphanumeric pattern; anything else is
replaced so it cannot inject into log lines. Raw ASGI.
"""

import re
from typing import Callable

from agency.shared.context import reset_request_id, set_request_id
from agency.shared.utils.generators import generate_cuid

REQUEST_ID_MAX_LENGTH = 64
_VALID_REQUEST_ID = re.compile(r"^[A-Za-z0-9_-]{1,%d}$" % REQUEST_ID_MAX_LENGTH)


def _header(scope: dict, name: str) -> str | None:
    wanted = name.lower().encode()
    for key, value in scope.get("headers", []):
        if key.lower() == wanted:
            return value.decode("latin-1")
    return None


def resolve_request_id(raw: str | None) -> str:
    """Return the client's ID when well-formed, otherwise a fresh one."""
    candidate = (raw or "").strip()
    if _VALID_REQUEST_ID.match(candidate):
        return candidate
    return generate_cuid()


def RequestIDMiddleware(app: Callable, header_name: str = "X-Request-ID") -> Callable:
    """Wrap an ASGI app so every HTTP exchange carries a request ID."""

    async def asgi_app(scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await app(scope, receive, send)
            return
        request_id = resolve_request_id(_header(scope, header_name))
        scope.setdefault("state", {})["request_id"] = request_id

        async def send_with_id(message: dict) -> None:
            if message["type"] == "http.response.start":
                message["headers"] = [
                    *message.get("headers", []),
                    (header_name.encode(), request_id.encode()),
                ]
            await send(message)

        token = set_request_id(request_id)
        try:
            await app(scope, receive, send_with_id)
        finally:
            reset_request_id(token)

    return asgi_app
