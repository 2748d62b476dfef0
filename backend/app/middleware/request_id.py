"""
Middleware that gives every request an id.

The id comes from a well-formed ``X-Request-ID`` header or is generated,
is stored on ``request.state.request_id``, bound to the logging context
and echoed back in the response.
"""

import re
import uuid

from core.logging import bind_context

_VALID_ID = re.compile(r"^[A-Za-z0-9._-]{1,64}$")


def _request_id_from(scope) -> str:
    for name, value in scope.get("headers", []):
        if name == b"x-request-id":
            candidate = value.decode("latin-1")
            if _VALID_ID.match(candidate):
                return candidate
            break
    return str(uuid.uuid4())


class RequestIDMiddleware:
    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request_id = _request_id_from(scope)
        scope.setdefault("state", {})["request_id"] = request_id
        bind_context(request_id=request_id)

        async def send_wrapper(message):
            if message["type"] == "http.response.start":
                message.setdefault("headers", []).append((b"x-request-id", request_id.encode()))
            await send(message)

        await self.app(scope, receive, send_wrapper)
