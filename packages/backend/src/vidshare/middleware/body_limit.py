"""Request body size limit.

Learn: Two checks, because a client does not have to declare a length:
1. A Content-Length above the limit is rejected with 413 before the
   app runs at all.
2. Chunked bodies (no Content-Length) are counted as they are received;
   once the running total passes the limit the read raises a 413
   HTTPException, which the envelope handler renders.

This is a plain ASGI middleware rather than BaseHTTPMiddleware so it can
wrap `receive`. Every endpoint here takes small JSON payloads, so the
default limit is 16 KiB.
"""

from fastapi import HTTPException
from starlette.datastructures import Headers
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from vidshare.errors import error_response


class BodySizeLimitMiddleware:
    """Reject requests whose body exceeds max_bytes."""

    def __init__(self, app: ASGIApp, max_bytes: int = 16 * 1024):
        self.app = app
        self.max_bytes = max_bytes

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        length = Headers(scope=scope).get("content-length")
        if length is not None:
            try:
                declared = int(length)
            except ValueError:
                response = error_response(400, "Invalid Content-Length header")
                await response(scope, receive, send)
                return
            if declared > self.max_bytes:
                response = error_response(413, self._too_large())
                await response(scope, receive, send)
                return

        received = 0

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_bytes:
                    raise HTTPException(status_code=413, detail=self._too_large())
            return message

        await self.app(scope, limited_receive, send)

    def _too_large(self) -> str:
        return f"Request body exceeds {self.max_bytes} bytes"
