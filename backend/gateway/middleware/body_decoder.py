"""Body Decoder — parses JSON request bodies into RequestContext.body before routing.

Invariants:
    - Only content types application/json and */*+json are decoded
    - Empty body decodes to None
    - Bodies over max_body_bytes raise PayloadTooLargeError (413); any body the
      JSON parser rejects (syntax, UTF-8, nesting depth, oversized integers)
      raises MalformedBodyError (400); neither is answered here
    - The consumed bytes are replayed unchanged to downstream receive() calls
"""

import json
from typing import Any

from starlette.datastructures import Headers
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from gateway.core.errors import MalformedBodyError, PayloadTooLargeError
from gateway.core.request_context import bind_request_context


def is_json_content_type(content_type: str | None) -> bool:
    if not content_type:
        return False
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type == "application/json" or media_type.endswith("+json")


def decode_json_body(raw: bytes) -> Any:
    """Decode raw bytes as JSON. Raises MalformedBodyError on bad input."""
    if not raw.strip():
        return None
    try:
        return json.loads(raw.decode("utf-8"))
    except UnicodeDecodeError as e:
        raise MalformedBodyError("invalid UTF-8") from e
    except json.JSONDecodeError as e:
        raise MalformedBodyError(e.msg) from e
    except RecursionError as e:
        raise MalformedBodyError("nesting too deep") from e
    except ValueError as e:
        # integer digit limit and other value conversions inside the parser
        raise MalformedBodyError("unsupported JSON value") from e


class BodyDecoderMiddleware:
    def __init__(self, app: ASGIApp, max_body_bytes: int = 100 * 1024):
        self.app = app
        self.max_body_bytes = max_body_bytes

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = Headers(scope=scope)
        if not is_json_content_type(headers.get("content-type")):
            await self.app(scope, receive, send)
            return

        declared = headers.get("content-length")
        if declared and declared.isdigit() and int(declared) > self.max_body_bytes:
            raise PayloadTooLargeError(self.max_body_bytes)

        raw = await self._read_body(receive)
        ctx = bind_request_context(scope)
        ctx.body = decode_json_body(raw)

        replayed = False

        async def replay() -> Message:
            nonlocal replayed
            if not replayed:
                replayed = True
                return {"type": "http.request", "body": raw, "more_body": False}
            return await receive()

        await self.app(scope, replay, send)

    async def _read_body(self, receive: Receive) -> bytes:
        chunks: list[bytes] = []
        size = 0
        while True:
            message = await receive()
            if message["type"] != "http.request":
                break
            chunk = message.get("body", b"")
            size += len(chunk)
            if size > self.max_body_bytes:
                raise PayloadTooLargeError(self.max_body_bytes)
            chunks.append(chunk)
            if not message.get("more_body", False):
                break
        return b"".join(chunks)
