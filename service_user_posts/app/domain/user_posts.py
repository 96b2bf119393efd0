"""
Request handling and error translation for ``GET /v1/user-posts/{id}``.
"""

import asyncio
import json
from typing import TYPE_CHECKING, Any, Awaitable, Optional

from fastapi import Request, Response
from fastapi.responses import PlainTextResponse

from shared.base_service import request_uri
from shared.errors import APIClientError, InternalErrorResponse
from shared.logging import get_logger

from .responses import to_combined_response

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from ..adapters.user_client import UserClient


CLIENT_CLOSED_REQUEST = 499
JSON_MEDIA_TYPE = "application/json"


class UserPostsHandler:
    """Combines a user's profile and posts into a single response.

    A request runs straight through: user info, then posts, then assembly.
    The first failure ends the request and is translated by
    ``handle_error_response``; no partial response is ever written.
    """

    def __init__(self, user_client: "UserClient", logger: Optional[Any] = None):
        self.user_client = user_client
        self.logger = logger or get_logger("gateway.user_posts")

    async def get_user_posts(self, request: Request, user_id: str) -> Response:
        try:
            user = await self.user_client.get_user_info(user_id)
            posts = await self.user_client.get_user_posts(user_id)
            content = to_combined_response(user, posts).model_dump_json(by_alias=True)
        except Exception as exc:
            return self.handle_error_response(exc, request)

        return Response(content=content, status_code=200, media_type=JSON_MEDIA_TYPE)

    def handle_error_response(self, exc: Exception, request: Request) -> Response:
        """Translate a failure into the HTTP response sent to the caller."""
        if isinstance(exc, APIClientError):
            if exc.status_code >= 500:
                self.logger.error("client API returned a server error", status=exc.status_code, error=str(exc))
            status_code = exc.status_code
            payload = exc.to_response()
        else:
            self.logger.error(
                "could not get user posts",
                url=request_uri(request),
                error=str(exc),
                error_type=type(exc).__name__,
            )
            status_code = 500
            payload = InternalErrorResponse(request_url=request_uri(request), msg=str(exc))

        try:
            content = json.dumps(payload.model_dump(by_alias=True, exclude_none=True))
        except (TypeError, ValueError) as encode_exc:
            self.logger.error("could not encode error response", error=str(encode_exc))
            return PlainTextResponse("Internal Server Error", status_code=500)

        return Response(content=content, status_code=status_code, media_type=JSON_MEDIA_TYPE)


async def cancel_on_disconnect(request: Request, work: Awaitable[Response], poll_interval: float = 0.1) -> Response:
    """Await ``work``, cancelling it as soon as the client goes away.

    Cancelling the task aborts whatever upstream call it is awaiting.
    """
    task = asyncio.ensure_future(work)
    try:
        while True:
            done, _ = await asyncio.wait({task}, timeout=poll_interval)
            if done:
                return task.result()
            if await request.is_disconnected():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
                get_logger("gateway.user_posts").info("client disconnected", url=request_uri(request))
                return Response(status_code=CLIENT_CLOSED_REQUEST)
    finally:
        if not task.done():
            task.cancel()
