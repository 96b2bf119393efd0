"""
User API client for Gateway.
"""

from typing import Any, List, Optional, Protocol

import httpx
from pydantic import TypeAdapter

from shared.config import GatewaySettings
from shared.errors import APIClientError, EMPTY_RESPONSE_MESSAGE
from shared.logging import get_logger
from shared.metrics import MetricsCollector

from ..caching import Cache, MemoryCache
from ..domain.models import Post, UserProfile


USER_CACHE_KEY_PREFIX = "user"
USER_POSTS_CACHE_KEY_PREFIX = "posts-user"

_posts_adapter = TypeAdapter(Optional[List[Post]])


class UserClient(Protocol):
    """Capability used by the request handler to reach user data."""

    async def get_user_info(self, user_id: str) -> UserProfile:
        ...

    async def get_user_posts(self, user_id: str) -> List[Post]:
        ...


def check_response(response: httpx.Response) -> None:
    """Raise ``APIClientError`` for any status outside 200..299."""
    if 200 <= response.status_code <= 299:
        return

    body = response.text
    url = str(response.request.url)
    if body in ("", "{}"):
        raise APIClientError(
            status_code=response.status_code,
            msg=EMPTY_RESPONSE_MESSAGE,
            url=url,
        )
    raise APIClientError(
        status_code=response.status_code,
        body=body,
        url=url,
    )


class DefaultUserClient:
    """Client for the upstream users/posts REST API.

    Calls are not retried and carry no timeout of their own; cancelling the
    awaiting task aborts the in-flight request.
    """

    def __init__(
        self,
        base_url: str,
        http_client: Optional[httpx.AsyncClient] = None,
        *,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.base_url = base_url.rstrip('/')
        self.logger = get_logger("gateway.user_client")
        self.metrics = metrics
        self._http = http_client or httpx.AsyncClient(timeout=httpx.Timeout(None))

    async def get_user_info(self, user_id: str) -> UserProfile:
        """Fetch a user profile."""
        response = await self._get("users", f"{self.base_url}/users/{user_id}")
        return UserProfile.model_validate_json(response.content)

    async def get_user_posts(self, user_id: str) -> List[Post]:
        """Fetch the posts written by a user."""
        response = await self._get("posts", f"{self.base_url}/posts", params={"userId": user_id})
        return _posts_adapter.validate_json(response.content) or []

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._http.aclose()

    async def _get(self, endpoint: str, url: str, params: Optional[dict] = None) -> httpx.Response:
        response = await self._http.get(url, params=params)
        if self.metrics:
            self.metrics.increment_counter(
                "upstream_requests_total",
                endpoint=endpoint,
                status_code=str(response.status_code),
            )
        self.logger.debug("User API response", url=str(response.request.url), status_code=response.status_code)
        check_response(response)
        return response


class CachedUserClient:
    """Cache-aside decorator around another ``UserClient``.

    The cache is consulted before delegating; a successful fetch is stored
    under ``"<prefix>-<user_id>"``. Errors are never cached.
    """

    def __init__(
        self,
        delegate: UserClient,
        cache: Cache,
        *,
        user_key_prefix: str = USER_CACHE_KEY_PREFIX,
        posts_key_prefix: str = USER_POSTS_CACHE_KEY_PREFIX,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.delegate = delegate
        self.cache = cache
        self.user_key_prefix = user_key_prefix
        self.posts_key_prefix = posts_key_prefix
        self.metrics = metrics
        self.logger = get_logger("gateway.cached_user_client")

    async def get_user_info(self, user_id: str) -> UserProfile:
        cache_key = self._key(self.user_key_prefix, user_id)
        cached = self._lookup(cache_key)
        if cached is not None:
            return cached

        user = await self.delegate.get_user_info(user_id)
        self.cache.set(cache_key, user)
        return user

    async def get_user_posts(self, user_id: str) -> List[Post]:
        cache_key = self._key(self.posts_key_prefix, user_id)
        cached = self._lookup(cache_key)
        if cached is not None:
            return cached

        posts = await self.delegate.get_user_posts(user_id)
        self.cache.set(cache_key, posts)
        return posts

    async def aclose(self) -> None:
        """Close the wrapped client if it owns resources."""
        close = getattr(self.delegate, "aclose", None)
        if close is not None:
            await close()

    def _lookup(self, cache_key: str) -> Optional[Any]:
        value, found = self.cache.get(cache_key)
        result = "hit" if found else "miss"
        if self.metrics:
            self.metrics.increment_counter("cache_lookups_total", cache="user_api", result=result)
        self.logger.debug("Cache lookup", key=cache_key, result=result)
        return value if found else None

    @staticmethod
    def _key(prefix: str, user_id: str) -> str:
        return f"{prefix}-{user_id}"


def build_user_client(
    settings: GatewaySettings,
    cache: Optional[Cache] = None,
    *,
    http_client: Optional[httpx.AsyncClient] = None,
    metrics: Optional[MetricsCollector] = None,
) -> UserClient:
    """Build the user client described by ``settings``.

    With caching enabled the direct client is wrapped in ``CachedUserClient``;
    otherwise the direct client is returned as is.
    """
    direct = DefaultUserClient(settings.user_api_base_url, http_client, metrics=metrics)
    if not settings.cache_enabled:
        return direct

    if cache is None:
        cache = MemoryCache(settings.cache_ttl_seconds, settings.cache_cleanup_interval_seconds)
    return CachedUserClient(direct, cache, metrics=metrics)


__all__ = [
    "APIClientError",
    "CachedUserClient",
    "DefaultUserClient",
    "USER_CACHE_KEY_PREFIX",
    "USER_POSTS_CACHE_KEY_PREFIX",
    "UserClient",
    "build_user_client",
    "check_response",
]
