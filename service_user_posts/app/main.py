"""
User posts gateway service.
"""

from typing import Any, Dict, Optional

from fastapi import Request, Response

from shared.base_service import BaseService
from shared.config import GatewaySettings, get_settings

from .adapters.user_client import CachedUserClient, UserClient, build_user_client
from .caching import Cache, MemoryCache, NullCache
from .domain.user_posts import UserPostsHandler, cancel_on_disconnect


class GatewayService(BaseService):
    """User posts gateway service implementation."""

    def __init__(
        self,
        config: Optional[GatewaySettings] = None,
        user_client: Optional[UserClient] = None,
        cache: Optional[Cache] = None,
    ):
        config = config if config is not None else get_settings()
        super().__init__("user-posts-gateway", config)

        # An injected cache-aside client brings its own store
        if cache is None and isinstance(user_client, CachedUserClient):
            cache = user_client.cache
        if cache is None:
            if config.cache_enabled:
                cache = MemoryCache(config.cache_ttl_seconds, config.cache_cleanup_interval_seconds)
            else:
                cache = NullCache()
        self.cache = cache

        if user_client is None:
            user_client = build_user_client(config, self.cache, metrics=self.metrics)
        self.user_client = user_client
        self.user_posts_handler = UserPostsHandler(user_client)

        self._setup_gateway_routes()

        # Expose service instance via app state for introspection/testing
        self.app.state.gateway_service = self

    def _setup_gateway_routes(self):
        """Set up gateway-specific routes."""

        @self.app.get("/v1/user-posts/{id}")
        async def get_user_posts(id: str, request: Request) -> Response:
            """Return a user's profile combined with their posts."""
            return await cancel_on_disconnect(
                request,
                self.user_posts_handler.get_user_posts(request, id),
            )

    async def _on_startup(self) -> None:
        if isinstance(self.cache, MemoryCache):
            await self.cache.start()

    async def _on_shutdown(self) -> None:
        if isinstance(self.cache, MemoryCache):
            await self.cache.stop()
        close = getattr(self.user_client, "aclose", None)
        if close is not None:
            await close()

    def _health_details(self) -> Dict[str, Any]:
        return {
            "cache": {
                "enabled": self.config.cache_enabled,
                "entries": len(self.cache),
            }
        }


def create_app(
    config: Optional[GatewaySettings] = None,
    user_client: Optional[UserClient] = None,
    cache: Optional[Cache] = None,
):
    """Create FastAPI application."""
    service = GatewayService(config, user_client, cache)
    return service.app


def main():
    """Console entry point."""
    service = GatewayService()
    service.run()


if __name__ == "__main__":
    main()
