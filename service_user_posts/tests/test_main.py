"""
Unit tests for the user posts gateway service.
"""

import pytest
from fastapi.testclient import TestClient
from structlog.testing import capture_logs
from unittest.mock import AsyncMock, MagicMock

from service_user_posts.app.adapters.user_client import CachedUserClient, DefaultUserClient
from service_user_posts.app.caching import MemoryCache, NullCache
from service_user_posts.app.domain.models import Post, UserProfile
from service_user_posts.app.main import GatewayService, create_app
from shared.config import GatewaySettings
from shared.errors import APIClientError


def _user_client():
    client = MagicMock()
    client.get_user_info = AsyncMock(
        return_value=UserProfile(id=1, name="Bob", username="bob", email="bob@x.com")
    )
    client.get_user_posts = AsyncMock(
        return_value=[Post(user_id=1, id=1, title="T1", body="B1")]
    )
    client.aclose = AsyncMock()
    return client


class TestGatewayService:
    """Test cases for GatewayService."""

    @pytest.fixture
    def settings(self):
        return GatewaySettings(user_api_base_url="http://users.test")

    @pytest.fixture
    def user_client(self):
        return _user_client()

    @pytest.fixture
    def app(self, settings, user_client):
        """Create FastAPI app instance."""
        return create_app(settings, user_client)

    @pytest.fixture
    def client(self, app):
        """Create test client."""
        return TestClient(app)

    def test_user_posts_endpoint(self, client, user_client):
        """The route combines profile and posts."""
        response = client.get("/v1/user-posts/1")

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/json"
        assert response.json() == {
            "id": 1,
            "userInfo": {"name": "Bob", "username": "bob", "email": "bob@x.com"},
            "posts": [{"id": 1, "title": "T1", "body": "B1"}],
        }
        user_client.get_user_info.assert_awaited_once_with("1")

    def test_user_id_forwarded_verbatim(self, client, user_client):
        """Non-numeric ids reach the client unchanged."""
        client.get("/v1/user-posts/user_1")

        user_client.get_user_info.assert_awaited_once_with("user_1")
        user_client.get_user_posts.assert_awaited_once_with("user_1")

    def test_client_error_status_passthrough(self, client, user_client):
        """Upstream status codes become the gateway status code."""
        user_client.get_user_info.side_effect = APIClientError(
            status_code=404,
            msg="API returned an invalid or empty response",
            url="/v1/user-posts/1",
        )

        response = client.get("/v1/user-posts/1")

        assert response.status_code == 404
        assert response.json() == {
            "statusCode": 404,
            "msg": "API returned an invalid or empty response",
            "url": "/v1/user-posts/1",
        }

    def test_response_has_request_id(self, client):
        """Every response carries an X-Request-ID header."""
        response = client.get("/v1/user-posts/1", headers={"X-Request-ID": "req-123"})

        assert response.headers["X-Request-ID"] == "req-123"

    def test_health_endpoint(self, client):
        """Test health endpoint."""
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["service"] == "user-posts-gateway"
        assert data["status"] == "ok"
        assert data["cache"] == {"enabled": True, "entries": 0}

    def test_metrics_endpoint(self, client):
        """Test metrics endpoint."""
        client.get("/v1/user-posts/1")

        response = client.get("/metrics")

        assert response.status_code == 200
        assert "text/plain" in response.headers["content-type"]
        assert "http_requests_total" in response.text

    def test_unknown_route_is_404(self, client):
        """Only the user posts route is served under /v1."""
        response = client.get("/v1/users/1")

        assert response.status_code == 404

    def test_recovers_from_unexpected_error(self, app):
        """An exception escaping a route becomes a 500 JSON body."""

        @app.get("/boom")
        async def boom():
            raise RuntimeError("kaboom")

        client = TestClient(app)
        with capture_logs() as logs:
            response = client.get("/boom")

        assert response.status_code == 500
        assert response.json() == {"statusCode": 500, "requestUrl": "/boom", "msg": "kaboom"}

        recovered = [entry for entry in logs if entry["event"] == "recovered from unexpected error"]
        assert len(recovered) == 1
        assert recovered[0]["log_level"] == "error"
        assert recovered[0]["exc_info"] is True

        # The server keeps serving afterwards
        assert client.get("/v1/user-posts/1").status_code == 200

    def test_completed_request_is_logged(self, client):
        """Completed requests are logged with url, method, body and status."""
        with capture_logs() as logs:
            client.get("/v1/user-posts/1?verbose=1")

        completed = [entry for entry in logs if entry["event"] == "request completed"]
        assert len(completed) == 1
        assert completed[0]["url"] == "/v1/user-posts/1?verbose=1"
        assert completed[0]["method"] == "GET"
        assert completed[0]["body"] == ""
        assert completed[0]["status"] == 200
        assert completed[0]["log_level"] == "info"

    def test_server_error_completion_logged_at_error(self, client, user_client):
        """Completion logs escalate to error level for 5xx responses."""
        user_client.get_user_info.side_effect = APIClientError(status_code=502, url="u", body="bad gateway")

        with capture_logs() as logs:
            response = client.get("/v1/user-posts/1")

        assert response.status_code == 502
        completed = [entry for entry in logs if entry["event"] == "request completed"]
        assert completed[0]["status"] == 502
        assert completed[0]["log_level"] == "error"

    def test_lifespan_starts_and_stops_cache_janitor(self, settings, user_client):
        """The cache janitor runs for the lifetime of the app."""
        service = GatewayService(settings, user_client)

        with TestClient(service.app):
            assert service.cache._janitor is not None

        assert service.cache._janitor is None
        user_client.aclose.assert_awaited_once()


class TestGatewayWiring:
    """Test cases for cache and client wiring."""

    def test_cache_enabled_uses_cached_client(self):
        """Default settings wrap the upstream client in the cache-aside client."""
        service = GatewayService(GatewaySettings(user_api_base_url="http://users.test"))

        assert isinstance(service.cache, MemoryCache)
        assert isinstance(service.user_client, CachedUserClient)
        assert service.user_client.cache is service.cache

    def test_cache_disabled_uses_null_cache(self):
        """Disabling the cache yields a NullCache and the direct client."""
        service = GatewayService(GatewaySettings(user_api_base_url="http://users.test", cache_enabled=False))

        assert isinstance(service.cache, NullCache)
        assert isinstance(service.user_client, DefaultUserClient)

        response = TestClient(service.app).get("/health")
        assert response.json()["cache"] == {"enabled": False, "entries": 0}

    def test_injected_cached_client_shares_its_cache(self):
        """An injected cache-aside client's store is the one the service reports."""
        settings = GatewaySettings(user_api_base_url="http://users.test")
        cache = MemoryCache(60)
        user_client = CachedUserClient(_user_client(), cache)

        service = GatewayService(settings, user_client)

        assert service.cache is cache
        cache.set("user-1", "cached")
        response = TestClient(service.app).get("/health")
        assert response.json()["cache"] == {"enabled": True, "entries": 1}

    def test_explicit_cache_is_used(self):
        """A cache passed alongside the client takes precedence."""
        settings = GatewaySettings(user_api_base_url="http://users.test")
        cache = MemoryCache(60)

        service = GatewayService(settings, _user_client(), cache)

        assert service.cache is cache

    def test_default_client_is_built_on_the_given_cache(self):
        """Without an injected client the built client uses the given cache."""
        cache = MemoryCache(60)

        service = GatewayService(GatewaySettings(user_api_base_url="http://users.test"), cache=cache)

        assert service.user_client.cache is cache

    def test_settings_from_environment(self, monkeypatch):
        """Settings are read from USER_POSTS_* variables."""
        monkeypatch.setenv("USER_POSTS_USER_API_BASE_URL", "http://env.test")
        monkeypatch.setenv("USER_POSTS_CACHE_TTL_SECONDS", "30")
        monkeypatch.setenv("USER_POSTS_SERVER_PORT", "9090")

        settings = GatewaySettings()

        assert settings.user_api_base_url == "http://env.test"
        assert settings.cache_ttl_seconds == 30
        assert settings.server_port == 9090

    def test_settings_defaults(self, monkeypatch):
        """Documented defaults apply when nothing is set."""
        for name in ("USER_POSTS_SERVER_HOST", "USER_POSTS_SERVER_PORT", "USER_POSTS_CACHE_TTL_SECONDS"):
            monkeypatch.delenv(name, raising=False)

        settings = GatewaySettings(_env_file=None)

        assert settings.server_host == "127.0.0.1"
        assert settings.server_port == 8080
        assert settings.cache_ttl_seconds == 300
        assert settings.cache_cleanup_interval_seconds == 600
        assert settings.user_api_base_url == "https://jsonplaceholder.typicode.com"
