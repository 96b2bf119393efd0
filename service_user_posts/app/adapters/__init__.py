"""
Adapters package for the Gateway Service.

Contains the HTTP client for the upstream user API. The adapter
encapsulates:

- Base URL and request shapes
- Cache-aside reads and writes
- Classification of non-2xx responses into ``APIClientError``

Keep adapters thin and side-effect free outside of explicit calls.
"""

from .user_client import (
    CachedUserClient,
    DefaultUserClient,
    UserClient,
    build_user_client,
    check_response,
)

__all__ = [
    "CachedUserClient",
    "DefaultUserClient",
    "UserClient",
    "build_user_client",
    "check_response",
]
