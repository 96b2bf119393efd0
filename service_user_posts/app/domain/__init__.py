"""
Domain helpers for the Gateway Service.

- models: upstream and response wire models
- responses: profile + posts assembly
- user_posts: request orchestration and error translation
"""

from .models import CombinedUserResponse, Post, UserProfile
from .responses import to_combined_response
from .user_posts import UserPostsHandler, cancel_on_disconnect

__all__ = [
    "CombinedUserResponse",
    "Post",
    "UserProfile",
    "UserPostsHandler",
    "cancel_on_disconnect",
    "to_combined_response",
]
