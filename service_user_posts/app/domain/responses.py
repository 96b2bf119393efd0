"""
Response assembly for the user posts route.
"""

from typing import Optional, Sequence

from .models import CombinedUserResponse, Post, UserInfo, UserPost, UserProfile


def to_combined_response(profile: UserProfile, posts: Optional[Sequence[Post]]) -> CombinedUserResponse:
    """Project a profile and its posts onto the gateway response shape.

    Post order is preserved. ``None`` or an empty sequence yields ``posts=[]``.
    """
    return CombinedUserResponse(
        id=profile.id,
        user_info=UserInfo(
            name=profile.name,
            username=profile.username,
            email=profile.email,
        ),
        posts=[UserPost(id=post.id, title=post.title, body=post.body) for post in posts or ()],
    )
