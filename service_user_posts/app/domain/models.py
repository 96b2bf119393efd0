"""
Wire models for the upstream user API and the combined gateway response.

Upstream payloads are decoded leniently: unknown fields are ignored and
missing scalars fall back to zero values.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class UpstreamModel(BaseModel):
    """Base for immutable models decoded from upstream JSON."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)


class Geo(UpstreamModel):
    lat: str = ""
    lng: str = ""


class Address(UpstreamModel):
    street: str = ""
    suite: Optional[str] = None
    city: str = ""
    zipcode: str = ""
    geo: Optional[Geo] = None


class Company(UpstreamModel):
    name: str = ""
    catch_phrase: Optional[str] = Field(default=None, alias="catchPhrase")
    bs: Optional[str] = None


class UserProfile(UpstreamModel):
    """User profile as returned by ``GET /users/{id}``."""

    id: int = 0
    name: str = ""
    username: str = ""
    email: str = ""
    address: Optional[Address] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    company: Optional[Company] = None


class Post(UpstreamModel):
    """Post as returned by ``GET /posts?userId={id}``."""

    user_id: int = Field(default=0, alias="userId")
    id: int = 0
    title: str = ""
    body: str = ""


class UserInfo(BaseModel):
    """Profile summary embedded in the combined response."""

    model_config = ConfigDict(frozen=True)

    name: str
    username: str
    email: str


class UserPost(BaseModel):
    """Post projection embedded in the combined response."""

    model_config = ConfigDict(frozen=True)

    id: int
    title: str
    body: str


class CombinedUserResponse(BaseModel):
    """Body of a successful ``GET /v1/user-posts/{id}``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: int
    user_info: UserInfo = Field(alias="userInfo")
    posts: List[UserPost] = Field(default_factory=list)
