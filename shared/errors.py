"""
Shared error handling for the User Posts Gateway.

Two tiers of failures reach clients:

- ``APIClientError``: the upstream API answered with a non-2xx status. The
  gateway passes the status through with a structured body.
- Anything else (decode, network, serialization failures, bugs) is an
  internal error answered with HTTP 500 and ``InternalErrorResponse``.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


EMPTY_RESPONSE_MESSAGE = "API returned an invalid or empty response"


class ClientErrorResponse(BaseModel):
    """Wire format of an upstream-classified error."""

    model_config = ConfigDict(populate_by_name=True)

    status_code: int = Field(alias="statusCode")
    body: Optional[str] = None
    msg: Optional[str] = None
    url: str


class InternalErrorResponse(BaseModel):
    """Wire format of an internal gateway error."""

    model_config = ConfigDict(populate_by_name=True)

    status_code: int = Field(default=500, alias="statusCode")
    request_url: str = Field(alias="requestUrl")
    msg: str


class GatewayException(Exception):
    """Base exception for gateway services."""


class APIClientError(GatewayException):
    """An upstream API response outside the 2xx range."""

    def __init__(self, status_code: int, url: str, body: Optional[str] = None, msg: Optional[str] = None):
        self.status_code = status_code
        self.url = url
        self.body = body
        self.msg = msg
        super().__init__(
            f"API response error statusCode={status_code} body={body or ''} url={url}"
        )

    def to_response(self) -> ClientErrorResponse:
        """Convert to error response."""
        return ClientErrorResponse(
            status_code=self.status_code,
            body=self.body,
            msg=self.msg,
            url=self.url
        )
