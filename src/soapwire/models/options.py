"""
Per-request and per-client call options.

An empty string means "not set" for every string field, so an explicitly
empty value falls through to the next layer.
"""

from pydantic import BaseModel, Field


class CallOptions(BaseModel):
    username: str = ""
    password: str = ""
    bearer_token: str = ""
    user_agent: str = ""
    content_type: str = ""
    action: str = ""


class RequestOptions(CallOptions):
    """Options attached to a single envelope. Not serialized."""
    attributes: dict[str, str] = Field(default_factory=dict)


class ClientOptions(CallOptions):
    """Client-wide defaults, used when the request leaves a field unset."""
    debug: bool = False
