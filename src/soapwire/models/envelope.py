"""
SOAP 1.1 envelope model.

The body is a tagged sum: a fault, a single content element, or nothing.
"""

from typing import Any, Generic, Literal, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field

from soapwire.errors import Fault
from soapwire.models.options import RequestOptions

SOAP_ENV_NS = "http://schemas.xmlsoap.org/soap/envelope/"
SOAP_ENV_PREFIX = "soapenv"

ContentT = TypeVar("ContentT")


class FaultBody(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    kind: Literal["fault"] = "fault"
    fault: Fault


class ContentBody(BaseModel, Generic[ContentT]):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    kind: Literal["content"] = "content"
    content: ContentT


class EmptyBody(BaseModel):
    kind: Literal["empty"] = "empty"


class Envelope(BaseModel, Generic[ContentT]):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    path: str = ""
    attributes: dict[str, str] = Field(default_factory=lambda: {SOAP_ENV_PREFIX: SOAP_ENV_NS})
    header: Optional[list[Any]] = None   # None: no Header element on the wire
    body: Union[FaultBody, ContentBody[ContentT], EmptyBody] = Field(default_factory=EmptyBody)
    options: RequestOptions = Field(default_factory=RequestOptions, exclude=True)

    @property
    def namespace(self) -> str:
        """The SOAP envelope namespace bound to the soapenv prefix."""
        return self.attributes.get(SOAP_ENV_PREFIX) or SOAP_ENV_NS

    @property
    def fault(self) -> Optional[Fault]:
        return self.body.fault if isinstance(self.body, FaultBody) else None

    @property
    def content(self) -> Optional[ContentT]:
        return self.body.content if isinstance(self.body, ContentBody) else None

    def add_attributes(self, **attributes: str) -> "Envelope[ContentT]":
        """Add or replace namespace declarations; a soapenv entry replaces the default."""
        self.attributes.update(attributes)
        return self


def new_request(
    path: str,
    content: Any = None,
    header: Optional[list[Any]] = None,
    options: Optional[RequestOptions] = None,
    *,
    basic_auth: Optional[tuple[str, str]] = None,
    bearer_token: Optional[str] = None,
    user_agent: Optional[str] = None,
    content_type: Optional[str] = None,
    action: Optional[str] = None,
    attributes: Optional[dict[str, str]] = None,
) -> Envelope[Any]:
    """Build an outbound envelope bound to ``path``.

    ``content`` is a pydantic-xml model or a raw lxml element and is not
    inspected here. Keyword options are folded over ``options`` in the order
    of the signature; later values win.
    """
    opts = options.model_copy(deep=True) if options is not None else RequestOptions()
    if basic_auth is not None:
        opts.username, opts.password = basic_auth
    if bearer_token is not None:
        opts.bearer_token = bearer_token
    if user_agent is not None:
        opts.user_agent = user_agent
    if content_type is not None:
        opts.content_type = content_type
    if action is not None:
        opts.action = action
    if attributes:
        opts.attributes.update(attributes)

    envelope: Envelope[Any] = Envelope(
        path=path,
        header=list(header) if header else None,
        body=ContentBody(content=content) if content is not None else EmptyBody(),
        options=opts,
    )
    envelope.add_attributes(**opts.attributes)
    return envelope
