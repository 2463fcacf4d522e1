"""
SoapClient / AsyncSoapClient — call a SOAP endpoint with an envelope.
"""

import asyncio
import logging
from typing import Any, Optional, TypeVar

import httpx
from pydantic_xml import BaseXmlModel

from soapwire.models.envelope import Envelope
from soapwire.models.options import ClientOptions
from soapwire.transport.envelope import format_xml, parse, serialize_envelope
from soapwire.transport.http import DEFAULT_TIMEOUT, HttpClient, build_headers

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseXmlModel)


class AsyncSoapClient:
    """Async SOAP client (primary) bound to a single base address."""

    def __init__(
        self,
        base_url: str,
        options: Optional[ClientOptions] = None,
        http: Optional[httpx.AsyncClient] = None,
        timeout: float = DEFAULT_TIMEOUT,
        **defaults: Any,
    ):
        self._base_url = base_url
        self.options = options.model_copy(update=defaults) if options is not None else ClientOptions(**defaults)
        self.http = HttpClient(client=http, timeout=timeout)

    @property
    def base_url(self) -> str:
        return self._base_url

    async def call(
        self, request: Envelope[Any], response_type: type[T], timeout: Optional[float] = None,
    ) -> Optional[T]:
        """Send ``request`` and decode the reply into ``response_type``.

        Returns None when the response body or the SOAP Body is empty.
        Raises Fault for a SOAP fault; transport errors propagate unchanged.
        """
        payload = serialize_envelope(request)
        if self.options.debug:
            logger.debug("Request:\n%s", format_xml(payload))

        url = f"{self._base_url}{request.path}"
        headers = build_headers(request.options, self.options)
        exchange = self.http.post(url, payload, headers)
        resp = await (asyncio.wait_for(exchange, timeout) if timeout is not None else exchange)
        logger.debug("POST %s -> %s (%d bytes)", url, resp.status_code, len(resp.content))

        raw = resp.content
        if self.options.debug and raw:
            logger.debug("Response:\n%s", format_xml(raw))
        return parse(raw, response_type)

    async def close(self) -> None:
        await self.http.close()

    async def __aenter__(self) -> "AsyncSoapClient":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()


class SoapClient:
    """Sync wrapper around AsyncSoapClient. Runs the event loop internally."""

    def __init__(self, base_url: str, **kwargs: Any):
        self._async = AsyncSoapClient(base_url, **kwargs)
        self._loop = asyncio.new_event_loop()

    def _run(self, coro: Any) -> Any:
        return self._loop.run_until_complete(coro)

    @property
    def options(self) -> ClientOptions:
        return self._async.options

    @property
    def base_url(self) -> str:
        return self._async.base_url

    def call(self, request: Envelope[Any], response_type: type[T], timeout: Optional[float] = None) -> Optional[T]:
        return self._run(self._async.call(request, response_type, timeout=timeout))

    def close(self) -> None:
        self._run(self._async.close())
        self._loop.close()

    def __enter__(self) -> "SoapClient":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()
