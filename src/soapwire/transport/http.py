"""
HTTP transport for SOAP calls.

Status codes are not inspected: any response, 2xx or not, is handed back
for decoding. Transport failures propagate as httpx errors.
"""

import base64
from typing import Optional

import httpx

from soapwire.models.options import ClientOptions, RequestOptions

DEFAULT_CONTENT_TYPE = 'text/xml; charset="utf-8"'
DEFAULT_USER_AGENT = "soapwire/0.1.0"
DEFAULT_TIMEOUT = 30.0


def build_headers(request: RequestOptions, client: ClientOptions) -> dict[str, str]:
    """Layer request options over client defaults over fixed fallbacks."""
    headers: dict[str, str] = {
        "Content-Type": request.content_type or client.content_type or DEFAULT_CONTENT_TYPE,
        "User-Agent": request.user_agent or client.user_agent or DEFAULT_USER_AGENT,
        "Connection": "close",
    }

    action = request.action or client.action
    if action:
        headers["SOAPAction"] = action

    if request.username:
        headers["Authorization"] = _basic(request.username, request.password)
    elif client.username:
        headers["Authorization"] = _basic(client.username, client.password)

    # Bearer is applied last and replaces a basic header when both are configured
    token = request.bearer_token or client.bearer_token
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


def _basic(username: str, password: str) -> str:
    credentials = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")
    return f"Basic {credentials}"


class HttpClient:
    def __init__(self, client: Optional[httpx.AsyncClient] = None, timeout: float = DEFAULT_TIMEOUT):
        self._owned = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def post(self, url: str, content: bytes, headers: dict[str, str]) -> httpx.Response:
        return await self._client.post(url, content=content, headers=headers)

    async def close(self) -> None:
        if self._owned:
            await self._client.aclose()
