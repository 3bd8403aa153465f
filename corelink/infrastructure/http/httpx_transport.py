"""Concrete implementation of the HttpTransport interface using httpx.

Translates between RequestOptions-style arguments and httpx, and maps
httpx failures onto TransportError (with or without a status code).
"""

import logging
from typing import Any, Dict, Optional, Union

import httpx

from corelink.domain.errors import TransportError
from corelink.domain.interfaces.http_transport import HttpTransport
from corelink.domain.models.common import ResponseEnvelope

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 10.0


class HttpxTransport(HttpTransport):
    """Sends single requests through a shared httpx.AsyncClient."""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT_S, client: Optional[httpx.AsyncClient] = None):
        """Initializes the transport.

        Args:
            timeout: Per-attempt timeout in seconds.
            client: Pre-built client (e.g. with a MockTransport in tests).
        """
        self.client = client or httpx.AsyncClient(timeout=timeout)

    async def __aenter__(self) -> "HttpxTransport":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    async def send(
        self,
        method: str,
        uri: str,
        headers: Dict[str, str],
        params: Optional[Dict[str, Any]] = None,
        body: Any = None,
        json: bool = True,
        gzip: bool = False,
        full_response: bool = False,
    ) -> Union[Any, ResponseEnvelope]:
        request_headers = dict(headers)
        if gzip:
            request_headers.setdefault("Accept-Encoding", "gzip")

        request_kwargs: Dict[str, Any] = {"headers": request_headers, "params": params}
        if body is not None:
            if json:
                request_kwargs["json"] = body
            else:
                request_kwargs["content"] = body

        try:
            response = await self.client.request(method, uri, **request_kwargs)
        except (httpx.RequestError, httpx.InvalidURL) as e:
            # No usable response, including bodies that fail to decode
            raise TransportError(f"{method} {uri} failed: {type(e).__name__}: {e}") from e

        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise TransportError(
                f"{method} {uri} returned {response.status_code}",
                status_code=response.status_code,
                body=_decode_body(response, json),
            ) from e

        decoded = _decode_body(response, json)
        if full_response:
            return ResponseEnvelope(
                status_code=response.status_code,
                headers=dict(response.headers),
                body=decoded,
            )
        return decoded


def _decode_body(response: httpx.Response, json: bool) -> Any:
    """Parses a JSON body when asked to, falling back to text."""
    if not json or not response.content:
        return response.text
    try:
        return response.json()
    except ValueError:
        logger.debug(f"Response from {response.request.url} is not valid JSON; returning text")
        return response.text
