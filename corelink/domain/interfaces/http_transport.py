"""Interface for the HTTP transport used to reach a Core.

Keeps the request dispatcher independent of the concrete HTTP library.
"""

import abc
from typing import Any, Dict, Optional, Union

from ..models.common import ResponseEnvelope


class HttpTransport(abc.ABC):
    """Abstract Base Class for sending a single HTTP request."""

    @abc.abstractmethod
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
        """Sends one request, without retrying.

        Args:
            method: HTTP method.
            uri: Absolute request URI.
            headers: Request headers.
            params: Optional query parameters.
            body: Optional request body.
            json: Encode the body and decode the response as JSON.
            gzip: Request a compressed transfer.
            full_response: Return a ResponseEnvelope instead of the body.

        Returns:
            The decoded body, or the full envelope if requested.

        Raises:
            TransportError: With ``status_code`` set for a non-2xx response,
                or None when no response was received.
        """
        pass

    async def aclose(self) -> None:
        """Releases any pooled connections."""
        pass
