"""Application service for calls made to a Core's HTTP API."""

import logging
from typing import Any, Dict, Optional

from corelink.domain.models.common import Endpoint, RequestOptions, ResponseEnvelope
from corelink.infrastructure.resilience.request_dispatcher import CoreRequestDispatcher

logger = logging.getLogger(__name__)

CONFIG_PATH = "/config"


class CoreApiService:
    """Thin use-case layer over the request dispatcher."""

    def __init__(self, dispatcher: CoreRequestDispatcher):
        self.dispatcher = dispatcher

    async def get_core_config(self, endpoint_override: Optional[Endpoint] = None) -> ResponseEnvelope:
        """Fetches the Core's /config document with status and headers."""
        options = RequestOptions(
            method="GET",
            path=CONFIG_PATH,
            headers={"Content-Type": "application/json"},
            json=True,
            gzip=True,
            full_response=True,
        )
        return await self.dispatcher.request(options, endpoint_override=endpoint_override)

    async def call(
        self,
        method: str,
        path: str,
        body: Any = None,
        params: Optional[Dict[str, Any]] = None,
        endpoint_override: Optional[Endpoint] = None,
        suppress_retry_log: bool = False,
    ) -> ResponseEnvelope:
        """Sends an arbitrary JSON request to a Core.

        Args:
            method: HTTP method.
            path: Request path, starting with '/'.
            body: Optional JSON body.
            params: Optional query parameters.
            endpoint_override: Host to use instead of the current Core.
            suppress_retry_log: Skip the per-retry log line.
        """
        if not path.startswith("/"):
            path = f"/{path}"
        options = RequestOptions(
            method=method.upper(),
            path=path,
            headers={"Content-Type": "application/json"},
            params=params,
            body=body,
            json=True,
            gzip=True,
            full_response=True,
        )
        logger.debug(f"Core API call: {options.method} {path}")
        return await self.dispatcher.request(
            options,
            endpoint_override=endpoint_override,
            suppress_retry_log=suppress_retry_log,
        )
