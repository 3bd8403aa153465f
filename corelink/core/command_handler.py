"""Command Handler: Orchestrates CLI command execution.

Receives commands from the main entry point (main.py) and delegates the work
to the endpoint resolver, the endpoint store and the Core API service.
Subsystem errors are reported through the UserInterface; each handler
returns True on success so the CLI can set its exit status.
"""

import json
import logging
from typing import Any, Optional

from corelink.core.services.core_api_service import CoreApiService
from corelink.core.services.endpoint_resolver import EndpointResolver
from corelink.domain.errors import CorelinkError, DiscoveryError, RequestError, StateError
from corelink.domain.interfaces.user_interface import UserInterface
from corelink.domain.models.common import Endpoint
from corelink.domain.models.settings import DiscoverViaDNS, NodeSettings
from corelink.infrastructure.state.endpoint_store import CurrentEndpointStore

logger = logging.getLogger(__name__)


class CommandHandler:
    """Handles incoming commands and delegates to appropriate services."""

    def __init__(
        self,
        settings: NodeSettings,
        resolver: EndpointResolver,
        endpoint_store: CurrentEndpointStore,
        core_api: CoreApiService,
        ui: UserInterface,
    ):
        self.settings = settings
        self.resolver = resolver
        self.endpoint_store = endpoint_store
        self.core_api = core_api
        self.ui = ui

    async def handle_discover(self) -> bool:
        """Handles the 'discover' command."""
        logger.info("Handling 'discover' command.")
        try:
            endpoint = await self.resolver.initialize()
        except DiscoveryError as e:
            logger.error(f"Core discovery failed: {e}", exc_info=True)
            self.ui.display_error(f"Discovery failed: {e}")
            return False
        self.ui.display_info(f"Core host in effect: {endpoint}")
        return True

    async def handle_status(self) -> bool:
        """Handles the 'status' command: shows the persisted selection."""
        mode = self.settings.endpoint_mode
        discovery = isinstance(mode, DiscoverViaDNS)
        rows = [{"setting": "mode", "value": f"dns ({mode.name})" if discovery else "static"}]
        try:
            rows.append({"setting": "current", "value": await self.endpoint_store.get_current_endpoint_uri()})
            if discovery:
                candidates = await self.endpoint_store.get_candidates()
                rows.append({"setting": "candidates", "value": ", ".join(candidates)})
        except StateError as e:
            logger.error(f"Failed to read endpoint state: {e}", exc_info=True)
            self.ui.display_table("Core endpoint", rows)
            self.ui.display_error(f"{e}. Run 'corelink discover' first.")
            return False
        self.ui.display_table("Core endpoint", rows)
        return True

    async def handle_config(self, endpoint: Optional[str] = None) -> bool:
        """Handles the 'config' command: fetches the Core's /config."""
        logger.info(f"Handling 'config' command (endpoint override: {endpoint or 'none'})")
        try:
            envelope = await self.core_api.get_core_config(
                endpoint_override=Endpoint(endpoint) if endpoint else None
            )
        except (RequestError, StateError) as e:
            return self._report_failure("Fetching Core config", e)
        self.ui.display_output(envelope.body, title=f"/config ({envelope.status_code})")
        return True

    async def handle_request(
        self,
        path: str,
        method: str = "GET",
        data: Optional[str] = None,
        endpoint: Optional[str] = None,
        quiet_retries: bool = False,
    ) -> bool:
        """Handles the 'request' command: an arbitrary call to a Core."""
        logger.info(f"Handling 'request' command: {method} {path}")
        body: Any = None
        if data is not None:
            try:
                body = json.loads(data)
            except ValueError as e:
                self.ui.display_error(f"--data is not valid JSON: {e}")
                return False
        try:
            envelope = await self.core_api.call(
                method,
                path,
                body=body,
                endpoint_override=Endpoint(endpoint) if endpoint else None,
                suppress_retry_log=quiet_retries,
            )
        except (RequestError, StateError) as e:
            return self._report_failure("Core request", e)
        self.ui.display_output(envelope.body, title=f"{method.upper()} {path} ({envelope.status_code})")
        return True

    def _report_failure(self, action: str, error: CorelinkError) -> bool:
        logger.error(f"{action} failed: {error}", exc_info=True)
        if isinstance(error, RequestError):
            self.ui.display_error(f"{action} failed ({error.status_label}, {error.attempts} attempt(s)): {error}")
        else:
            self.ui.display_error(f"{action} failed: {error}")
        return False
