"""Endpoint Resolver: decides which Core this node talks to.

Runs once at process start. A statically configured base URI is used as-is;
otherwise the candidate Core hosts are read from DNS TXT records, recorded,
and one of them is chosen at random.
"""

import logging
import random
from typing import List, Optional
from urllib.parse import urlsplit

from corelink.domain.errors import DiscoveryError, ResolverError, StateError
from corelink.domain.events.core_events import CoreHostSelected, DomainEvent
from corelink.domain.interfaces.txt_resolver import TxtResolver
from corelink.domain.models.common import Endpoint
from corelink.domain.models.settings import DiscoverViaDNS, EndpointMode, StaticEndpoint
from corelink.infrastructure.state.endpoint_store import CurrentEndpointStore

logger = logging.getLogger(__name__)


def dispatch_event(event: DomainEvent) -> None:
    logger.debug(f"EVENT: {event}")


def host_of(uri: str) -> Endpoint:
    """Host component (with port, if any) of an absolute URI."""
    return Endpoint(urlsplit(uri).netloc)


class EndpointResolver:
    """Selects the current Core host, statically or via DNS discovery."""

    def __init__(
        self,
        endpoint_mode: EndpointMode,
        endpoint_store: CurrentEndpointStore,
        txt_resolver: TxtResolver,
        rng: Optional[random.Random] = None,
    ):
        self.endpoint_mode = endpoint_mode
        self.endpoint_store = endpoint_store
        self.txt_resolver = txt_resolver
        self.rng = rng or random.Random()

    async def initialize(self) -> Endpoint:
        """Selects and persists the current Core host.

        Returns:
            The endpoint now in effect.

        Raises:
            DiscoveryError: If the DNS lookup fails or publishes nothing, or
                the selection cannot be persisted.
        """
        if isinstance(self.endpoint_mode, StaticEndpoint):
            return await self._use_static(self.endpoint_mode)
        return await self._discover(self.endpoint_mode)

    async def _use_static(self, mode: StaticEndpoint) -> Endpoint:
        endpoint = host_of(mode.uri)
        await self._commit(endpoint)
        logger.info(f"Core host in effect: {mode.uri}")
        dispatch_event(CoreHostSelected(host=endpoint, source="static"))
        return endpoint

    async def _discover(self, mode: DiscoverViaDNS) -> Endpoint:
        try:
            records = await self.txt_resolver.resolve_txt(mode.name)
        except ResolverError as e:
            raise DiscoveryError("dns query failed") from e
        if not records:
            raise DiscoveryError("no endpoints published")

        # Only the first segment of each TXT record names a host
        candidates: List[Endpoint] = [Endpoint(record[0]) for record in records if record and record[0]]
        if not candidates:
            raise DiscoveryError("no endpoints published")
        logger.debug(f"Discovered {len(candidates)} Core host(s) via {mode.name}: {candidates}")

        try:
            await self.endpoint_store.set_candidates(candidates)
        except StateError as e:
            raise DiscoveryError("could not persist candidate set") from e

        endpoint = self.rng.choice(candidates)
        await self._commit(endpoint)
        logger.info(f"Core host in effect: {endpoint}")
        dispatch_event(CoreHostSelected(host=endpoint, source="dns", candidates=list(candidates)))
        return endpoint

    async def _commit(self, endpoint: Endpoint) -> None:
        try:
            await self.endpoint_store.set_current(endpoint)
        except StateError as e:
            raise DiscoveryError(f"could not persist current endpoint: {e}") from e
