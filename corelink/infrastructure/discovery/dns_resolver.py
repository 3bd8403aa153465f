"""Concrete implementation of the TxtResolver interface using dnspython."""

import logging
from typing import List, Optional

import dns.asyncresolver
import dns.exception

from corelink.domain.errors import ResolverError
from corelink.domain.interfaces.txt_resolver import TxtResolver

logger = logging.getLogger(__name__)

DEFAULT_LIFETIME_S = 5.0


class DnsTxtResolver(TxtResolver):
    """Resolves TXT records with the system's configured nameservers."""

    def __init__(self, lifetime: float = DEFAULT_LIFETIME_S, resolver: Optional[dns.asyncresolver.Resolver] = None):
        """Initializes the resolver.

        Args:
            lifetime: Total seconds allowed for one lookup.
            resolver: Pre-built dnspython resolver (reads /etc/resolv.conf if None).
        """
        self.resolver = resolver or dns.asyncresolver.Resolver()
        self.lifetime = lifetime

    async def resolve_txt(self, name: str) -> List[List[str]]:
        logger.debug(f"Querying TXT records for {name}")
        try:
            answer = await self.resolver.resolve(name, "TXT", lifetime=self.lifetime)
        except dns.exception.DNSException as e:
            logger.warning(f"TXT lookup for {name} failed: {type(e).__name__}: {e}")
            raise ResolverError(f"TXT lookup for {name} failed: {e}") from e

        # Each rdata carries one or more character-strings as bytes
        records = [
            [segment.decode("utf-8", errors="replace") for segment in rdata.strings]
            for rdata in answer
        ]
        logger.debug(f"TXT lookup for {name} returned {len(records)} record(s)")
        return records
