"""Interface for DNS TXT record lookups."""

import abc
from typing import List


class TxtResolver(abc.ABC):
    """Abstract Base Class for resolving TXT records."""

    @abc.abstractmethod
    async def resolve_txt(self, name: str) -> List[List[str]]:
        """Looks up the TXT records published for a name.

        Each record may consist of several character-string segments, so the
        result is a list of records, each a list of segments.

        Args:
            name: The DNS name to query.

        Returns:
            The records found (possibly empty).

        Raises:
            ResolverError: On any lookup problem.
        """
        pass
