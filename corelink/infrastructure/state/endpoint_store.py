"""Accessor for the persisted Core host selection.

Wraps a KeyValueStore and exposes the single "current endpoint" value plus
the candidate set recorded by the last discovery. Storage faults surface as
StateError.
"""

import json
import logging
from typing import List

from corelink.domain.errors import StateError, StorageError
from corelink.domain.interfaces.key_value_store import KeyValueStore
from corelink.domain.models.common import (
    CANDIDATE_SET_KEY,
    CURRENT_ENDPOINT_KEY,
    Endpoint,
    EndpointUri,
    compose_endpoint_uri,
)
from corelink.domain.models.settings import EndpointMode, StaticEndpoint

logger = logging.getLogger(__name__)


class CurrentEndpointStore:
    """Holds the Core host this process committed to."""

    def __init__(self, store: KeyValueStore, endpoint_mode: EndpointMode):
        self.store = store
        self.endpoint_mode = endpoint_mode

    async def get_current(self) -> Endpoint:
        """Reads the current endpoint.

        Raises:
            StateError: If the read fails or no endpoint has been stored.
        """
        try:
            value = await self.store.get(CURRENT_ENDPOINT_KEY)
        except StorageError as e:
            raise StateError(f"Could not get {CURRENT_ENDPOINT_KEY} from state store") from e
        if not value:
            raise StateError(f"Could not get {CURRENT_ENDPOINT_KEY} from state store: not found")
        return Endpoint(value)

    async def set_current(self, endpoint: Endpoint) -> None:
        """Persists the current endpoint.

        Raises:
            StateError: If the write fails.
        """
        try:
            await self.store.set(CURRENT_ENDPOINT_KEY, endpoint)
        except StorageError as e:
            logger.error(str(e))
            raise StateError(f"Could not set {CURRENT_ENDPOINT_KEY} in state store") from e

    async def get_current_endpoint_uri(self) -> EndpointUri:
        """Base URI for requests.

        The configured URI is returned verbatim in static mode; otherwise the
        stored endpoint is read and composed into an https URI.
        """
        if isinstance(self.endpoint_mode, StaticEndpoint):
            return self.endpoint_mode.uri
        endpoint = await self.get_current()
        return compose_endpoint_uri(endpoint)

    async def get_candidates(self) -> List[Endpoint]:
        """Reads the candidate set recorded by the last discovery."""
        try:
            raw = await self.store.get(CANDIDATE_SET_KEY)
        except StorageError as e:
            raise StateError(f"Could not get {CANDIDATE_SET_KEY} from state store") from e
        if not raw:
            raise StateError(f"Could not get {CANDIDATE_SET_KEY} from state store: not found")
        try:
            hosts = json.loads(raw)["hosts"]
        except (ValueError, KeyError, TypeError) as e:
            raise StateError(f"Malformed {CANDIDATE_SET_KEY} record in state store") from e
        return [Endpoint(h) for h in hosts]

    async def set_candidates(self, hosts: List[Endpoint]) -> None:
        """Persists the candidate set as one JSON record."""
        try:
            await self.store.set(CANDIDATE_SET_KEY, json.dumps({"hosts": list(hosts)}))
        except StorageError as e:
            logger.error(str(e))
            raise StateError(f"Could not set {CANDIDATE_SET_KEY} in state store") from e
