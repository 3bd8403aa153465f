"""Domain models describing how a node is configured to reach a Core.

The endpoint mode is an explicit variant: either a fixed base URI or DNS
discovery against a well-known TXT record name.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from .common import EndpointUri, RetryPolicy

DEFAULT_DISCOVERY_NAME = "_core.addr.chainpoint.org"


@dataclass(frozen=True)
class StaticEndpoint:
    """Use the configured base URI for every request; no discovery."""
    uri: EndpointUri


@dataclass(frozen=True)
class DiscoverViaDNS:
    """Discover candidate Core hosts from the TXT records of ``name``."""
    name: str = DEFAULT_DISCOVERY_NAME


EndpointMode = Union[StaticEndpoint, DiscoverViaDNS]


@dataclass(frozen=True)
class NodeSettings:
    """Read-only, process-wide settings consumed by the subsystem."""
    endpoint_mode: EndpointMode
    node_address: Optional[str]
    node_version: str
    retry_policy: RetryPolicy = field(default_factory=RetryPolicy)
    request_timeout_s: float = 10.0
    dns_timeout_s: float = 5.0
    state_dir: Optional[Path] = None

    @property
    def discovery_enabled(self) -> bool:
        return isinstance(self.endpoint_mode, DiscoverViaDNS)
