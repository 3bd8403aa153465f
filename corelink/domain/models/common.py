"""Defines common Value Objects used across the corelink domain.

These objects represent simple values like endpoints, URIs and store keys,
plus the small structures passed between the resolver, the state store and
the request dispatcher.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, NewType, Optional

# === Core Value Objects ===

# Using NewType for semantic clarity, although they are strings at runtime.
Endpoint = NewType("Endpoint", str)          # host or host:port of one Core instance
EndpointUri = NewType("EndpointUri", str)    # absolute base URI, e.g. https://host
StoreKey = NewType("StoreKey", str)          # key in the persistent key-value store

# === Persisted State Keys ===
CANDIDATE_SET_KEY = StoreKey("CoreHostTXT")
CURRENT_ENDPOINT_KEY = StoreKey("CurrentCoreHost")

SECURE_SCHEME = "https"


def compose_endpoint_uri(endpoint: Endpoint) -> EndpointUri:
    """Builds the secure base URI for a bare endpoint."""
    return EndpointUri(f"{SECURE_SCHEME}://{endpoint}")


# === Request / Response Structures ===

@dataclass
class RequestOptions:
    """Per-call description of an HTTP request to a Core."""
    method: str = "GET"
    path: str = "/"
    headers: Dict[str, str] = field(default_factory=dict)
    params: Optional[Dict[str, Any]] = None  # Query string parameters
    body: Any = None
    json: bool = True            # Encode body / decode response as JSON
    gzip: bool = False           # Ask for a compressed transfer
    full_response: bool = False  # Return a ResponseEnvelope instead of the body


@dataclass
class ResponseEnvelope:
    """Full response returned when RequestOptions.full_response is set."""
    status_code: int
    headers: Dict[str, str]
    body: Any


@dataclass(frozen=True)
class RetryPolicy:
    """Value Object representing retry backoff configuration.

    ``retries`` counts attempts beyond the first one.
    """
    retries: int = 3
    min_delay_s: float = 0.2
    max_delay_s: float = 0.4
    factor: float = 1.0
    randomize: bool = True

    @property
    def max_attempts(self) -> int:
        return self.retries + 1
