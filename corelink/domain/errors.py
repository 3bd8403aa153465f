"""Exception hierarchy for corelink.

Boundary errors (storage, DNS, transport) are raised by the infrastructure
adapters. Subsystem errors (discovery, state, request) are what callers of
the resolver, the endpoint store and the dispatcher see.
"""

from typing import Any, Optional


class CorelinkError(Exception):
    """Base class for all corelink errors."""


# --- Boundary Errors ---

class StorageError(CorelinkError):
    """The key-value persistence engine failed to read or write."""


class ResolverError(CorelinkError):
    """A DNS lookup could not be completed."""


class TransportError(CorelinkError):
    """An HTTP attempt failed.

    ``status_code`` is None when no response was received at all
    (connection failure, timeout).
    """
    def __init__(self, message: str, status_code: Optional[int] = None, body: Any = None):
        self.status_code = status_code
        self.body = body
        super().__init__(message)


# --- Subsystem Errors ---

class DiscoveryError(CorelinkError):
    """Core host discovery failed; fatal to startup."""


class StateError(CorelinkError):
    """The persisted endpoint state could not be read or written."""


class RequestError(CorelinkError):
    """A Core request failed terminally or after exhausting its retries."""
    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        attempts: int = 1,
        retryable: bool = False,
        uri: Optional[str] = None,
    ):
        self.status_code = status_code
        self.attempts = attempts
        self.retryable = retryable
        self.uri = uri
        super().__init__(message)

    @property
    def status_label(self) -> str:
        """Last observed status, or 'no response'."""
        return str(self.status_code) if self.status_code is not None else "no response"
