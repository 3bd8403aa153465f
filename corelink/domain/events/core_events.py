"""Domain Events related to Core discovery and requests.

Examples include events for when a host is selected, or a request is
retried, fails or succeeds.
"""

from dataclasses import dataclass, field
import time
from typing import List, Optional


@dataclass
class DomainEvent:
    """Base class for domain events."""
    pass


@dataclass
class CoreHostSelected(DomainEvent):
    """Event triggered when discovery commits to a Core host."""
    host: str
    source: str  # 'static' or 'dns'
    candidates: List[str] = field(default_factory=list)
    timestamp: float = field(default_factory=time.time)


@dataclass
class CoreRequestInitiated(DomainEvent):
    """Event triggered when a request attempt is about to be made."""
    method: str
    uri: str
    attempt_number: int
    timestamp: float = field(default_factory=time.time)


@dataclass
class CoreRequestSucceeded(DomainEvent):
    """Event triggered when a request succeeds."""
    method: str
    uri: str
    latency_ms: float
    attempts: int
    timestamp: float = field(default_factory=time.time)


@dataclass
class CoreRequestFailed(DomainEvent):
    """Event triggered when a request fails definitively."""
    method: str
    uri: str
    status_code: Optional[int]
    attempts: int
    error_message: str
    timestamp: float = field(default_factory=time.time)


@dataclass
class RetryScheduled(DomainEvent):
    """Event triggered when a retry is scheduled for a failed request."""
    uri: str
    attempt_number: int
    delay_seconds: float
    status_code: Optional[int] = None
    timestamp: float = field(default_factory=time.time)
