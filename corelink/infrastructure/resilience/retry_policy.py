"""Retry decisions and backoff delays for Core requests.

`classify_failure` decides whether a failed attempt may be retried;
`compute_delay` gives the wait before the next attempt. Both are pure so
they can be tested without any I/O.
"""

import random
from dataclasses import dataclass
from typing import Optional, Union

from corelink.domain.errors import TransportError
from corelink.domain.models.common import RetryPolicy

# Lowest status code treated as a transient server-side failure
SERVER_ERROR_THRESHOLD = 500


@dataclass(frozen=True)
class Retry:
    """The attempt failed transiently; another attempt is allowed."""
    error: TransportError


@dataclass(frozen=True)
class Abort:
    """The attempt failed in a way that will never succeed; stop now."""
    error: TransportError


RetryDecision = Union[Retry, Abort]


def is_retryable_status(status_code: Optional[int]) -> bool:
    """No response at all, or a 5xx, is worth another attempt."""
    return status_code is None or status_code >= SERVER_ERROR_THRESHOLD


def classify_failure(error: TransportError) -> RetryDecision:
    """Classifies one failed attempt as Retry or Abort.

    Args:
        error: The transport failure of the attempt.

    Returns:
        Retry for connection failures, timeouts and 5xx responses;
        Abort for any other status (4xx and the like).
    """
    if is_retryable_status(error.status_code):
        return Retry(error)
    return Abort(error)


def compute_delay(policy: RetryPolicy, retry_number: int, rng: Optional[random.Random] = None) -> float:
    """Seconds to wait before the given retry (1-based).

    The delay is ``min_delay * jitter * factor ** (retry_number - 1)``,
    capped at ``max_delay``, where jitter is uniform in [1, 2) when the
    policy randomizes and exactly 1 otherwise.
    """
    if retry_number < 1:
        raise ValueError(f"retry_number must be >= 1, got {retry_number}")
    jitter = 1.0 + (rng or random).random() if policy.randomize else 1.0
    delay = policy.min_delay_s * jitter * (policy.factor ** (retry_number - 1))
    return min(delay, policy.max_delay_s)
