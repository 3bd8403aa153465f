"""Service for sending Core requests with automatic retries.

Resolves the target Core, attaches the node identification headers and
runs the request under a bounded, jittered backoff policy. Connection
failures, timeouts and 5xx responses are retried; any other error status
ends the call immediately.
"""

import asyncio
import dataclasses
import logging
import random
import time
from typing import Any, Awaitable, Callable, Optional, Union

from corelink.domain.errors import RequestError, TransportError
from corelink.domain.events.core_events import (
    CoreRequestFailed,
    CoreRequestInitiated,
    CoreRequestSucceeded,
    DomainEvent,
    RetryScheduled,
)
from corelink.domain.interfaces.http_transport import HttpTransport
from corelink.domain.models.common import (
    Endpoint,
    EndpointUri,
    RequestOptions,
    ResponseEnvelope,
    RetryPolicy,
    compose_endpoint_uri,
)
from corelink.infrastructure.resilience.retry_policy import Abort, classify_failure, compute_delay
from corelink.infrastructure.state.endpoint_store import CurrentEndpointStore

logger = logging.getLogger(__name__)

NODE_VERSION_HEADER = "X-Node-Version"
NODE_ADDRESS_HEADER = "X-Node-Address"

SleepFunc = Callable[[float], Awaitable[Any]]


def dispatch_event(event: DomainEvent) -> None:
    logger.debug(f"EVENT: {event}")


class CoreRequestDispatcher:
    """Sends requests to the current (or an explicit) Core with retries."""

    def __init__(
        self,
        endpoint_store: CurrentEndpointStore,
        transport: HttpTransport,
        node_version: str,
        node_address: Optional[str],
        policy: Optional[RetryPolicy] = None,
        sleep: SleepFunc = asyncio.sleep,
        rng: Optional[random.Random] = None,
    ):
        """Initializes the dispatcher.

        Args:
            endpoint_store: Source of the current Core base URI.
            transport: HTTP transport used for each attempt.
            node_version: Sent as the X-Node-Version header.
            node_address: Sent as the X-Node-Address header.
            policy: Retry policy (defaults to 3 retries, 200-400ms).
            sleep: Coroutine used to wait between attempts.
            rng: Random source for backoff jitter.
        """
        self.endpoint_store = endpoint_store
        self.transport = transport
        self.node_version = node_version
        self.node_address = node_address
        self.policy = policy or RetryPolicy()
        self.sleep = sleep
        self.rng = rng or random.Random()

        logger.debug(
            f"CoreRequestDispatcher initialized: retries={self.policy.retries}, "
            f"delay={self.policy.min_delay_s}-{self.policy.max_delay_s}s, factor={self.policy.factor}, "
            f"randomize={self.policy.randomize}"
        )

    async def _resolve_base_uri(self, endpoint_override: Optional[Endpoint]) -> EndpointUri:
        if endpoint_override:
            return compose_endpoint_uri(endpoint_override)
        return await self.endpoint_store.get_current_endpoint_uri()

    async def request(
        self,
        options: RequestOptions,
        endpoint_override: Optional[Endpoint] = None,
        suppress_retry_log: bool = False,
    ) -> Union[Any, ResponseEnvelope]:
        """Sends a request to a Core, retrying transient failures.

        Args:
            options: Method, path, headers and body of the request.
            endpoint_override: Host to use instead of the current Core.
            suppress_retry_log: Skip the per-retry INFO log line.

        Returns:
            The decoded response body, or a ResponseEnvelope when
            ``options.full_response`` is set.

        Raises:
            StateError: If the current Core cannot be read (not retried).
            RequestError: On a terminal error status, or when all attempts
                failed transiently.
        """
        # Local state faults propagate before any attempt is made
        base_uri = await self._resolve_base_uri(endpoint_override)

        headers = dict(options.headers)
        headers[NODE_VERSION_HEADER] = self.node_version
        headers[NODE_ADDRESS_HEADER] = self.node_address or ""
        prepared = dataclasses.replace(options, headers=headers)
        uri = f"{base_uri}{prepared.path}"

        last_error: Optional[TransportError] = None
        max_attempts = self.policy.max_attempts

        for attempt in range(1, max_attempts + 1):
            dispatch_event(CoreRequestInitiated(method=prepared.method, uri=uri, attempt_number=attempt))
            start_time = time.perf_counter()
            try:
                result = await self.transport.send(
                    prepared.method,
                    uri,
                    headers=prepared.headers,
                    params=prepared.params,
                    body=prepared.body,
                    json=prepared.json,
                    gzip=prepared.gzip,
                    full_response=prepared.full_response,
                )
            except TransportError as e:
                last_error = e
                decision = classify_failure(e)
                if isinstance(decision, Abort):
                    logger.warning(f"Core request {prepared.method} {uri} failed with status {e.status_code}; not retrying")
                    self._fail(prepared.method, uri, e, attempt)
                    raise RequestError(
                        f"Core request {prepared.method} {uri} failed: {e}",
                        status_code=e.status_code,
                        attempts=attempt,
                        retryable=False,
                        uri=uri,
                    ) from e

                if attempt < max_attempts:
                    delay = compute_delay(self.policy, attempt, self.rng)
                    if not suppress_retry_log:
                        self._log_retry(e)
                    dispatch_event(RetryScheduled(uri=uri, attempt_number=attempt, delay_seconds=delay, status_code=e.status_code))
                    await self.sleep(delay)
                continue

            latency_ms = (time.perf_counter() - start_time) * 1000
            dispatch_event(CoreRequestSucceeded(method=prepared.method, uri=uri, latency_ms=latency_ms, attempts=attempt))
            return result

        status = last_error.status_code if last_error else None
        logger.error(f"Max retries ({self.policy.retries}) reached for {prepared.method} {uri}. Last error: {last_error}")
        self._fail(prepared.method, uri, last_error, max_attempts)
        raise RequestError(
            f"Core request {prepared.method} {uri} failed after {max_attempts} attempts: {last_error}",
            status_code=status,
            attempts=max_attempts,
            retryable=True,
            uri=uri,
        ) from last_error

    def _log_retry(self, error: TransportError) -> None:
        # Handler failures are reported by logging.Handler.handleError, never raised
        status = error.status_code if error.status_code is not None else "no response"
        logger.info(f"Core request : {status} : retrying")

    def _fail(self, method: str, uri: str, error: Optional[TransportError], attempts: int) -> None:
        dispatch_event(CoreRequestFailed(
            method=method,
            uri=uri,
            status_code=error.status_code if error else None,
            attempts=attempts,
            error_message=str(error),
        ))
