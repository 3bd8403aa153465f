import logging

import httpx
import pytest

from corelink.domain.errors import RequestError, StateError, TransportError
from corelink.domain.models.common import CURRENT_ENDPOINT_KEY, RequestOptions, RetryPolicy
from corelink.infrastructure.http.httpx_transport import HttpxTransport
from corelink.infrastructure.resilience.request_dispatcher import (
    NODE_ADDRESS_HEADER,
    NODE_VERSION_HEADER,
    CoreRequestDispatcher,
)
from corelink.infrastructure.state.endpoint_store import CurrentEndpointStore


def no_response():
    return TransportError("connection refused")


def http_error(status):
    return TransportError(f"HTTP {status}", status_code=status)


@pytest.fixture
def make_dispatcher(discovery_store, recording_sleep, seeded_rng):
    def _make(transport, store=None, policy=None):
        return CoreRequestDispatcher(
            endpoint_store=store or discovery_store,
            transport=transport,
            node_version="1.0.0",
            node_address="0xNODEADDRESS",
            policy=policy or RetryPolicy(),
            sleep=recording_sleep,
            rng=seeded_rng,
        )
    return _make


@pytest.fixture
def current_core(kv_store):
    kv_store.data[CURRENT_ENDPOINT_KEY] = "a.core.example.org"


@pytest.mark.asyncio
async def test_request_success_attaches_headers_and_uri(current_core, make_dispatcher, make_transport):
    """The first successful attempt returns the body with identification headers sent."""
    transport = make_transport([{"ok": True}])
    dispatcher = make_dispatcher(transport)
    options = RequestOptions(method="POST", path="/hashes", headers={"Content-Type": "application/json"}, body={"h": 1})

    result = await dispatcher.request(options)

    assert result == {"ok": True}
    call = transport.calls[0]
    assert call['uri'] == "https://a.core.example.org/hashes"
    assert call['method'] == "POST"
    assert call['headers'][NODE_VERSION_HEADER] == "1.0.0"
    assert call['headers'][NODE_ADDRESS_HEADER] == "0xNODEADDRESS"
    assert call['headers']["Content-Type"] == "application/json"
    assert call['body'] == {"h": 1}
    # Caller's options are left untouched
    assert NODE_VERSION_HEADER not in options.headers
    assert options.path == "/hashes"


@pytest.mark.asyncio
async def test_conflict_is_terminal_after_one_attempt(current_core, make_dispatcher, make_transport, recording_sleep):
    """A 409 is surfaced at once without any retry sleep."""
    transport = make_transport([http_error(409), {"never": "reached"}])
    dispatcher = make_dispatcher(transport)

    with pytest.raises(RequestError) as exc_info:
        await dispatcher.request(RequestOptions(path="/hashes"))

    assert exc_info.value.status_code == 409
    assert exc_info.value.attempts == 1
    assert exc_info.value.retryable is False
    assert len(transport.calls) == 1
    assert recording_sleep.delays == []


@pytest.mark.asyncio
async def test_recovers_after_three_dropped_connections(current_core, make_dispatcher, make_transport, recording_sleep):
    """Three no-response failures then a 200: body returned after 3 delays."""
    transport = make_transport([no_response(), no_response(), no_response(), {"id": "abc"}])
    dispatcher = make_dispatcher(transport)

    result = await dispatcher.request(RequestOptions(path="/hashes"))

    assert result == {"id": "abc"}
    assert len(transport.calls) == 4
    assert len(recording_sleep.delays) == 3
    policy = RetryPolicy()
    assert all(policy.min_delay_s <= d <= policy.max_delay_s for d in recording_sleep.delays)


@pytest.mark.asyncio
async def test_exhausted_retries_surface_last_status(current_core, make_dispatcher, make_transport, recording_sleep):
    """Four 503s exhaust the 4-attempt budget after exactly 3 delays."""
    transport = make_transport([http_error(503)] * 4)
    dispatcher = make_dispatcher(transport)

    with pytest.raises(RequestError) as exc_info:
        await dispatcher.request(RequestOptions(path="/hashes"))

    assert exc_info.value.status_code == 503
    assert exc_info.value.attempts == 4
    assert exc_info.value.retryable is True
    assert isinstance(exc_info.value.__cause__, TransportError)
    assert len(transport.calls) == 4
    assert len(recording_sleep.delays) == 3


@pytest.mark.asyncio
async def test_exhausted_retries_without_response_have_no_status(current_core, make_dispatcher, make_transport):
    transport = make_transport([no_response()] * 2)
    dispatcher = make_dispatcher(transport, policy=RetryPolicy(retries=1, randomize=False))

    with pytest.raises(RequestError) as exc_info:
        await dispatcher.request(RequestOptions(path="/"))

    assert exc_info.value.status_code is None
    assert exc_info.value.status_label == "no response"


@pytest.mark.asyncio
async def test_server_error_then_client_error_stops(current_core, make_dispatcher, make_transport, recording_sleep):
    """A terminal status after a retryable one ends the loop immediately."""
    transport = make_transport([http_error(500), http_error(400), {"never": "reached"}])
    dispatcher = make_dispatcher(transport)

    with pytest.raises(RequestError) as exc_info:
        await dispatcher.request(RequestOptions(path="/"))

    assert exc_info.value.status_code == 400
    assert exc_info.value.attempts == 2
    assert len(recording_sleep.delays) == 1


@pytest.mark.asyncio
async def test_override_bypasses_unreadable_store(kv_store, make_dispatcher, make_transport):
    """An explicit endpoint works even when the state store cannot be read."""
    kv_store.fail_reads = True
    transport = make_transport(["pong"])
    dispatcher = make_dispatcher(transport)

    result = await dispatcher.request(RequestOptions(path="/ping", json=False), endpoint_override="b.core.example.org")

    assert result == "pong"
    assert transport.calls[0]['uri'] == "https://b.core.example.org/ping"


@pytest.mark.asyncio
async def test_unreadable_store_fails_without_attempts(kv_store, make_dispatcher, make_transport, recording_sleep):
    """Local state faults propagate before any HTTP attempt."""
    kv_store.fail_reads = True
    transport = make_transport([{"ok": True}])
    dispatcher = make_dispatcher(transport)

    with pytest.raises(StateError):
        await dispatcher.request(RequestOptions(path="/"))

    assert transport.calls == []
    assert recording_sleep.delays == []


@pytest.mark.asyncio
async def test_static_mode_uses_configured_uri(kv_store, static_mode, make_dispatcher, make_transport):
    transport = make_transport([{"ok": True}])
    dispatcher = make_dispatcher(transport, store=CurrentEndpointStore(kv_store, static_mode))

    await dispatcher.request(RequestOptions(path="/config"))

    assert transport.calls[0]['uri'] == "https://core.example.org:8443/config"


@pytest.mark.asyncio
async def test_retry_log_lines(current_core, make_dispatcher, make_transport, caplog):
    transport = make_transport([http_error(502), no_response(), "ok"])
    dispatcher = make_dispatcher(transport)

    with caplog.at_level(logging.INFO, logger="corelink.infrastructure.resilience.request_dispatcher"):
        await dispatcher.request(RequestOptions(path="/", json=False))

    messages = [r.getMessage() for r in caplog.records]
    assert "Core request : 502 : retrying" in messages
    assert "Core request : no response : retrying" in messages


@pytest.mark.asyncio
async def test_retry_log_can_be_suppressed(current_core, make_dispatcher, make_transport, caplog, recording_sleep):
    transport = make_transport([http_error(502), "ok"])
    dispatcher = make_dispatcher(transport)

    with caplog.at_level(logging.INFO, logger="corelink.infrastructure.resilience.request_dispatcher"):
        await dispatcher.request(RequestOptions(path="/", json=False), suppress_retry_log=True)

    assert not any("retrying" in r.getMessage() for r in caplog.records)
    assert len(recording_sleep.delays) == 1


@pytest.mark.asyncio
async def test_undecodable_body_is_retried_then_typed(current_core, make_dispatcher, recording_sleep):
    """A body that fails to decode surfaces as RequestError, never as an httpx exception."""
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, headers={"Content-Encoding": "gzip"}, content=b"not gzip")

    transport = HttpxTransport(client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))
    dispatcher = make_dispatcher(transport)

    with pytest.raises(RequestError) as exc_info:
        await dispatcher.request(RequestOptions(path="/config", gzip=True))
    await transport.aclose()

    assert exc_info.value.status_code is None
    assert exc_info.value.attempts == 4
    assert len(calls) == 4
    assert len(recording_sleep.delays) == 3
