import random
from typing import Any, Dict, List, Optional

import pytest
from typer.testing import CliRunner

from corelink.domain.errors import StorageError
from corelink.domain.interfaces.http_transport import HttpTransport
from corelink.domain.interfaces.key_value_store import KeyValueStore
from corelink.domain.interfaces.txt_resolver import TxtResolver
from corelink.domain.models.common import EndpointUri, RetryPolicy
from corelink.domain.models.settings import DiscoverViaDNS, NodeSettings, StaticEndpoint
from corelink.infrastructure.config import settings as settings_module
from corelink.infrastructure.state.endpoint_store import CurrentEndpointStore


class InMemoryKeyValueStore(KeyValueStore):
    """Dict-backed store that can be told to fail reads or writes."""

    def __init__(self, data: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(data or {})
        self.fail_reads = False
        self.fail_writes = False
        self.fail_write_keys: set = set()
        self.writes: List[tuple] = []

    async def get(self, key):
        if self.fail_reads:
            raise StorageError(f"read of {key} failed")
        return self.data.get(key)

    async def set(self, key, value):
        if self.fail_writes or key in self.fail_write_keys:
            raise StorageError(f"write of {key} failed")
        self.writes.append((key, value))
        self.data[key] = value


class FakeTxtResolver(TxtResolver):
    """Returns canned TXT records (or raises) and counts lookups."""

    def __init__(self, records: Optional[List[List[str]]] = None, error: Optional[Exception] = None):
        self.records = records or []
        self.error = error
        self.queries: List[str] = []

    async def resolve_txt(self, name):
        self.queries.append(name)
        if self.error:
            raise self.error
        return self.records


class ScriptedTransport(HttpTransport):
    """Plays back a script of results; exceptions in the script are raised."""

    def __init__(self, script: List[Any]):
        self.script = list(script)
        self.calls: List[Dict[str, Any]] = []

    async def send(self, method, uri, headers, params=None, body=None, json=True, gzip=False, full_response=False):
        self.calls.append({
            'method': method, 'uri': uri, 'headers': headers, 'params': params,
            'body': body, 'json': json, 'gzip': gzip, 'full_response': full_response,
        })
        outcome = self.script.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class RecordingSleep:
    """Stand-in for asyncio.sleep that records requested delays."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture(scope="session")
def runner():
    """Provides a Typer CliRunner instance."""
    return CliRunner()


@pytest.fixture(autouse=True)
def isolated_config():
    """Keep test configuration from leaking between tests."""
    settings_module.clear_test_config()
    yield
    settings_module.clear_test_config()


@pytest.fixture
def kv_store():
    return InMemoryKeyValueStore()


@pytest.fixture
def discovery_mode():
    return DiscoverViaDNS()


@pytest.fixture
def static_mode():
    return StaticEndpoint(uri=EndpointUri("https://core.example.org:8443"))


@pytest.fixture
def discovery_store(kv_store, discovery_mode):
    return CurrentEndpointStore(kv_store, discovery_mode)


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def seeded_rng():
    return random.Random(1234)


@pytest.fixture
def node_settings(discovery_mode, tmp_path):
    return NodeSettings(
        endpoint_mode=discovery_mode,
        node_address="0xNODEADDRESS",
        node_version="1.0.0",
        retry_policy=RetryPolicy(),
        state_dir=tmp_path / "state",
    )


@pytest.fixture
def make_transport():
    """Factory for ScriptedTransport instances."""
    return ScriptedTransport


@pytest.fixture
def make_txt_resolver():
    """Factory for FakeTxtResolver instances."""
    return FakeTxtResolver
