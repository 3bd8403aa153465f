from pathlib import Path

import pytest

from corelink.domain.models.common import RetryPolicy
from corelink.domain.models.settings import DEFAULT_DISCOVERY_NAME, DiscoverViaDNS, StaticEndpoint
from corelink.infrastructure.config import settings


@pytest.mark.parametrize("base_uri", ["http://0.0.0.0", "http://0.0.0.0/", " http://0.0.0.0 "])
def test_sentinel_uri_selects_discovery(base_uri):
    assert settings.parse_endpoint_mode(base_uri) == DiscoverViaDNS(name=DEFAULT_DISCOVERY_NAME)


def test_concrete_uri_selects_static_endpoint():
    mode = settings.parse_endpoint_mode("https://core.example.org:8443")
    assert mode == StaticEndpoint(uri="https://core.example.org:8443")


@pytest.mark.parametrize("base_uri", ["core.example.org", "", "/relative"])
def test_non_absolute_uri_is_rejected(base_uri):
    with pytest.raises(ValueError, match="absolute URI"):
        settings.parse_endpoint_mode(base_uri)


def test_test_config_overrides_environment(monkeypatch):
    monkeypatch.setenv("NODE_TNT_ADDRESS", "0xFROMENV")
    assert settings.get_config("NODE_TNT_ADDRESS") == "0xFROMENV"
    settings.set_config_for_testing({"NODE_TNT_ADDRESS": "0xFROMTEST"})
    assert settings.get_config("NODE_TNT_ADDRESS") == "0xFROMTEST"


def test_get_config_default_when_missing(monkeypatch):
    monkeypatch.delenv("CORE_SOMETHING_UNSET", raising=False)
    assert settings.get_config("CORE_SOMETHING_UNSET", "fallback") == "fallback"


def test_retry_policy_from_config():
    settings.set_config_for_testing({
        "CORE_RETRY_COUNT": "5",
        "CORE_RETRY_MIN_DELAY": "0.5",
        "CORE_RETRY_MAX_DELAY": "2",
        "CORE_RETRY_FACTOR": "2",
        "CORE_RETRY_RANDOMIZE": "false",
    })
    assert settings.get_retry_policy() == RetryPolicy(
        retries=5, min_delay_s=0.5, max_delay_s=2.0, factor=2.0, randomize=False
    )


def test_retry_policy_invalid_values_fall_back_to_defaults():
    settings.set_config_for_testing({"CORE_RETRY_COUNT": "many", "CORE_RETRY_RANDOMIZE": "maybe"})
    policy = settings.get_retry_policy()
    assert policy.retries == RetryPolicy().retries
    assert policy.randomize is True


def test_negative_retry_count_falls_back_to_default():
    settings.set_config_for_testing({"CORE_RETRY_COUNT": "-1"})
    policy = settings.get_retry_policy()
    assert policy.retries == RetryPolicy().retries
    assert policy.max_attempts == 4


def test_zero_retries_still_allows_one_attempt():
    settings.set_config_for_testing({"CORE_RETRY_COUNT": "0"})
    assert settings.get_retry_policy().max_attempts == 1


@pytest.mark.parametrize("overrides, expected", [
    ({"CORE_RETRY_MIN_DELAY": "-0.5"}, {"min_delay_s": 0.2, "max_delay_s": 0.4}),
    ({"CORE_RETRY_MIN_DELAY": "1.5"}, {"min_delay_s": 1.5, "max_delay_s": 1.5}),
    ({"CORE_RETRY_MIN_DELAY": "0.3", "CORE_RETRY_MAX_DELAY": "0.1"}, {"min_delay_s": 0.3, "max_delay_s": 0.3}),
    ({"CORE_RETRY_FACTOR": "0.5"}, {"factor": 1.0}),
])
def test_out_of_range_delays_are_corrected(overrides, expected):
    settings.set_config_for_testing(overrides)
    policy = settings.get_retry_policy()
    for field, value in expected.items():
        assert getattr(policy, field) == value
    assert 0 <= policy.min_delay_s <= policy.max_delay_s
    assert policy.factor >= 1


def test_load_node_settings_static(tmp_path):
    settings.set_config_for_testing({
        "CORE_API_BASE_URI": "https://core.example.org",
        "NODE_TNT_ADDRESS": "0xNODE",
        "CORELINK_STATE_DIR": str(tmp_path / "state"),
        "CORE_REQUEST_TIMEOUT": "3",
    })
    node = settings.load_node_settings()
    assert node.endpoint_mode == StaticEndpoint(uri="https://core.example.org")
    assert node.discovery_enabled is False
    assert node.node_address == "0xNODE"
    assert node.node_version
    assert node.request_timeout_s == 3.0
    assert node.state_dir == Path(tmp_path / "state")


def test_load_node_settings_discovery_name():
    settings.set_config_for_testing({
        "CORE_API_BASE_URI": "http://0.0.0.0",
        "CORE_DISCOVERY_NAME": "_core.addr.test.example",
    })
    node = settings.load_node_settings()
    assert node.endpoint_mode == DiscoverViaDNS(name="_core.addr.test.example")
    assert node.discovery_enabled is True


def test_load_configuration_reads_yaml(tmp_path, monkeypatch):
    config_file = tmp_path / "config.yaml"
    config_file.write_text("CORE_DISCOVERY_NAME: _core.addr.yaml.example\n")
    monkeypatch.setattr(settings, "_loaded", False)
    monkeypatch.setattr(settings, "_config", {})
    monkeypatch.delenv("CORE_DISCOVERY_NAME", raising=False)
    monkeypatch.chdir(tmp_path)

    settings.load_configuration(config_file=config_file)

    assert settings.get_config("CORE_DISCOVERY_NAME") == "_core.addr.yaml.example"
