"""Provides functions for loading and accessing configuration settings.

Supports loading from .env files, environment variables, and a dedicated
configuration file (~/.corelink/config.yaml), and builds the read-only
NodeSettings object the discovery and request subsystem consumes.
"""

import logging
import os
from importlib import metadata
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import urlsplit

import yaml
from dotenv import load_dotenv

from corelink import __version__
from corelink.domain.models.common import EndpointUri, RetryPolicy
from corelink.domain.models.settings import (
    DEFAULT_DISCOVERY_NAME,
    DiscoverViaDNS,
    EndpointMode,
    NodeSettings,
    StaticEndpoint,
)

logger = logging.getLogger(__name__)

# --- Configuration Constants ---
DEFAULT_CONFIG_DIR = Path.home() / ".corelink"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"
DEFAULT_STATE_DIR = DEFAULT_CONFIG_DIR / "state"
ENV_FILE_NAME = ".env"

# Base URI value meaning "discover a Core via DNS"
DISCOVERY_SENTINEL_URI = "http://0.0.0.0"

_config: Dict[str, Any] = {}
_test_config: Dict[str, Any] = {}
_loaded = False


def load_configuration(config_file: Path = DEFAULT_CONFIG_FILE, env_file: Optional[Path] = None) -> None:
    """Loads configuration from environment, .env file, and YAML file.

    Priority order (highest to lowest):
    1. Environment Variables
    2. .env file
    3. YAML configuration file
    4. Default values passed to get_config

    Args:
        config_file: Path to the YAML configuration file.
        env_file: Path to the .env file (searches upwards from cwd if None).
    """
    global _config, _loaded
    if _loaded:
        logger.debug("Configuration already loaded.")
        return

    _config = {}

    # 1. YAML file (lowest priority)
    if config_file.exists():
        try:
            with open(config_file, 'r') as f:
                yaml_config = yaml.safe_load(f)
            if isinstance(yaml_config, dict):
                _config.update(yaml_config)
                logger.info(f"Loaded configuration from YAML: {config_file}")
            elif yaml_config is not None:
                logger.warning(f"YAML config file {config_file} did not contain a dictionary.")
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to load or parse YAML config {config_file}: {e}")
    else:
        logger.debug(f"YAML config file not found: {config_file}")

    # 2. .env file; override=False so real environment variables win
    dotenv_path = env_file or find_dotenv_path()
    if dotenv_path:
        if load_dotenv(dotenv_path=dotenv_path, override=False):
            logger.info(f"Loaded environment variables from: {dotenv_path}")
    else:
        logger.debug("No .env file found at or above the current directory.")

    _loaded = True
    logger.debug("Configuration loading process completed.")


def get_config(key: str, default: Any = None) -> Any:
    """
    Get a configuration value by key.

    Priority:
    1. Test configuration (if set)
    2. Environment variable (key upper-cased)
    3. YAML config
    4. Default value

    Args:
        key: The configuration key
        default: Default value if the key is not found

    Returns:
        The configuration value
    """
    if key in _test_config:
        return _test_config[key]

    env_key = key.upper()
    if env_key in os.environ:
        return os.environ[env_key]

    if key in _config:
        return _config[key]

    logger.debug(f"Config key '{key}' not found in environment or loaded config. Returning default: {default}")
    return default


def find_dotenv_path() -> Optional[Path]:
    """Searches for the .env file upwards from the current directory."""
    cwd = Path.cwd()
    for path in [cwd] + list(cwd.parents):
        env_path = path / ENV_FILE_NAME
        if env_path.is_file():
            return env_path
    return None


# --- Typed Accessors ---

def _as_float(key: str, default: float) -> float:
    value = get_config(key, default)
    try:
        return float(value)
    except (TypeError, ValueError):
        logger.warning(f"Invalid number for '{key}': {value!r}. Using {default}.")
        return default


def _as_int(key: str, default: int) -> int:
    value = get_config(key, default)
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning(f"Invalid integer for '{key}': {value!r}. Using {default}.")
        return default


def _as_bool(key: str, default: bool) -> bool:
    value = get_config(key, default)
    if isinstance(value, str):
        if value.lower() in ('true', '1', 'yes'):
            return True
        if value.lower() in ('false', '0', 'no'):
            return False
        logger.warning(f"Unexpected string value for '{key}': '{value}'. Using {default}.")
        return default
    return bool(value)


def parse_endpoint_mode(base_uri: str, discovery_name: str = DEFAULT_DISCOVERY_NAME) -> EndpointMode:
    """Converts the configured base URI into an explicit endpoint mode.

    Args:
        base_uri: The CORE_API_BASE_URI setting.
        discovery_name: TXT record name used when discovery is enabled.

    Raises:
        ValueError: If the URI is not absolute.
    """
    base_uri = base_uri.strip()
    if base_uri.rstrip('/') == DISCOVERY_SENTINEL_URI:
        return DiscoverViaDNS(name=discovery_name)
    parts = urlsplit(base_uri)
    if not parts.scheme or not parts.netloc:
        raise ValueError(f"CORE_API_BASE_URI must be an absolute URI, got '{base_uri}'")
    return StaticEndpoint(uri=EndpointUri(base_uri))


def get_node_version() -> str:
    """Version of the installed package, sent to Cores as X-Node-Version."""
    try:
        return metadata.version("corelink")
    except metadata.PackageNotFoundError:
        return __version__


def get_retry_policy() -> RetryPolicy:
    """Builds the retry policy, replacing out-of-range values with safe ones."""
    defaults = RetryPolicy()
    retries = _as_int('CORE_RETRY_COUNT', defaults.retries)
    if retries < 0:
        logger.warning(f"CORE_RETRY_COUNT must not be negative, got {retries}. Using {defaults.retries}.")
        retries = defaults.retries

    min_delay = _as_float('CORE_RETRY_MIN_DELAY', defaults.min_delay_s)
    if min_delay < 0:
        logger.warning(f"CORE_RETRY_MIN_DELAY must not be negative, got {min_delay}. Using {defaults.min_delay_s}.")
        min_delay = defaults.min_delay_s

    max_delay = _as_float('CORE_RETRY_MAX_DELAY', defaults.max_delay_s)
    if max_delay < min_delay:
        logger.warning(f"CORE_RETRY_MAX_DELAY ({max_delay}) is below the minimum delay. Using {min_delay}.")
        max_delay = min_delay

    factor = _as_float('CORE_RETRY_FACTOR', defaults.factor)
    if factor < 1:
        logger.warning(f"CORE_RETRY_FACTOR must be at least 1, got {factor}. Using {defaults.factor}.")
        factor = defaults.factor

    return RetryPolicy(
        retries=retries,
        min_delay_s=min_delay,
        max_delay_s=max_delay,
        factor=factor,
        randomize=_as_bool('CORE_RETRY_RANDOMIZE', defaults.randomize),
    )


def load_node_settings() -> NodeSettings:
    """Builds the NodeSettings object from the loaded configuration."""
    load_configuration()
    base_uri = str(get_config('CORE_API_BASE_URI', DISCOVERY_SENTINEL_URI))
    discovery_name = str(get_config('CORE_DISCOVERY_NAME', DEFAULT_DISCOVERY_NAME))
    node_address = get_config('NODE_TNT_ADDRESS')
    state_dir = get_config('CORELINK_STATE_DIR')

    settings = NodeSettings(
        endpoint_mode=parse_endpoint_mode(base_uri, discovery_name),
        node_address=str(node_address) if node_address is not None else None,
        node_version=get_node_version(),
        retry_policy=get_retry_policy(),
        request_timeout_s=_as_float('CORE_REQUEST_TIMEOUT', 10.0),
        dns_timeout_s=_as_float('CORE_DNS_TIMEOUT', 5.0),
        state_dir=Path(state_dir).expanduser() if state_dir else DEFAULT_STATE_DIR,
    )
    if settings.node_address is None:
        logger.warning("NODE_TNT_ADDRESS is not set; requests will carry no node address.")
    logger.debug(f"Node settings: {settings}")
    return settings


def set_config_for_testing(config_dict: Dict[str, Any]) -> None:
    """
    Set configuration values for testing purposes.
    These values will override any existing configuration.

    Args:
        config_dict: Dictionary of configuration values to set
    """
    _test_config.update(config_dict)
    logger.debug(f"Set testing configuration: {config_dict}")


def clear_test_config() -> None:
    """Clear all testing configuration values."""
    _test_config.clear()
    logger.debug("Cleared testing configuration")
