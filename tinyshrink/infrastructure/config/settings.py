"""Provides functions for loading client configuration.

Supports loading from .env files, environment variables, and a dedicated
YAML configuration file (e.g., ~/.tinyshrink/config.yaml). Every call
builds a fresh `ClientConfig`; nothing is stored at module level, so each
client owns the configuration it was constructed with.
"""

import logging
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import urlparse

import yaml
from dotenv import dotenv_values

logger = logging.getLogger(__name__)

# --- Configuration Constants ---
DEFAULT_CONFIG_DIR = Path.home() / ".tinyshrink"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"
ENV_FILE_NAME = ".env"
ENV_PREFIX = "TINYSHRINK_"

DEFAULT_ENDPOINT = "https://api.tinify.com/shrink"
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_MAX_UPLOAD_BYTES = 5 * 1024 * 1024

# Keys taken verbatim, never coerced to numbers
STRING_KEYS = ("api_key", "endpoint", "app_identifier", "log_level", "log_file")
# Keys that must end up as whole numbers
INT_KEYS = ("max_attempts", "requests_per_minute", "burst_capacity", "max_upload_bytes")


@dataclass(frozen=True)
class RetryConfig:
    """Retry and backoff settings."""
    max_attempts: int = 3
    base_delay: float = 0.1
    max_delay: float = 10.0
    backoff_factor: float = 2.0
    jitter: str = "none"  # "none" or "full"

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1.")
        if self.base_delay < 0 or self.max_delay < 0:
            raise ValueError("Backoff delays must be non-negative.")
        if self.backoff_factor < 1.0:
            raise ValueError("backoff_factor must be >= 1.0.")
        if self.jitter not in ("none", "full"):
            raise ValueError(f"Unknown jitter strategy: {self.jitter}")


@dataclass(frozen=True)
class RateLimitConfig:
    """Token bucket settings: steady rate plus burst capacity."""
    requests_per_minute: int = 100
    burst_capacity: int = 10

    def __post_init__(self):
        if self.requests_per_minute <= 0 or self.burst_capacity <= 0:
            raise ValueError("Rate limit values must be positive.")


@dataclass(frozen=True)
class ClientConfig:
    """Everything a ShrinkClient needs, passed explicitly at construction."""
    api_key: str
    endpoint: str = DEFAULT_ENDPOINT
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    app_identifier: Optional[str] = None
    retry: RetryConfig = field(default_factory=RetryConfig)
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
    log_level: str = "INFO"
    log_file: Optional[str] = None

    def __post_init__(self):
        if urlparse(self.endpoint).scheme != "https":
            raise ValueError(f"Endpoint must use https: {self.endpoint}")
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive.")

    def __repr__(self) -> str:
        # Never render the key itself
        return (
            f"ClientConfig(endpoint={self.endpoint!r}, timeout_seconds={self.timeout_seconds}, "
            f"retry={self.retry}, rate_limit={self.rate_limit})"
        )

    def with_overrides(self, **changes: Any) -> "ClientConfig":
        return replace(self, **changes)


def find_dotenv_path() -> Optional[Path]:
    """Searches for the .env file upwards from the current directory."""
    cwd = Path.cwd()
    for path in [cwd] + list(cwd.parents):
        env_path = path / ENV_FILE_NAME
        if env_path.is_file():
            return env_path
    return None


def _load_yaml(config_file: Path) -> Dict[str, Any]:
    if not config_file.exists():
        logger.debug(f"YAML config file not found: {config_file}")
        return {}
    with open(config_file, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"YAML config file {config_file} did not contain a mapping.")
    logger.info(f"Loaded configuration from YAML: {config_file}")
    return data


def _coerce(value: Any) -> Any:
    """Converts env-style strings to bool/int/float where they look like one."""
    if not isinstance(value, str):
        return value
    if value.lower() in ("true", "false"):
        return value.lower() == "true"
    try:
        return float(value) if "." in value else int(value)
    except ValueError:
        return value


def _as_int(name: str, value: Any) -> int:
    """Accepts 3, "3" or 3.0; rejects fractional and non-numeric values."""
    if isinstance(value, bool):
        raise ValueError(f"{name} must be a whole number, got {value!r}.")
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"{name} must be a whole number, got {value!r}.")
        return int(value)
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"{name} must be a whole number, got {value!r}.") from e


def _flatten_env(env: Dict[str, Optional[str]]) -> Dict[str, Any]:
    """Maps TINYSHRINK_* variables onto the flat keys used below."""
    flat: Dict[str, Any] = {}
    for key, value in env.items():
        if value is None:
            continue
        if key.startswith(ENV_PREFIX):
            flat[key[len(ENV_PREFIX):].lower()] = value
    # Conventional name used by other Tinify clients
    if "api_key" not in flat and env.get("TINIFY_API_KEY"):
        flat["api_key"] = env["TINIFY_API_KEY"]
    return flat


def _flatten_yaml(data: Dict[str, Any]) -> Dict[str, Any]:
    flat: Dict[str, Any] = {}
    for key, value in data.items():
        if key in ("retry", "rate_limit", "logging") and isinstance(value, dict):
            for sub_key, sub_value in value.items():
                name = f"log_{sub_key}" if key == "logging" else sub_key
                flat[name] = sub_value
        else:
            flat[key] = value
    return flat


def load_configuration(
    config_file: Path = DEFAULT_CONFIG_FILE,
    env_file: Optional[Path] = None,
    environ: Optional[Dict[str, str]] = None,
    **overrides: Any,
) -> ClientConfig:
    """Builds a ClientConfig from YAML, .env and environment variables.

    Priority order (highest to lowest):
    1. Keyword overrides
    2. Environment Variables
    3. .env file
    4. YAML configuration file
    5. Dataclass defaults

    Args:
        config_file: Path to the YAML configuration file.
        env_file: Path to the .env file (searches upwards from cwd if None).
        environ: Environment mapping to read (defaults to os.environ).
        **overrides: Flat keys (api_key, timeout_seconds, max_attempts, ...)
            taking precedence over every other source.

    Raises:
        ValueError: If no API key is found or a value is out of range.
    """
    merged: Dict[str, Any] = {}
    merged.update(_flatten_yaml(_load_yaml(config_file)))

    dotenv_path = env_file or find_dotenv_path()
    if dotenv_path and dotenv_path.is_file():
        merged.update(_flatten_env(dict(dotenv_values(dotenv_path))))
        logger.info(f"Loaded environment variables from: {dotenv_path}")
    else:
        logger.debug("Skipping .env file loading (path not found).")

    merged.update(_flatten_env(dict(os.environ if environ is None else environ)))
    merged.update({k: v for k, v in overrides.items() if v is not None})
    merged = {k: v if k in STRING_KEYS else _coerce(v) for k, v in merged.items()}
    for key in INT_KEYS:
        if key in merged:
            merged[key] = _as_int(key, merged[key])

    api_key = merged.get("api_key")
    if not api_key:
        raise ValueError(f"API key not provided. Set {ENV_PREFIX}API_KEY or TINIFY_API_KEY.")

    retry_fields = {k: merged[k] for k in ("max_attempts", "base_delay", "max_delay", "backoff_factor", "jitter") if k in merged}
    rate_fields = {k: merged[k] for k in ("requests_per_minute", "burst_capacity") if k in merged}
    client_fields = {
        k: merged[k]
        for k in ("endpoint", "timeout_seconds", "app_identifier", "max_upload_bytes", "log_level", "log_file")
        if k in merged
    }
    if "timeout" in merged and "timeout_seconds" not in client_fields:
        client_fields["timeout_seconds"] = merged["timeout"]

    config = ClientConfig(
        api_key=str(api_key),
        retry=RetryConfig(**retry_fields),
        rate_limit=RateLimitConfig(**rate_fields),
        **client_fields,
    )
    logger.info(f"Configuration loaded: {config!r}")
    return config
