import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Any, Optional

from dotenv import dotenv_values


DEFAULT_BASE_URL = 'https://spclient.wg.spotify.com'
DEFAULT_TIMEOUT_SECONDS = 15.0
DEFAULT_LOG_LEVEL = 'INFO'

ENV_BASE_URL = 'CONTEXTPAGES_BASE_URL'
ENV_ACCESS_TOKEN = 'CONTEXTPAGES_ACCESS_TOKEN'
ENV_TIMEOUT = 'CONTEXTPAGES_TIMEOUT'
ENV_LOG_LEVEL = 'CONTEXTPAGES_LOG_LEVEL'

_LOG_LEVELS = {'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'}


class ConfigError(Exception):
    """Configuration error."""
    pass


@dataclass(frozen=True)
class TransportSettings:
    """Settings for the remote transport used to resolve and fetch pages."""

    base_url: str = DEFAULT_BASE_URL
    access_token: Optional[str] = None
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    log_level: str = DEFAULT_LOG_LEVEL

    def summary(self) -> Dict[str, Any]:
        """Get settings summary (without sensitive data)."""
        return {
            'base_url': self.base_url,
            'has_access_token': bool(self.access_token),
            'timeout_seconds': self.timeout_seconds,
            'log_level': self.log_level,
        }


def _read_env(env_file: Optional[str]) -> Dict[str, str]:
    """Merge a .env file with the process environment; the environment wins."""
    values: Dict[str, str] = {}
    if env_file:
        path = Path(env_file)
        if not path.exists():
            raise ConfigError(f"Env file not found: {path}")
        values.update({k: v for k, v in dotenv_values(path).items() if v is not None})
    values.update(os.environ)
    return values


def load_settings(env_file: Optional[str] = None) -> TransportSettings:
    """Load transport settings from the environment and an optional .env file."""
    env = _read_env(env_file)

    base_url = env.get(ENV_BASE_URL, DEFAULT_BASE_URL).strip()
    if not base_url.startswith(('http://', 'https://')):
        raise ConfigError(f"{ENV_BASE_URL} must be an http(s) url, got {base_url!r}")

    raw_timeout = env.get(ENV_TIMEOUT)
    timeout = DEFAULT_TIMEOUT_SECONDS
    if raw_timeout:
        try:
            timeout = float(raw_timeout)
        except ValueError:
            raise ConfigError(f"{ENV_TIMEOUT} must be a number, got {raw_timeout!r}")
        if timeout <= 0:
            raise ConfigError(f"{ENV_TIMEOUT} must be positive, got {raw_timeout!r}")

    log_level = env.get(ENV_LOG_LEVEL, DEFAULT_LOG_LEVEL).upper()
    if log_level not in _LOG_LEVELS:
        raise ConfigError(f"{ENV_LOG_LEVEL} must be one of {sorted(_LOG_LEVELS)}, got {log_level!r}")

    return TransportSettings(
        base_url=base_url.rstrip('/'),
        access_token=env.get(ENV_ACCESS_TOKEN) or None,
        timeout_seconds=timeout,
        log_level=log_level,
    )


_settings: Optional[TransportSettings] = None


def get_settings() -> TransportSettings:
    """Get global settings, loading them from the environment on first use."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def setup_config(env_file: Optional[str] = None) -> TransportSettings:
    """Reload global settings, optionally from a custom .env file."""
    global _settings
    _settings = load_settings(env_file)
    return _settings
