"""API client configuration from YAML file and environment.

Loads the `api_client:` section of a YAML file:

    api_client:
      base_url: ${API_BASE_URL:-http://localhost:8000/api/v1}
      timeout_seconds: 30
      token_file: ~/.config/authclient/tokens.json
      retry:
        max_retries: 2
        base_delay: 1.0

Environment variables ARE supported using ${VAR_NAME} syntax in YAML files,
and AUTHCLIENT_* variables override file values.
"""

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_API_BASE_URL = "http://localhost:8000/api/v1"
DEFAULT_REFRESH_PATH = "/auth/token/refresh/"

ENV_BASE_URL = "AUTHCLIENT_API_BASE_URL"
ENV_TIMEOUT = "AUTHCLIENT_API_TIMEOUT_SECONDS"
ENV_TOKEN_FILE = "AUTHCLIENT_TOKEN_FILE"


# ${VAR} or ${VAR:-default}
ENV_VAR_PATTERN = re.compile(r"\$\{(?P<name>[^}:]+)(?::-(?P<default>[^}]*))?\}")


def load_yaml(path: Path) -> Dict[str, Any]:
    """Parsed YAML document, or {} for a missing or empty file."""
    if not path.exists():
        return {}
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _substitute(text: str) -> str:
    def lookup(match: re.Match) -> str:
        default = match.group("default")
        return os.environ.get(match.group("name"), match.group(0) if default is None else default)

    return ENV_VAR_PATTERN.sub(lookup, text)


def _expand_env_vars(data: Any) -> Any:
    """Substitute environment variables in every string of a parsed YAML tree.

    Unset variables without a default are left untouched.
    """
    if isinstance(data, str):
        return _substitute(data)
    if isinstance(data, dict):
        return {key: _expand_env_vars(value) for key, value in data.items()}
    if isinstance(data, list):
        return [_expand_env_vars(item) for item in data]
    return data


def _deep_merge(base: Dict[str, Any], overlay: Dict[str, Any]) -> Dict[str, Any]:
    """New dict with overlay applied on top of base, recursing into nested sections."""
    merged = dict(base)
    for key, value in overlay.items():
        current = merged.get(key)
        merged[key] = (
            _deep_merge(current, value)
            if isinstance(current, dict) and isinstance(value, dict)
            else value
        )
    return merged


@dataclass
class ClientConfig:
    """API client configuration.

    All durations are in seconds.
    """

    api_base_url: str = DEFAULT_API_BASE_URL
    api_timeout_seconds: float = 30.0
    max_concurrent: int = 20

    # Credentials
    token_storage_key: str = "auth_tokens"
    token_file: Optional[str] = None  # None keeps credentials in memory only
    token_refresh_buffer_seconds: int = 300
    refresh_path: str = DEFAULT_REFRESH_PATH

    # Retry
    max_retries: int = 2
    retry_base_delay: float = 1.0

    def __post_init__(self):
        """Ensure proper types from YAML/env vars."""
        self.api_base_url = str(self.api_base_url).rstrip("/")
        self.api_timeout_seconds = float(self.api_timeout_seconds)
        self.max_concurrent = int(self.max_concurrent)
        self.token_refresh_buffer_seconds = int(self.token_refresh_buffer_seconds)
        self.max_retries = int(self.max_retries)
        self.retry_base_delay = float(self.retry_base_delay)
        if self.token_file == "":
            self.token_file = None

    def validate(self) -> None:
        """Raise ValueError describing every invalid setting."""
        errors = []

        if not self.api_base_url.startswith(("http://", "https://")):
            errors.append(
                f"api_base_url must start with http:// or https://, got: {self.api_base_url!r}"
            )
        if self.api_timeout_seconds <= 0:
            errors.append(f"api_timeout_seconds must be > 0, got {self.api_timeout_seconds}")
        if self.max_concurrent < 1:
            errors.append(f"max_concurrent must be >= 1, got {self.max_concurrent}")
        if self.max_retries < 0:
            errors.append(f"max_retries must be >= 0, got {self.max_retries}")
        if self.retry_base_delay < 0:
            errors.append(f"retry_base_delay must be >= 0, got {self.retry_base_delay}")
        if not self.token_storage_key:
            errors.append("token_storage_key must not be empty")
        if not self.refresh_path:
            errors.append("refresh_path must not be empty")

        if errors:
            raise ValueError("Invalid API client configuration:\n  - " + "\n  - ".join(errors))


def load_config(
    config_path: Optional[Path] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> ClientConfig:
    """Load API client configuration.

    Priority (highest to lowest):
    1. AUTHCLIENT_* environment variables
    2. overrides
    3. `api_client:` section of config_path
    4. ClientConfig defaults
    """
    section: Dict[str, Any] = {}

    if config_path is not None:
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        logger.info(f"Loading configuration from file: {config_path}")
        yaml_data = _expand_env_vars(load_yaml(config_path))
        section = yaml_data.get("api_client", {}) or {}

    if overrides:
        logger.debug(f"Applying overrides: {list(overrides.keys())}")
        section = _deep_merge(section, overrides)

    retry = section.get("retry", {}) or {}
    token_file = os.getenv(ENV_TOKEN_FILE) or section.get("token_file")

    config = ClientConfig(
        api_base_url=os.getenv(ENV_BASE_URL) or section.get("base_url", DEFAULT_API_BASE_URL),
        api_timeout_seconds=os.getenv(ENV_TIMEOUT) or section.get("timeout_seconds", 30.0),
        max_concurrent=section.get("max_concurrent", 20),
        token_storage_key=section.get("token_storage_key", "auth_tokens"),
        token_file=str(Path(token_file).expanduser()) if token_file else None,
        token_refresh_buffer_seconds=section.get("token_refresh_buffer_seconds", 300),
        refresh_path=section.get("refresh_path", DEFAULT_REFRESH_PATH),
        max_retries=retry.get("max_retries", 2),
        retry_base_delay=retry.get("base_delay", 1.0),
    )

    logger.debug(
        "Configuration loaded",
        extra={
            "base_url": config.api_base_url,
            "timeout_seconds": config.api_timeout_seconds,
            "max_concurrent": config.max_concurrent,
        },
    )

    config.validate()
    return config


__all__ = [
    "ClientConfig",
    "load_config",
    "load_yaml",
    "DEFAULT_API_BASE_URL",
    "DEFAULT_REFRESH_PATH",
]
