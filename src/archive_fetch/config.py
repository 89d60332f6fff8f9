"""Archive fetch configuration from YAML file.

Loads from archive_fetch/config.yaml (or a file passed with --config):
- Provider selection (azure or local) and its connection settings
- Temp directory and per-fetch limits
- Logging options

Environment variables ARE supported using ${VAR_NAME} and
${VAR_NAME:-default} syntax in YAML files. A few variables also override
the file directly (see ENV_OVERRIDES).
"""

import logging
import os
import re
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from archive_core.download.models import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_TIMEOUT_SECONDS,
    FetchConfig,
)

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = Path(__file__).parent / "config.yaml"

VALID_PROVIDERS = ["azure", "local"]
VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

# Environment variable -> dotted settings path
ENV_OVERRIDES = {
    "ARCHIVE_FETCH_PROVIDER": "provider",
    "ARCHIVE_FETCH_TMP_DIR": "tmp_dir",
    "ARCHIVE_FETCH_TIMEOUT_SECONDS": "timeout_seconds",
    "AZURE_STORAGE_ACCOUNT_URL": "azure.account_url",
    "AZURE_STORAGE_CONNECTION_STRING": "azure.connection_string",
}


def load_yaml(path: Path) -> Dict[str, Any]:
    """Load YAML file and return dict."""
    if not path.exists():
        return {}
    with open(path, "r") as f:
        return yaml.safe_load(f) or {}


def _expand_env_vars(data: Any) -> Any:
    """Recursively expand ${VAR_NAME} and ${VAR_NAME:-default} environment variables in config data."""
    if isinstance(data, dict):
        return {key: _expand_env_vars(value) for key, value in data.items()}
    elif isinstance(data, list):
        return [_expand_env_vars(item) for item in data]
    elif isinstance(data, str):
        pattern = r"\$\{([^}:]+)(?::-(([^}]*))?)?\}"

        def replacer(match):
            var_name = match.group(1)
            default_value = match.group(2) if match.group(2) is not None else match.group(0)
            return os.getenv(var_name, default_value)

        return re.sub(pattern, replacer, data)
    else:
        return data


def _deep_merge(base: Dict[str, Any], overlay: Dict[str, Any]) -> Dict[str, Any]:
    """Deep merge overlay into base dict."""
    result = base.copy()
    for key, value in overlay.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _env_overrides() -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    for env_name, dotted in ENV_OVERRIDES.items():
        value = os.getenv(env_name)
        if not value:
            continue
        target = overrides
        *parents, leaf = dotted.split(".")
        for part in parents:
            target = target.setdefault(part, {})
        target[leaf] = value
    return overrides


@dataclass
class FetchSettings:
    """Archive fetch configuration.

    Configuration structure:
        archive_fetch:
          provider: azure | local
          tmp_dir: /tmp/archive_fetch
          timeout_seconds: 300
          chunk_size: 1048576
          allowed_schemes: [gs, az]
          azure:
            account_url: https://<account>.blob.core.windows.net
            connection_string: ""
          local:
            root_dir: ./buckets
          logging:
            level: INFO
            json: false
            file: ""
    """

    provider: str = "azure"
    tmp_dir: str = field(default_factory=lambda: str(Path(tempfile.gettempdir()) / "archive_fetch"))
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    chunk_size: int = DEFAULT_CHUNK_SIZE
    allowed_schemes: Optional[List[str]] = None

    # Azure Blob Storage
    azure_account_url: str = ""
    azure_connection_string: str = ""

    # Local directory provider
    local_root_dir: str = ""

    # Logging
    log_level: str = "INFO"
    log_json: bool = False
    log_file: str = ""

    def fetch_config(self) -> FetchConfig:
        return FetchConfig(timeout_seconds=self.timeout_seconds, chunk_size=self.chunk_size)

    def validate(self) -> None:
        """Validate configuration for correctness and constraints.

        Checks provider-specific required fields and numeric ranges.
        """
        self._validate_enum("provider", self.provider, VALID_PROVIDERS)
        self._validate_enum("logging.level", self.log_level, VALID_LOG_LEVELS)

        if self.timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be > 0, got {self.timeout_seconds}")
        if self.chunk_size < 1:
            raise ValueError(f"chunk_size must be >= 1, got {self.chunk_size}")
        if not self.tmp_dir:
            raise ValueError("tmp_dir is required")

        if self.provider == "azure" and not (
            self.azure_account_url or self.azure_connection_string
        ):
            raise ValueError(
                "azure provider requires azure.account_url or azure.connection_string "
                "(or AZURE_STORAGE_ACCOUNT_URL / AZURE_STORAGE_CONNECTION_STRING)"
            )
        if self.provider == "local" and not self.local_root_dir:
            raise ValueError("local provider requires local.root_dir")

    @staticmethod
    def _validate_enum(key: str, value: Any, valid_values: List[Any]) -> None:
        """Validate that a setting's value is in a list of valid values."""
        if value not in valid_values:
            raise ValueError(f"{key} must be one of {valid_values}, got '{value}'")


def load_config(
    config_path: Optional[Path] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> FetchSettings:
    """Load archive fetch configuration from a YAML file.

    Merge priority (highest to lowest):
    1. overrides argument (CLI flags)
    2. Environment variables in ENV_OVERRIDES
    3. The YAML file (after ${VAR} expansion)
    4. FetchSettings defaults
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_FILE
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    logger.debug(f"Loading configuration from file: {config_path}")
    yaml_data = _expand_env_vars(load_yaml(config_path))

    if "archive_fetch" not in yaml_data:
        raise ValueError("Invalid config file: missing 'archive_fetch:' section")

    data = yaml_data["archive_fetch"] or {}
    data = _deep_merge(data, _env_overrides())
    if overrides:
        logger.debug(f"Applying overrides: {list(overrides.keys())}")
        data = _deep_merge(data, overrides)

    azure = data.get("azure") or {}
    local = data.get("local") or {}
    log = data.get("logging") or {}
    defaults = FetchSettings()

    allowed_schemes = data.get("allowed_schemes")
    if isinstance(allowed_schemes, str):
        allowed_schemes = [s.strip() for s in allowed_schemes.split(",") if s.strip()]

    config = FetchSettings(
        provider=str(data.get("provider") or defaults.provider).lower(),
        tmp_dir=str(data.get("tmp_dir") or defaults.tmp_dir),
        timeout_seconds=float(data.get("timeout_seconds") or defaults.timeout_seconds),
        chunk_size=int(data.get("chunk_size") or defaults.chunk_size),
        allowed_schemes=allowed_schemes or None,
        azure_account_url=azure.get("account_url") or "",
        azure_connection_string=azure.get("connection_string") or "",
        local_root_dir=str(local.get("root_dir") or ""),
        log_level=str(log.get("level") or defaults.log_level).upper(),
        log_json=bool(log.get("json", defaults.log_json)),
        log_file=str(log.get("file") or ""),
    )

    config.validate()
    logger.debug("Configuration validation passed")
    return config


__all__ = [
    "DEFAULT_CONFIG_FILE",
    "FetchSettings",
    "load_config",
    "load_yaml",
]
