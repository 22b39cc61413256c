"""Receiver configuration with environment variable support.

All settings can be configured via environment variables with the HOOKCATCH_ prefix.
Example: HOOKCATCH_DEFAULT_MAX_PAYLOADS=500 keeps the last 500 payloads per endpoint.
"""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def load_config_from_file(path: str | Path) -> dict[str, Any]:
    """Load configuration from a YAML or TOML file.

    Args:
        path: Path to the configuration file (.yaml, .yml, or .toml)

    Returns:
        Configuration dictionary

    Raises:
        FileNotFoundError: If the config file doesn't exist
        ValueError: If the config file has encoding errors, invalid syntax, or unsupported format
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        content = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise ValueError(f"Config file encoding error in {path}: {e}") from e

    try:
        if path.suffix in (".yaml", ".yml"):
            return yaml.safe_load(content) or {}
        elif path.suffix == ".toml":
            return tomllib.loads(content)
        else:
            raise ValueError(f"Unsupported config format: {path.suffix}")
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ValueError(f"Invalid TOML in {path}: {e}") from e


def flatten_config(config: dict[str, Any], prefix: str = "") -> dict[str, Any]:
    result: dict[str, Any] = {}
    for key, value in config.items():
        full_key = f"{prefix}_{key}" if prefix else key
        if isinstance(value, dict):
            result.update(flatten_config(value, full_key))
        else:
            result[full_key] = value
    return result


class ReceiverConfig(BaseSettings):
    """Webhook receiver settings.

    Use get_config() to get a cached instance.

    Example:
        config = get_config()
        print(config.default_max_payloads)
        print(config.signature_header)
    """

    model_config = SettingsConfigDict(
        env_prefix="HOOKCATCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    default_max_payloads: int = Field(
        default=100,
        gt=0,
        description="Payloads retained per endpoint when register omits maxPayloads.",
    )
    max_endpoints: int = Field(
        default=0,
        ge=0,
        description="Maximum registered endpoints. 0 for no limit.",
    )
    signature_header: str = Field(
        default="x-signature-256",
        description="Header carrying the delivery signature (matched case-insensitively).",
    )
    signature_algorithm: str = Field(
        default="sha256",
        description="hashlib algorithm used for HMAC signatures.",
    )
    generated_id_length: int = Field(
        default=12,
        ge=8,
        le=32,
        description="Length of endpoint ids generated when register omits endpointId.",
    )
    preview_chars: int = Field(
        default=200,
        gt=0,
        description="Body preview length in inspect messages.",
    )
    log_level: str = Field(
        default="info",
        description="Log level (debug, info, warning, error).",
    )
    metrics_enabled: bool = Field(
        default=True,
        description="Record prometheus metrics.",
    )

    @classmethod
    def from_file(cls, path: str | Path, **overrides: Any) -> ReceiverConfig:
        """Build a config from a YAML/TOML file.

        Nested tables are flattened with underscores, so ``[signature] header = ...``
        maps to ``signature_header``. Keyword overrides win over file values.
        """
        values = flatten_config(load_config_from_file(path))
        values.update(overrides)
        return cls(**values)

    def to_display_dict(self) -> dict[str, Any]:
        """Export current configuration as a dictionary for display."""
        return self.model_dump()


_config: ReceiverConfig | None = None


def get_config() -> ReceiverConfig:
    """Get the global configuration instance.

    Returns a cached instance of ReceiverConfig that reads from environment variables.
    To reload config (e.g., in tests), call clear_config() first.
    """
    global _config
    if _config is None:
        _config = ReceiverConfig()
    return _config


def clear_config() -> None:
    """Clear the cached configuration.

    Call this to force reloading of environment variables on next get_config() call.
    """
    global _config
    _config = None
