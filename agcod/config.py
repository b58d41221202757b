"""Configuration loading for the gift-card issuer.

Supports two configuration sources:
1. Environment variables (for CI/CD and deployments) - takes priority
2. A JSON file (for local development)

Environment Variable Format:
    AGCOD_PARTNER_ID=Partner
    AGCOD_ACCESS_KEY=xxx
    AGCOD_SECRET_KEY=xxx
    AGCOD_HOST=agcod-v2-gamma.amazon.com
    AGCOD_URL=https://agcod-v2-gamma.amazon.com

Optional overrides: AGCOD_REGION, AGCOD_SERVICE, AGCOD_AMOUNT,
AGCOD_CURRENCY, AGCOD_TIMEOUT.
"""

import json
import os
from pathlib import Path
from typing import Any, Optional

from agcod.models import IssuerConfig, MAX_REQUEST_ID_LENGTH, REQUEST_ID_SEGMENT_LENGTH


class ConfigError(Exception):
    """Raised when configuration loading or validation fails."""

    pass


ENV_PREFIX = "AGCOD_"

# Required fields for an issuer configuration
REQUIRED_FIELDS = [
    "partner_id",
    "access_key",
    "secret_key",
    "host",
    "base_url",
]

# Environment variable for each configuration field
ENV_VARS = {
    "partner_id": "AGCOD_PARTNER_ID",
    "access_key": "AGCOD_ACCESS_KEY",
    "secret_key": "AGCOD_SECRET_KEY",
    "host": "AGCOD_HOST",
    "base_url": "AGCOD_URL",
    "region_name": "AGCOD_REGION",
    "service_name": "AGCOD_SERVICE",
    "amount": "AGCOD_AMOUNT",
    "currency_code": "AGCOD_CURRENCY",
    "timeout": "AGCOD_TIMEOUT",
}

# Fields that must hold text
STRING_FIELDS = REQUIRED_FIELDS + ["region_name", "service_name", "currency_code"]

# Longest partner ID that still leaves room for "-" and the random segment
MAX_PARTNER_ID_LENGTH = MAX_REQUEST_ID_LENGTH - REQUEST_ID_SEGMENT_LENGTH - 1


def validate_config(config: IssuerConfig) -> IssuerConfig:
    """Check field-level constraints of a configuration.

    Args:
        config: The configuration to check.

    Returns:
        The same configuration, for chaining.

    Raises:
        ConfigError: On the first field that violates a constraint.
    """
    for name in REQUIRED_FIELDS:
        if not getattr(config, name):
            raise ConfigError(f"Missing required field '{name}'")

    for name in STRING_FIELDS:
        value = getattr(config, name)
        if not isinstance(value, str):
            raise ConfigError(f"{name} must be a string, got {type(value).__name__}")

    if len(config.partner_id) > MAX_PARTNER_ID_LENGTH:
        raise ConfigError(
            f"partner_id must be at most {MAX_PARTNER_ID_LENGTH} characters "
            f"to keep creation request IDs within {MAX_REQUEST_ID_LENGTH}"
        )

    if isinstance(config.amount, bool) or not isinstance(config.amount, int) or config.amount <= 0:
        raise ConfigError(f"amount must be a positive integer, got {config.amount!r}")

    if not config.base_url.startswith(("http://", "https://")):
        raise ConfigError(f"base_url must start with http:// or https://, got {config.base_url!r}")

    if (
        isinstance(config.timeout, bool)
        or not isinstance(config.timeout, (int, float))
        or config.timeout <= 0
    ):
        raise ConfigError(f"timeout must be positive, got {config.timeout!r}")

    return config


def _coerce(values: dict[str, Any]) -> dict[str, Any]:
    """Convert string values from the environment to field types."""
    coerced = dict(values)
    try:
        if "amount" in coerced:
            coerced["amount"] = int(coerced["amount"])
        if "timeout" in coerced:
            coerced["timeout"] = float(coerced["timeout"])
    except ValueError as e:
        raise ConfigError(f"Invalid numeric value: {e}") from e
    return coerced


def load_from_json(config_path: str) -> IssuerConfig:
    """Load the issuer configuration from a JSON file.

    Args:
        config_path: Path to the JSON file.

    Returns:
        A validated IssuerConfig.

    Raises:
        ConfigError: If the file doesn't exist, contains invalid JSON,
                    or is missing required fields.
    """
    path = Path(config_path)

    if not path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in config file: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError("Config file must contain a JSON object")

    for field_name in REQUIRED_FIELDS:
        if field_name not in data:
            raise ConfigError(f"Missing required field '{field_name}' in {config_path}")

    values = {key: data[key] for key in ENV_VARS if key in data}
    return validate_config(IssuerConfig(**values))


def load_from_env() -> IssuerConfig:
    """Load the issuer configuration from AGCOD_* environment variables.

    Returns:
        A validated IssuerConfig.

    Raises:
        ConfigError: If a required variable is missing or a value is malformed.
    """
    values: dict[str, Any] = {}

    for field_name, env_var in ENV_VARS.items():
        value = os.environ.get(env_var)
        if value:
            values[field_name] = value
        elif field_name in REQUIRED_FIELDS:
            raise ConfigError(f"Missing environment variable: {env_var}")

    return validate_config(IssuerConfig(**_coerce(values)))


def has_env_config() -> bool:
    """Check if any AGCOD_* environment variables exist."""
    return any(key.startswith(ENV_PREFIX) for key in os.environ)


def load_config(config_path: Optional[str] = "agcod.json") -> IssuerConfig:
    """Load the issuer configuration with environment priority.

    Priority order:
    1. Environment variables (if any AGCOD_* vars exist)
    2. The JSON config file

    Args:
        config_path: Path to the JSON file (used as fallback).

    Returns:
        A validated IssuerConfig.

    Raises:
        ConfigError: If nothing is configured or the configuration is invalid.
    """
    if has_env_config():
        return load_from_env()

    if config_path and Path(config_path).exists():
        return load_from_json(config_path)

    raise ConfigError(
        "No configuration found. Set AGCOD_* environment variables "
        "or create a JSON config file."
    )
