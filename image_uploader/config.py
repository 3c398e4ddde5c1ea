"""Configuration and secrets management for Image Uploader.

Handles loading secrets.json, validating configuration, and building
the object store configuration.
"""

import json
from pathlib import Path
from typing import Any

from .errors import ConfigError
from .models import S3Config

REQUIRED_FIELDS = [
    ("aws", "key"),
    ("aws", "secret"),
]


def get_config_dir() -> Path:
    """Get or create the config directory.

    Returns:
        Path to config directory (~/.config/image-uploader/)
    """
    config_dir = Path.home() / ".config" / "image-uploader"
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


def load_secrets(secrets_path: Path | None = None) -> dict[str, Any]:
    """Load secrets.json.

    Searches for secrets.json in the following order:
    1. Explicit path if provided
    2. ~/.config/image-uploader/secrets.json (recommended)
    3. ./secrets.json (current directory)

    Args:
        secrets_path: Optional explicit path to secrets.json

    Returns:
        Dictionary containing all secrets

    Raises:
        ConfigError: If secrets.json is missing or invalid
    """
    if secrets_path is not None:
        if not secrets_path.exists():
            raise ConfigError(f"secrets.json not found at {secrets_path}.")
        found_path = secrets_path
    else:
        config_path = get_config_dir() / "secrets.json"
        local_path = Path("secrets.json")

        if config_path.exists():
            found_path = config_path
        elif local_path.exists():
            found_path = local_path
        else:
            raise ConfigError(
                f"secrets.json not found at {config_path}. "
                'Create it with {"aws": {"key": "...", "secret": "..."}}.'
            )

    try:
        with open(found_path) as f:
            secrets = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {found_path}: {e}")

    if not isinstance(secrets, dict):
        raise ConfigError(f"Expected a JSON object in {found_path}")

    return secrets


def validate_config(secrets: dict[str, Any]) -> None:
    """Validate that all required configuration fields are present.

    Args:
        secrets: Dictionary loaded from secrets.json

    Raises:
        ConfigError: If required fields are missing
    """
    for section, field in REQUIRED_FIELDS:
        if section not in secrets:
            raise ConfigError(f"Missing required section: {section}")
        if field not in secrets[section] or not secrets[section][field]:
            raise ConfigError(f"Missing required field: {section}.{field}")


def get_s3_config(secrets: dict[str, Any]) -> S3Config:
    """Extract object store configuration from secrets.

    Args:
        secrets: Dictionary loaded from secrets.json

    Returns:
        S3Config dataclass with credentials
    """
    aws = secrets["aws"]
    return S3Config(
        key=aws["key"],
        secret=aws["secret"],
        acl=aws.get("acl") or "public-read",
        region=aws.get("region"),
        endpoint_url=aws.get("endpoint_url"),
        bucket=aws.get("bucket"),
    )


def check_s3_config(config: S3Config) -> None:
    """Ensure credentials are present on an already-built config.

    Raises:
        ConfigError: If the key or secret is empty
    """
    if not config.key:
        raise ConfigError('Missing required field: aws.key')
    if not config.secret:
        raise ConfigError('Missing required field: aws.secret')
