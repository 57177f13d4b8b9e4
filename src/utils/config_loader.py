"""
Upload profile loader and validator.

Loads YAML files describing a set of CSV uploads (new files or new
versions of existing Box files) and validates them against the expected
schema before anything is sent to Box.

Example profile (config/monthly_reports.yaml):
    ```yaml
    version: "1.0"

    uploads:
      - file: reports/sales.csv
        folder: "123456789"
        name: sales-2026-10.csv
        preflight: true
        content_created_at: "2026-10-01T00:00:00Z"

      - file: reports/inventory.csv
        version_of: "987654321"
        if_match: "3"
    ```

Usage:
    >>> from src.utils.config_loader import load_config, validate_config
    >>> config = load_config("config/monthly_reports.yaml")
    >>> errors = validate_config(config)
    >>> if not errors:
    ...     print(f"Uploading {len(config['uploads'])} files")
"""

import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from src.utils.logging import get_logger

logger = get_logger(__name__)


SUPPORTED_VERSIONS = ["1.0"]

# Keys accepted in each uploads[] entry
UPLOAD_KEYS = [
    "file",
    "folder",
    "name",
    "preflight",
    "content_created_at",
    "content_modified_at",
    "version_of",
    "if_match",
]

TIMESTAMP_KEYS = ["content_created_at", "content_modified_at"]

# RFC 3339 date-time: full date, "T", time, and a "Z" or numeric offset
_RFC3339_PATTERN = re.compile(
    r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d+)?(Z|[+-]\d{2}:\d{2})$"
)


@dataclass
class ConfigError:
    """Validation error in configuration file."""

    field: str
    message: str
    value: Optional[Any] = None

    def __str__(self) -> str:
        if self.value is not None:
            return f"{self.field}: {self.message} (got: {self.value})"
        return f"{self.field}: {self.message}"


def load_config(config_path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load upload profile from YAML file.

    Args:
        config_path: Path to YAML profile

    Returns:
        Dictionary containing parsed profile

    Raises:
        FileNotFoundError: If profile doesn't exist
        ValueError: If path is not a file, or the file is empty or not a mapping
        yaml.YAMLError: If YAML is malformed
    """
    path = Path(config_path)
    logger.info(f"Loading upload profile from: {path}")

    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    if not path.is_file():
        raise ValueError(f"Configuration path is not a file: {path}")

    try:
        with open(path, "r") as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        logger.error(f"Failed to parse YAML: {e}")
        raise

    if config is None:
        raise ValueError("Configuration file is empty")

    if not isinstance(config, dict):
        raise ValueError(f"Configuration must be a mapping, got {type(config).__name__}")

    logger.info(f"Upload profile loaded: {len(config.get('uploads') or [])} entries")
    return dict(config)


def validate_config(config: Dict[str, Any]) -> List[ConfigError]:
    """
    Validate upload profile against expected schema.

    Args:
        config: Profile dictionary to validate

    Returns:
        List of validation errors (empty if valid)

    Example:
        >>> errors = validate_config({"version": "1.0", "uploads": []})
        >>> print(errors[0])
        uploads: Must contain at least one upload
    """
    errors: List[ConfigError] = []

    if "version" not in config:
        errors.append(ConfigError("version", "Missing required field"))
    elif str(config["version"]) not in SUPPORTED_VERSIONS:
        errors.append(
            ConfigError(
                "version",
                f"Unsupported version (supported: {SUPPORTED_VERSIONS})",
                config["version"],
            )
        )

    errors.extend(_validate_uploads(config))

    if errors:
        logger.warning(f"Configuration validation failed with {len(errors)} errors")
    else:
        logger.info("Configuration validation passed")

    return errors


def _validate_uploads(config: Dict[str, Any]) -> List[ConfigError]:
    errors: List[ConfigError] = []

    if "uploads" not in config:
        errors.append(ConfigError("uploads", "Missing required field"))
        return errors

    uploads = config["uploads"]
    if not isinstance(uploads, list):
        errors.append(ConfigError("uploads", "Must be a list", type(uploads).__name__))
        return errors

    if len(uploads) == 0:
        errors.append(ConfigError("uploads", "Must contain at least one upload"))

    for i, upload in enumerate(uploads):
        prefix = f"uploads[{i}]"

        if not isinstance(upload, dict):
            errors.append(ConfigError(prefix, "Must be a mapping", type(upload).__name__))
            continue

        if "file" not in upload:
            errors.append(ConfigError(f"{prefix}.file", "Missing required field"))

        for key in upload:
            if key not in UPLOAD_KEYS:
                errors.append(ConfigError(f"{prefix}.{key}", "Unknown field"))

        for key in ("folder", "version_of", "if_match"):
            # Box ids and etags are numeric strings; YAML may hand them over as ints
            if key in upload and not isinstance(upload[key], (str, int)):
                errors.append(
                    ConfigError(
                        f"{prefix}.{key}",
                        "Must be a string or number",
                        type(upload[key]).__name__,
                    )
                )

        if "folder" in upload and "version_of" in upload:
            errors.append(
                ConfigError(prefix, "Use either 'folder' or 'version_of', not both")
            )

        if "if_match" in upload and "version_of" not in upload:
            errors.append(
                ConfigError(f"{prefix}.if_match", "Only valid together with 'version_of'")
            )

        if "preflight" in upload and not isinstance(upload["preflight"], bool):
            errors.append(
                ConfigError(
                    f"{prefix}.preflight", "Must be true or false", upload["preflight"]
                )
            )

        for key in TIMESTAMP_KEYS:
            if key in upload and not _is_timestamp(upload[key]):
                errors.append(
                    ConfigError(f"{prefix}.{key}", "Must be an RFC 3339 timestamp", upload[key])
                )

    return errors


def _is_timestamp(value: Any) -> bool:
    # YAML parses unquoted timestamps into datetime objects; those without
    # an offset are naive and cannot be sent as RFC 3339
    if isinstance(value, datetime):
        return value.tzinfo is not None
    if not isinstance(value, str) or not _RFC3339_PATTERN.match(value):
        return False
    try:
        datetime.strptime(value[:19], "%Y-%m-%dT%H:%M:%S")
    except ValueError:
        return False
    return True


def get_config_examples() -> Dict[str, str]:
    """
    Get example upload profile templates.

    Example:
        >>> examples = get_config_examples()
        >>> print(examples["new_files"])
    """
    return {
        "new_files": """version: "1.0"

uploads:
  - file: reports/sales.csv
    folder: "0"
    preflight: true

  - file: reports/returns.csv
    folder: "123456789"
    name: returns-2026-10.csv
    content_created_at: "2026-10-01T00:00:00Z"
    content_modified_at: "2026-10-18T09:00:00Z"
""",
        "new_versions": """version: "1.0"

uploads:
  - file: reports/inventory.csv
    version_of: "987654321"
    if_match: "3"
""",
    }
