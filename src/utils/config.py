"""
Environment configuration loader for the Box CSV uploader.

Loads Box endpoints, credentials location and upload limits from a .env
file or environment variables.
"""

import os
from pathlib import Path
from typing import Optional
from dataclasses import dataclass, field

from dotenv import load_dotenv

DEFAULT_API_URL = "https://api.box.com/2.0"
DEFAULT_UPLOAD_URL = "https://upload.box.com/api/2.0"
DEFAULT_TOKEN_FILE = ".box_tokens.json"


@dataclass(frozen=True)
class UploaderConfig:
    """Uploader environment configuration."""

    # Box authentication
    access_token: Optional[str] = field(default=None, repr=False)
    token_file: str = DEFAULT_TOKEN_FILE

    # Box endpoints
    api_url: str = DEFAULT_API_URL
    upload_url: str = DEFAULT_UPLOAD_URL

    # Upload settings
    folder_id: str = "0"
    upload_timeout_seconds: int = 300

    @classmethod
    def from_env(cls) -> "UploaderConfig":
        """
        Load configuration from environment variables.

        Loads the project .env file if present, then reads os.environ.
        Nothing is required here; a missing token is reported when
        credentials are resolved.

        Returns:
            UploaderConfig instance with loaded values

        Raises:
            ValueError: If a numeric variable is not an integer
        """
        env_path = Path(__file__).parent.parent.parent / ".env"
        if env_path.exists():
            load_dotenv(env_path)

        return cls(
            access_token=os.getenv("BOX_ACCESS_TOKEN") or None,
            token_file=os.getenv("BOX_TOKEN_FILE", DEFAULT_TOKEN_FILE),
            api_url=os.getenv("BOX_API_URL", DEFAULT_API_URL).rstrip("/"),
            upload_url=os.getenv("BOX_UPLOAD_URL", DEFAULT_UPLOAD_URL).rstrip("/"),
            folder_id=os.getenv("BOX_FOLDER_ID", "0"),
            upload_timeout_seconds=int(os.getenv("UPLOAD_TIMEOUT_SECONDS", "300")),
        )


# Global config instance (lazy-loaded)
_config: Optional[UploaderConfig] = None


def get_config() -> UploaderConfig:
    """
    Get or create uploader configuration singleton.

    Example:
        >>> config = get_config()
        >>> print(config.folder_id)
        0
    """
    global _config
    if _config is None:
        _config = UploaderConfig.from_env()
    return _config
