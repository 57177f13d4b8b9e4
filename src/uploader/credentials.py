"""
Box access token handling.

Tokens are resolved from the environment or from the token file written by
the OAuth2 sign-in glue, and wrapped in an immutable value that is passed
to every upload call.

Security Principles:
    - Never log token values
    - No default token: a missing token is an error
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Union

from src.utils.config import UploaderConfig
from src.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class BoxCredentials:
    """
    Immutable Box access token.

    Example:
        >>> creds = BoxCredentials("abc123")
        >>> creds
        BoxCredentials(source='explicit')
        >>> creds.auth_headers()
        {'Authorization': 'Bearer abc123'}
    """

    access_token: str = field(repr=False)
    source: str = "explicit"

    def __post_init__(self) -> None:
        if not self.access_token:
            raise ValueError("Access token is required")

    def auth_headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.access_token}"}

    @classmethod
    def from_env(cls, var_name: str = "BOX_ACCESS_TOKEN") -> "BoxCredentials":
        """
        Read the token from an environment variable.

        Raises:
            ValueError: If the variable is unset or empty
        """
        token = os.getenv(var_name)
        if not token:
            raise ValueError(
                f"{var_name} environment variable is required. "
                "Set it in .env or export it."
            )
        logger.debug(f"Loaded Box token from environment ({var_name})")
        return cls(access_token=token, source="environment")

    @classmethod
    def from_token_file(cls, path: Union[str, Path]) -> "BoxCredentials":
        """
        Read the token from a saved token file.

        The file is the JSON document stored after OAuth2 sign-in, e.g.
        {"access_token": "...", "refresh_token": "...", "expires_at": ...}.

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the file is not JSON or has no access_token
        """
        token_path = Path(path)
        if not token_path.is_file():
            raise FileNotFoundError(f"Token file not found: {token_path}")

        try:
            data = json.loads(token_path.read_text())
        except json.JSONDecodeError as e:
            raise ValueError(f"Token file is not valid JSON: {token_path}") from e

        token = data.get("access_token") if isinstance(data, dict) else None
        if not token:
            raise ValueError(f"Token file has no access_token: {token_path}")

        logger.debug(f"Loaded Box token from {token_path}")
        return cls(access_token=token, source=str(token_path))

    @classmethod
    def resolve(cls, config: Optional[UploaderConfig] = None) -> "BoxCredentials":
        """
        Pick a token from configuration: explicit/env token first, then token file.

        Raises:
            ValueError: If no token can be found
        """
        config = config or UploaderConfig.from_env()

        if config.access_token:
            return cls(access_token=config.access_token, source="environment")

        if Path(config.token_file).is_file():
            return cls.from_token_file(config.token_file)

        raise ValueError(
            "No Box access token found. Set BOX_ACCESS_TOKEN or sign in to "
            f"create {config.token_file}."
        )
