"""
Error types raised by the Box uploader.

Every failure surfaces as one subclass of UploadError. Remote errors keep
the HTTP status code and the decoded response body so callers can log or
inspect what Box actually returned.
"""

from typing import Any, Optional


class UploadError(Exception):
    """Base class for all uploader failures."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        payload: Optional[Any] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload


# ============================================================================
# Local input errors (raised before any network activity)
# ============================================================================

class LocalNotFoundError(UploadError):
    """Local path does not exist or is not a regular file."""


class OversizeInputError(UploadError):
    """Local file exceeds the direct-upload size limit."""


# ============================================================================
# Remote errors
# ============================================================================

class RemoteAuthError(UploadError):
    """Box answered 401: token missing, expired or revoked."""


class RemoteForbiddenError(UploadError):
    """Box answered 403: token lacks permission on the target."""


class RemoteConflictError(UploadError):
    """Box answered 409: an item with the same name already exists."""


class RemoteTooLargeError(UploadError):
    """Box answered 413: file exceeds the account or endpoint limit."""


class RemotePreconditionError(UploadError):
    """Box answered 412: If-Match did not match the file's current version."""


class RemoteOtherError(UploadError):
    """Any other HTTP status, transport failure or failed pre-flight check."""
