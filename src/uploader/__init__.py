"""
Box.com CSV uploader module.

Uploads CSV files to Box folders through the single-shot upload API, with
SHA-1 integrity hashing, optional pre-flight checks and new-version uploads
guarded by If-Match.
"""

from .client import (
    MAX_DIRECT_UPLOAD_BYTES,
    BoxUploader,
    get_current_user,
    preflight_check,
    upload_csv,
    upload_new_version,
)
from .credentials import BoxCredentials
from .errors import (
    UploadError,
    LocalNotFoundError,
    OversizeInputError,
    RemoteAuthError,
    RemoteForbiddenError,
    RemoteConflictError,
    RemoteTooLargeError,
    RemotePreconditionError,
    RemoteOtherError,
)
from .hashing import calculate_sha1
from .models import (
    BoxFile,
    PreflightOutcome,
    UploadOptions,
    UploadResult,
    VersionOptions,
)

__all__ = [
    "MAX_DIRECT_UPLOAD_BYTES",
    "BoxUploader",
    "BoxCredentials",
    "BoxFile",
    "PreflightOutcome",
    "UploadOptions",
    "UploadResult",
    "VersionOptions",
    "calculate_sha1",
    "get_current_user",
    "preflight_check",
    "upload_csv",
    "upload_new_version",
    "UploadError",
    "LocalNotFoundError",
    "OversizeInputError",
    "RemoteAuthError",
    "RemoteForbiddenError",
    "RemoteConflictError",
    "RemoteTooLargeError",
    "RemotePreconditionError",
    "RemoteOtherError",
]
