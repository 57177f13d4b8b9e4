"""
Box.com CSV upload client.

Uploads CSV files through Box's single-shot upload API (files up to 50MB;
larger files need the chunked upload API, which this module does not
implement). Each call runs the same fixed sequence:

    validate local file -> SHA-1 -> optional pre-flight -> multipart POST
    -> translate response

Nothing is retried; the first failure is raised as an UploadError subclass.

Example usage:
    >>> from src.uploader import BoxCredentials, UploadOptions, upload_csv
    >>> creds = BoxCredentials.from_env()
    >>> result = upload_csv(creds, "./reports/sales.csv", "0")
    >>> print(result.file.id, result.upload_time)
"""

import json
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import requests

from src.uploader.credentials import BoxCredentials
from src.uploader.errors import (
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
from src.uploader.hashing import calculate_sha1
from src.uploader.models import (
    CSV_CONTENT_TYPE,
    DEFAULT_TIMEOUT_SECONDS,
    BoxFile,
    PreflightOutcome,
    UploadOptions,
    UploadResult,
    VersionOptions,
)
from src.utils.config import DEFAULT_API_URL, DEFAULT_UPLOAD_URL, UploaderConfig
from src.utils.logging import get_logger, log_function_call
from src.utils.metrics import get_metrics

logger = get_logger(__name__)

# Single-shot upload limit (50 MiB)
MAX_DIRECT_UPLOAD_BYTES = 50 * 1024 * 1024

NEW_FILE_CONFLICT_MESSAGE = (
    "File already exists. Use upload_new_version() with the existing file id "
    "to replace its content."
)

# Fixed messages for statuses with a known meaning
_STATUS_ERRORS = {
    401: (RemoteAuthError, "Authentication failed. Please check your access token."),
    403: (RemoteForbiddenError, "Access forbidden. Please check your permissions."),
    412: (
        RemotePreconditionError,
        "File was modified on Box since the expected version (If-Match mismatch).",
    ),
    413: (RemoteTooLargeError, "File too large. Maximum size is 50MB for direct upload."),
}


# ============================================================================
# Response helpers
# ============================================================================

def _response_payload(response: requests.Response) -> Any:
    """Decode a response body as JSON, falling back to raw text."""
    try:
        return response.json()
    except ValueError:
        return response.text


def _remote_message(payload: Any, fallback: str) -> str:
    if isinstance(payload, dict) and payload.get("message"):
        return str(payload["message"])
    if isinstance(payload, str) and payload:
        return payload
    return fallback


def _translate_error(
    response: requests.Response,
    conflict_message: str = "Item with the same name already exists.",
) -> UploadError:
    """Map a failed Box response to the matching UploadError subclass."""
    status = response.status_code
    payload = _response_payload(response)

    if status == 409:
        return RemoteConflictError(conflict_message, status_code=status, payload=payload)

    if status in _STATUS_ERRORS:
        error_class, message = _STATUS_ERRORS[status]
        return error_class(message, status_code=status, payload=payload)

    remote = _remote_message(payload, str(response.reason))
    return RemoteOtherError(
        f"Box API error {status}: {remote}", status_code=status, payload=payload
    )


def _validate_local_file(path: Path, file_name: str) -> int:
    """
    Check the local file before anything else happens.

    Returns:
        File size in bytes

    Raises:
        LocalNotFoundError: Path missing or not a regular file
        OversizeInputError: File larger than MAX_DIRECT_UPLOAD_BYTES
    """
    if not path.exists():
        raise LocalNotFoundError(f"File not found: {path}")

    if not path.is_file():
        raise LocalNotFoundError(f"Path is not a file: {path}")

    file_size = path.stat().st_size
    if file_size > MAX_DIRECT_UPLOAD_BYTES:
        raise OversizeInputError(
            f"File size exceeds 50MB limit ({file_size} > {MAX_DIRECT_UPLOAD_BYTES} bytes). "
            "Use chunked upload for larger files."
        )

    if not file_name.lower().endswith(".csv"):
        logger.warning(f"File does not have .csv extension: {file_name}")

    return file_size


def _post_multipart(
    url: str,
    headers: Dict[str, str],
    attributes: Dict[str, Any],
    path: Path,
    file_name: str,
    timeout_seconds: int,
    operation: str,
    conflict_message: str,
) -> Tuple[Dict[str, Any], float]:
    """
    POST attributes + file content as multipart/form-data.

    Box requires the attributes part to precede the file part.

    Returns:
        (decoded response body, upload time in seconds)
    """
    metrics = get_metrics()
    start_time = time.monotonic()

    try:
        with open(path, "rb") as f:
            parts = [
                ("attributes", (None, json.dumps(attributes))),
                ("file", (file_name, f, CSV_CONTENT_TYPE)),
            ]
            with metrics.track_upload(operation=operation):
                response = requests.post(
                    url, headers=headers, files=parts, timeout=timeout_seconds
                )
    except requests.RequestException as e:
        metrics.record_api_error(operation=operation, error_type=type(e).__name__)
        metrics.record_upload_failure(operation=operation)
        logger.error(f"Upload request to {url} failed: {e}")
        raise RemoteOtherError(f"Upload request failed: {e}") from e

    upload_time = round(max(time.monotonic() - start_time, 0.0), 2)

    if response.status_code >= 400:
        error = _translate_error(response, conflict_message=conflict_message)
        metrics.record_api_error(operation=operation, error_type=str(response.status_code))
        metrics.record_upload_failure(operation=operation)
        logger.error(f"Upload failed ({response.status_code}): {error.payload!r}")
        raise error

    body = _response_payload(response)
    entries = body.get("entries") if isinstance(body, dict) else None
    if not entries:
        metrics.record_upload_failure(operation=operation)
        raise RemoteOtherError(
            "Upload response did not contain any file entries",
            status_code=response.status_code,
            payload=body,
        )

    entry = entries[0]
    if not isinstance(entry, dict) or "id" not in entry:
        metrics.record_upload_failure(operation=operation)
        raise RemoteOtherError(
            "Upload response entry has no file id",
            status_code=response.status_code,
            payload=body,
        )

    return entry, upload_time


# ============================================================================
# Public operations
# ============================================================================

@log_function_call
def preflight_check(
    credentials: BoxCredentials,
    file_name: str,
    parent_folder_id: str,
    file_size: int,
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS,
    api_url: str = DEFAULT_API_URL,
) -> PreflightOutcome:
    """
    Ask Box whether an upload would be accepted, without sending content.

    A 409 (same name already in the folder) is not an error: it is logged and
    returned as a conflict outcome. Every other failure aborts.

    Args:
        credentials: Box access token
        file_name: Name the file will have on Box
        parent_folder_id: Target folder id ("0" is the root folder)
        file_size: Size of the content in bytes
        timeout_seconds: Request timeout

    Returns:
        PreflightOutcome

    Raises:
        RemoteOtherError: Any non-409 failure, including transport errors
    """
    metrics = get_metrics()
    url = f"{api_url}/files/content"
    headers = {**credentials.auth_headers(), "Content-Type": "application/json"}
    body = {"name": file_name, "parent": {"id": str(parent_folder_id)}, "size": file_size}

    try:
        response = requests.options(url, headers=headers, json=body, timeout=timeout_seconds)
    except requests.RequestException as e:
        metrics.record_api_error(operation="preflight", error_type=type(e).__name__)
        raise RemoteOtherError(f"Pre-flight check failed: {e}") from e

    if response.status_code == 409:
        conflicting_file = _response_payload(response)
        metrics.record_preflight_conflict()
        logger.warning(
            f"'{file_name}' already exists in folder {parent_folder_id}; "
            "continuing with a new-file upload"
        )
        return PreflightOutcome.name_conflict(conflicting_file)

    if response.status_code >= 400:
        payload = _response_payload(response)
        metrics.record_api_error(operation="preflight", error_type=str(response.status_code))
        raise RemoteOtherError(
            f"Pre-flight check failed: {_remote_message(payload, str(response.reason))}",
            status_code=response.status_code,
            payload=payload,
        )

    logger.info("Pre-flight check passed")
    return PreflightOutcome.ok()


@log_function_call
def upload_csv(
    credentials: BoxCredentials,
    file_path: Union[str, Path],
    parent_folder_id: str = "0",
    options: Optional[UploadOptions] = None,
    api_url: str = DEFAULT_API_URL,
    upload_url: str = DEFAULT_UPLOAD_URL,
) -> UploadResult:
    """
    Upload a CSV file to a Box folder as a new file.

    Args:
        credentials: Box access token
        file_path: Local path to the CSV file
        parent_folder_id: Box folder id ("0" for the root folder)
        options: UploadOptions (defaults: local name, pre-flight on, 300s timeout)

    The timeout bounds connecting and each read on the socket, not the whole
    transfer, so a slow but steady upload can take longer.

    Returns:
        UploadResult describing the created file; result.preflight holds the
        pre-flight outcome (None when the check was skipped)

    Raises:
        LocalNotFoundError: File missing (before hashing or network)
        OversizeInputError: File over 50MB (before hashing or network)
        RemoteAuthError, RemoteForbiddenError, RemoteConflictError,
        RemoteTooLargeError, RemoteOtherError: Box rejected the upload

    Example:
        >>> result = upload_csv(creds, "sales.csv", "0",
        ...                     UploadOptions(file_name="sales-2026-10.csv"))
        >>> result.file.name
        'sales-2026-10.csv'
    """
    options = options or UploadOptions()
    path = Path(file_path)
    file_name = options.file_name or path.name
    parent_folder_id = str(parent_folder_id)

    file_size = _validate_local_file(path, file_name)

    logger.info(
        f"Uploading {file_name} ({file_size / 1024:.2f} KB) to folder {parent_folder_id}"
    )

    sha1 = calculate_sha1(path)
    logger.debug(f"SHA1 {file_name}: {sha1}")

    preflight = None
    if options.preflight_check:
        preflight = preflight_check(
            credentials,
            file_name,
            parent_folder_id,
            file_size,
            timeout_seconds=options.timeout_seconds,
            api_url=api_url,
        )

    attributes: Dict[str, Any] = {"name": file_name, "parent": {"id": parent_folder_id}}
    if options.content_created_at:
        attributes["content_created_at"] = options.content_created_at
    if options.content_modified_at:
        attributes["content_modified_at"] = options.content_modified_at

    headers = {**credentials.auth_headers(), "Content-MD5": sha1}

    entry, upload_time = _post_multipart(
        f"{upload_url}/files/content",
        headers,
        attributes,
        path,
        file_name,
        options.timeout_seconds,
        operation="new_file",
        conflict_message=NEW_FILE_CONFLICT_MESSAGE,
    )

    uploaded = BoxFile.from_entry(entry)
    get_metrics().record_upload_success(bytes_uploaded=file_size, operation="new_file")
    logger.info(
        f"Upload completed in {upload_time:.2f}s: id={uploaded.id} name={uploaded.name} "
        f"size={uploaded.size} modified={uploaded.modified_at}"
    )

    return UploadResult(
        success=True,
        file=uploaded,
        upload_time=upload_time,
        sha1=sha1,
        preflight=preflight,
    )


@log_function_call
def upload_new_version(
    credentials: BoxCredentials,
    file_id: str,
    file_path: Union[str, Path],
    options: Optional[VersionOptions] = None,
    upload_url: str = DEFAULT_UPLOAD_URL,
) -> UploadResult:
    """
    Upload new content for an existing Box file.

    When options.if_match is set it is sent as If-Match, and Box refuses the
    upload with 412 if the file's current version differs.

    Args:
        credentials: Box access token
        file_id: Id of the Box file to update
        file_path: Local path to the new content
        options: VersionOptions

    Returns:
        UploadResult describing the updated file (file.version_id is set)

    Raises:
        RemotePreconditionError: If-Match did not match
        (plus the same local and remote errors as upload_csv)
    """
    options = options or VersionOptions()
    path = Path(file_path)
    file_name = options.file_name or path.name

    file_size = _validate_local_file(path, file_name)
    sha1 = calculate_sha1(path)

    attributes: Dict[str, Any] = {"name": file_name}
    if options.content_modified_at:
        attributes["content_modified_at"] = options.content_modified_at

    headers = {**credentials.auth_headers(), "Content-MD5": sha1}
    if options.if_match:
        headers["If-Match"] = options.if_match

    logger.info(f"Uploading new version for file id {file_id}")

    entry, upload_time = _post_multipart(
        f"{upload_url}/files/{file_id}/content",
        headers,
        attributes,
        path,
        file_name,
        options.timeout_seconds,
        operation="new_version",
        conflict_message="A different item with this name already exists in the folder.",
    )

    updated = BoxFile.from_entry(entry)
    get_metrics().record_upload_success(bytes_uploaded=file_size, operation="new_version")
    logger.info(f"New version uploaded: id={updated.id} version={updated.version_id}")

    return UploadResult(success=True, file=updated, upload_time=upload_time, sha1=sha1)


@log_function_call
def get_current_user(
    credentials: BoxCredentials,
    api_url: str = DEFAULT_API_URL,
    timeout_seconds: int = 30,
) -> Dict[str, Any]:
    """
    Fetch the user the token belongs to (GET /users/me).

    Useful to check a token before starting uploads.
    """
    try:
        response = requests.get(
            f"{api_url}/users/me",
            headers=credentials.auth_headers(),
            timeout=timeout_seconds,
        )
    except requests.RequestException as e:
        get_metrics().record_api_error(operation="users_me", error_type=type(e).__name__)
        raise RemoteOtherError(f"User lookup failed: {e}") from e

    if response.status_code >= 400:
        get_metrics().record_api_error(
            operation="users_me", error_type=str(response.status_code)
        )
        raise _translate_error(response)

    return _response_payload(response)


# ============================================================================
# Facade
# ============================================================================

@dataclass(frozen=True)
class BoxUploader:
    """
    Credentials and endpoints bundled for repeated calls.

    Holds no mutable state, so one instance can serve concurrent callers.

    Example:
        >>> uploader = BoxUploader.from_config()
        >>> result = uploader.upload_csv("./sales.csv", "0")
        >>> uploader.upload_new_version(result.file.id, "./sales.csv",
        ...                             VersionOptions(if_match=result.file.raw.get("etag")))
    """

    credentials: BoxCredentials
    api_url: str = DEFAULT_API_URL
    upload_url: str = DEFAULT_UPLOAD_URL

    @classmethod
    def from_config(cls, config: Optional[UploaderConfig] = None) -> "BoxUploader":
        config = config or UploaderConfig.from_env()
        return cls(
            credentials=BoxCredentials.resolve(config),
            api_url=config.api_url,
            upload_url=config.upload_url,
        )

    def preflight_check(
        self,
        file_name: str,
        parent_folder_id: str,
        file_size: int,
        timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS,
    ) -> PreflightOutcome:
        return preflight_check(
            self.credentials,
            file_name,
            parent_folder_id,
            file_size,
            timeout_seconds=timeout_seconds,
            api_url=self.api_url,
        )

    def upload_csv(
        self,
        file_path: Union[str, Path],
        parent_folder_id: str = "0",
        options: Optional[UploadOptions] = None,
    ) -> UploadResult:
        return upload_csv(
            self.credentials,
            file_path,
            parent_folder_id,
            options,
            api_url=self.api_url,
            upload_url=self.upload_url,
        )

    def upload_new_version(
        self,
        file_id: str,
        file_path: Union[str, Path],
        options: Optional[VersionOptions] = None,
    ) -> UploadResult:
        return upload_new_version(
            self.credentials, file_id, file_path, options, upload_url=self.upload_url
        )

    def get_current_user(self) -> Dict[str, Any]:
        return get_current_user(self.credentials, api_url=self.api_url)
