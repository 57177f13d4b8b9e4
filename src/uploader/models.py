"""
Data models for Box upload operations.

Options are immutable per-call configuration; results wrap the file entry
Box returns.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

DEFAULT_TIMEOUT_SECONDS = 300
CSV_CONTENT_TYPE = "text/csv"


@dataclass(frozen=True)
class UploadOptions:
    """
    Options for uploading a new file.

    Attributes:
        file_name: Name to give the file on Box (default: local base name)
        preflight_check: Ask Box to validate name/size before sending content
        content_created_at: RFC 3339 creation time to record on Box
        content_modified_at: RFC 3339 modification time to record on Box
        timeout_seconds: Request timeout in seconds
    """

    file_name: Optional[str] = None
    preflight_check: bool = True
    content_created_at: Optional[str] = None
    content_modified_at: Optional[str] = None
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS


@dataclass(frozen=True)
class VersionOptions:
    """
    Options for uploading a new version of an existing Box file.

    Attributes:
        file_name: New name for the file (default: local base name)
        if_match: Expected current version (etag); Box rejects the upload with
            412 if the file has changed since
        content_modified_at: RFC 3339 modification time to record on Box
        timeout_seconds: Request timeout in seconds
    """

    file_name: Optional[str] = None
    if_match: Optional[str] = None
    content_modified_at: Optional[str] = None
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS


@dataclass(frozen=True)
class BoxFile:
    """Remote file descriptor from an upload response entry."""

    id: str
    name: str
    size: Optional[int] = None
    modified_at: Optional[str] = None
    version_id: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_entry(cls, entry: Dict[str, Any]) -> "BoxFile":
        """Build a descriptor from one item of the response's "entries" list."""
        file_version = entry.get("file_version") or {}
        return cls(
            id=str(entry["id"]),
            name=entry.get("name", ""),
            size=entry.get("size"),
            modified_at=entry.get("modified_at"),
            version_id=file_version.get("id"),
            raw=entry,
        )

    @property
    def web_url(self) -> str:
        return f"https://app.box.com/file/{self.id}"


@dataclass(frozen=True)
class PreflightOutcome:
    """Outcome of a pre-flight check: approval, or a name conflict."""

    approved: bool
    conflict: bool = False
    conflicting_file: Optional[Any] = None

    @classmethod
    def ok(cls) -> "PreflightOutcome":
        return cls(approved=True)

    @classmethod
    def name_conflict(cls, conflicting_file: Any) -> "PreflightOutcome":
        return cls(approved=False, conflict=True, conflicting_file=conflicting_file)


@dataclass(frozen=True)
class UploadResult:
    """
    Result of a successful upload.

    Attributes:
        success: Always True; failures raise UploadError instead
        file: Descriptor of the created or updated file
        upload_time: Wall-clock seconds spent in the upload request
        sha1: Hex SHA-1 digest sent with the content
        preflight: Pre-flight outcome, or None when the check was skipped
    """

    success: bool
    file: BoxFile
    upload_time: float
    sha1: Optional[str] = None
    preflight: Optional[PreflightOutcome] = None
