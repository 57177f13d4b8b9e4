"""
Unit tests for uploader module (Box upload interface).

Tests the uploader API without network access: requests.options/post/get
are patched and answer with canned Box responses. Uses temporary files to
validate local checks, multipart construction and error translation.
"""

import hashlib
import json
import logging
from pathlib import Path
from unittest.mock import patch, MagicMock

import pytest
import requests

from src.uploader import (
    MAX_DIRECT_UPLOAD_BYTES,
    BoxCredentials,
    BoxUploader,
    PreflightOutcome,
    UploadOptions,
    VersionOptions,
    get_current_user,
    preflight_check,
    upload_csv,
    upload_new_version,
    LocalNotFoundError,
    OversizeInputError,
    RemoteAuthError,
    RemoteForbiddenError,
    RemoteConflictError,
    RemoteTooLargeError,
    RemotePreconditionError,
    RemoteOtherError,
)
from src.utils.config import UploaderConfig

CSV_CONTENT = b"a,b\n1,2\n3\n"  # contents of the csv_file fixture


def make_response(status_code, body=None, text=""):
    """Build a stand-in for requests.Response."""
    response = MagicMock()
    response.status_code = status_code
    response.reason = "Reason"
    response.text = text
    if body is None:
        response.json.side_effect = ValueError("No JSON body")
    else:
        response.json.return_value = body
    return response


def file_entry(file_id="12345", name="data.csv", size=10, version_id=None):
    entry = {
        "type": "file",
        "id": file_id,
        "name": name,
        "size": size,
        "modified_at": "2026-10-18T10:00:00-07:00",
    }
    if version_id:
        entry["file_version"] = {"type": "file_version", "id": version_id}
    return entry


class TestLocalValidation:
    """Local checks run before hashing or any request."""

    @patch("src.uploader.client.requests.post")
    @patch("src.uploader.client.requests.options")
    @patch("src.uploader.client.calculate_sha1")
    def test_nonexistent_file(self, mock_sha1, mock_options, mock_post, creds):
        """Test that a missing path fails before hashing or any request."""
        with pytest.raises(LocalNotFoundError, match="File not found"):
            upload_csv(creds, "/nonexistent/file.csv", "0")

        mock_sha1.assert_not_called()
        mock_options.assert_not_called()
        mock_post.assert_not_called()

    def test_directory_path_rejected(self, creds, tmp_path: Path):
        """Test that a directory is rejected as not a file."""
        with pytest.raises(LocalNotFoundError, match="not a file"):
            upload_csv(creds, tmp_path, "0")

    @patch("src.uploader.client.requests.post")
    @patch("src.uploader.client.requests.options")
    @patch("src.uploader.client.calculate_sha1")
    def test_oversize_file(self, mock_sha1, mock_options, mock_post, creds, tmp_path: Path):
        """Test that a file over 50MB fails locally with no network call."""
        big = tmp_path / "big.csv"
        with open(big, "wb") as f:
            # Sparse file: no 50MB write needed
            f.truncate(MAX_DIRECT_UPLOAD_BYTES + 1)

        with pytest.raises(OversizeInputError, match="50MB"):
            upload_csv(creds, big, "0")

        mock_sha1.assert_not_called()
        mock_options.assert_not_called()
        mock_post.assert_not_called()

    @patch("src.uploader.client.requests.post")
    def test_exactly_limit_is_accepted(self, mock_post, creds, tmp_path: Path):
        """Test that a file of exactly 50MB is uploaded."""
        edge = tmp_path / "edge.csv"
        with open(edge, "wb") as f:
            f.truncate(MAX_DIRECT_UPLOAD_BYTES)
        mock_post.return_value = make_response(201, {"entries": [file_entry(name="edge.csv")]})

        result = upload_csv(creds, edge, "0", UploadOptions(preflight_check=False))

        assert result.success is True

    @patch("src.uploader.client.requests.post")
    def test_non_csv_extension_only_warns(self, mock_post, creds, tmp_path: Path, caplog):
        """Test that a non-.csv name logs a warning but still uploads."""
        txt = tmp_path / "data.txt"
        txt.write_bytes(CSV_CONTENT)
        mock_post.return_value = make_response(201, {"entries": [file_entry(name="data.txt")]})

        with caplog.at_level(logging.WARNING, logger="src.uploader.client"):
            result = upload_csv(creds, txt, "0", UploadOptions(preflight_check=False))

        assert result.success is True
        assert any(".csv extension" in r.getMessage() for r in caplog.records)

    @patch("src.uploader.client.requests.post")
    def test_version_upload_checks_local_file(self, mock_post, creds):
        """Test that version uploads run the same local checks."""
        with pytest.raises(LocalNotFoundError):
            upload_new_version(creds, "12345", "/nonexistent/file.csv")
        mock_post.assert_not_called()


class TestUploadCSV:
    """End-to-end behaviour of upload_csv against mocked Box endpoints."""

    @patch("src.uploader.client.requests.post")
    @patch("src.uploader.client.requests.options")
    def test_preflight_then_single_post(self, mock_options, mock_post, creds, csv_file):
        """Test that one OPTIONS precedes exactly one POST."""
        calls = []
        mock_options.side_effect = lambda *a, **kw: calls.append("options") or make_response(200, {})
        mock_post.side_effect = lambda *a, **kw: calls.append("post") or make_response(
            201, {"total_count": 1, "entries": [file_entry()]}
        )

        result = upload_csv(creds, str(csv_file), "0")

        assert calls == ["options", "post"]
        assert result.success is True
        assert result.file.name == csv_file.name
        assert result.file.id == "12345"
        assert result.upload_time >= 0
        assert result.sha1 == hashlib.sha1(CSV_CONTENT).hexdigest()

    @patch("src.uploader.client.requests.post")
    @patch("src.uploader.client.requests.options")
    def test_preflight_request_body(self, mock_options, mock_post, creds, csv_file):
        """Test pre-flight endpoint, JSON body and auth header."""
        mock_options.return_value = make_response(200, {})
        mock_post.return_value = make_response(201, {"entries": [file_entry()]})

        upload_csv(creds, csv_file, "777")

        args, kwargs = mock_options.call_args
        assert args[0] == "https://api.box.com/2.0/files/content"
        assert kwargs["json"] == {"name": "data.csv", "parent": {"id": "777"}, "size": 10}
        assert kwargs["headers"]["Authorization"] == "Bearer test-token"

    @patch("src.uploader.client.requests.post")
    def test_multipart_parts_and_headers(self, mock_post, creds, csv_file):
        """Test multipart part order, attributes and integrity header."""
        mock_post.return_value = make_response(201, {"entries": [file_entry(name="renamed.csv")]})
        options = UploadOptions(
            file_name="renamed.csv",
            preflight_check=False,
            content_created_at="2026-10-01T00:00:00Z",
            content_modified_at="2026-10-02T00:00:00Z",
        )

        upload_csv(creds, csv_file, "42", options)

        args, kwargs = mock_post.call_args
        assert args[0] == "https://upload.box.com/api/2.0/files/content"
        assert kwargs["timeout"] == 300

        parts = kwargs["files"]
        assert [name for name, _ in parts] == ["attributes", "file"]
        attributes = json.loads(parts[0][1][1])
        assert attributes == {
            "name": "renamed.csv",
            "parent": {"id": "42"},
            "content_created_at": "2026-10-01T00:00:00Z",
            "content_modified_at": "2026-10-02T00:00:00Z",
        }
        file_name, _, content_type = parts[1][1]
        assert file_name == "renamed.csv"
        assert content_type == "text/csv"

        headers = kwargs["headers"]
        assert headers["Authorization"] == "Bearer test-token"
        assert headers["Content-MD5"] == hashlib.sha1(CSV_CONTENT).hexdigest()

    @patch("src.uploader.client.requests.post")
    @patch("src.uploader.client.requests.options")
    def test_preflight_disabled(self, mock_options, mock_post, creds, csv_file):
        """Test that no OPTIONS is sent when pre-flight is off."""
        mock_post.return_value = make_response(201, {"entries": [file_entry()]})

        upload_csv(creds, csv_file, "0", UploadOptions(preflight_check=False))

        mock_options.assert_not_called()
        assert mock_post.call_count == 1

    @patch("src.uploader.client.requests.post")
    @patch("src.uploader.client.requests.options")
    def test_preflight_conflict_still_uploads_new_file(self, mock_options, mock_post, creds, csv_file):
        """Test that a pre-flight 409 continues with a new-file upload."""
        mock_options.return_value = make_response(
            409, {"type": "error", "code": "item_name_in_use", "context_info": {"conflicts": {"id": "999"}}}
        )
        mock_post.return_value = make_response(201, {"entries": [file_entry()]})

        result = upload_csv(creds, csv_file, "0")

        assert result.success is True
        assert result.preflight.conflict is True
        assert result.preflight.conflicting_file["context_info"]["conflicts"]["id"] == "999"
        # Fresh upload, not a version update
        assert mock_post.call_args[0][0] == "https://upload.box.com/api/2.0/files/content"

    @patch("src.uploader.client.requests.post")
    @patch("src.uploader.client.requests.options")
    def test_result_carries_preflight_approval(self, mock_options, mock_post, creds, csv_file):
        """Test that the result records an approved pre-flight."""
        mock_options.return_value = make_response(200, {})
        mock_post.return_value = make_response(201, {"entries": [file_entry()]})

        result = upload_csv(creds, csv_file, "0")

        assert result.preflight == PreflightOutcome.ok()

    @patch("src.uploader.client.requests.post")
    def test_result_has_no_preflight_when_skipped(self, mock_post, creds, csv_file):
        """Test that the result has no pre-flight outcome when skipped."""
        mock_post.return_value = make_response(201, {"entries": [file_entry()]})

        result = upload_csv(creds, csv_file, "0", UploadOptions(preflight_check=False))

        assert result.preflight is None

    @patch("src.uploader.client.requests.post")
    @patch("src.uploader.client.requests.options")
    def test_preflight_failure_aborts(self, mock_options, mock_post, creds, csv_file):
        """Test that a non-409 pre-flight failure aborts the upload."""
        mock_options.return_value = make_response(
            400, {"type": "error", "message": "Bad request: invalid parent"}
        )

        with pytest.raises(RemoteOtherError, match="Pre-flight check failed: Bad request"):
            upload_csv(creds, csv_file, "0")

        mock_post.assert_not_called()

    @patch("src.uploader.client.requests.post")
    @patch("src.uploader.client.requests.options")
    def test_preflight_transport_error_aborts(self, mock_options, mock_post, creds, csv_file):
        """Test that a pre-flight transport error aborts and is chained."""
        mock_options.side_effect = requests.ConnectionError("connection refused")

        with pytest.raises(RemoteOtherError, match="Pre-flight check failed") as exc_info:
            upload_csv(creds, csv_file, "0")

        assert isinstance(exc_info.value.__cause__, requests.ConnectionError)
        mock_post.assert_not_called()


class TestUploadErrors:
    """Box status codes map to specific error classes."""

    @pytest.mark.parametrize(
        "status,error_class",
        [
            (401, RemoteAuthError),
            (403, RemoteForbiddenError),
            (409, RemoteConflictError),
            (413, RemoteTooLargeError),
        ],
    )
    @patch("src.uploader.client.requests.post")
    def test_specific_status_errors(self, mock_post, status, error_class, creds, csv_file):
        """Test that 401/403/409/413 map to their own error classes."""
        body = {"type": "error", "status": status, "message": "nope"}
        mock_post.return_value = make_response(status, body)

        with pytest.raises(error_class) as exc_info:
            upload_csv(creds, csv_file, "0", UploadOptions(preflight_check=False))

        assert not isinstance(exc_info.value, RemoteOtherError)
        assert exc_info.value.status_code == status
        assert exc_info.value.payload == body

    @patch("src.uploader.client.requests.post")
    def test_conflict_names_version_upload(self, mock_post, creds, csv_file):
        """Test that a 409 on upload names upload_new_version()."""
        mock_post.return_value = make_response(409, {"code": "item_name_in_use"})

        with pytest.raises(RemoteConflictError) as exc_info:
            upload_csv(creds, csv_file, "0", UploadOptions(preflight_check=False))

        assert "upload_new_version()" in str(exc_info.value)

    @patch("src.uploader.client.requests.post")
    def test_other_status_is_generic(self, mock_post, creds, csv_file):
        """Test that unmapped statuses raise RemoteOtherError with the body."""
        mock_post.return_value = make_response(500, None, text="Internal Server Error")

        with pytest.raises(RemoteOtherError, match="500") as exc_info:
            upload_csv(creds, csv_file, "0", UploadOptions(preflight_check=False))

        assert exc_info.value.payload == "Internal Server Error"

    @patch("src.uploader.client.requests.post")
    def test_transport_error_is_generic(self, mock_post, creds, csv_file):
        """Test that a transport error raises RemoteOtherError."""
        mock_post.side_effect = requests.Timeout("read timed out")

        with pytest.raises(RemoteOtherError, match="read timed out") as exc_info:
            upload_csv(creds, csv_file, "0", UploadOptions(preflight_check=False))

        assert isinstance(exc_info.value.__cause__, requests.Timeout)

    @patch("src.uploader.client.requests.post")
    def test_response_without_entries(self, mock_post, creds, csv_file):
        """Test that a success response without entries is an error."""
        mock_post.return_value = make_response(201, {"total_count": 0, "entries": []})

        with pytest.raises(RemoteOtherError, match="entries"):
            upload_csv(creds, csv_file, "0", UploadOptions(preflight_check=False))

    @pytest.mark.parametrize("entry", [{"name": "data.csv"}, "12345"])
    @patch("src.uploader.client.requests.post")
    def test_entry_without_id(self, mock_post, entry, creds, csv_file):
        """Test that an entry lacking a file id raises RemoteOtherError."""
        body = {"total_count": 1, "entries": [entry]}
        mock_post.return_value = make_response(201, body)

        with pytest.raises(RemoteOtherError, match="no file id") as exc_info:
            upload_csv(creds, csv_file, "0", UploadOptions(preflight_check=False))

        assert exc_info.value.payload == body

    @patch("src.uploader.client.requests.post")
    def test_version_entry_without_id(self, mock_post, creds, csv_file):
        """Test that a version response entry lacking an id is an error."""
        mock_post.return_value = make_response(201, {"entries": [{"type": "file"}]})

        with pytest.raises(RemoteOtherError, match="no file id"):
            upload_new_version(creds, "555", csv_file)


class TestUploadNewVersion:
    """Tests for upload_new_version."""

    @patch("src.uploader.client.requests.post")
    def test_if_match_header_and_version_id(self, mock_post, creds, csv_file):
        """Test If-Match header, endpoint and version id on the result."""
        mock_post.return_value = make_response(
            201, {"entries": [file_entry(file_id="555", version_id="v2")]}
        )

        result = upload_new_version(creds, "555", csv_file, VersionOptions(if_match="etag-x"))

        args, kwargs = mock_post.call_args
        assert args[0] == "https://upload.box.com/api/2.0/files/555/content"
        assert kwargs["headers"]["If-Match"] == "etag-x"
        assert kwargs["headers"]["Content-MD5"] == hashlib.sha1(CSV_CONTENT).hexdigest()

        attributes = json.loads(kwargs["files"][0][1][1])
        assert attributes == {"name": "data.csv"}

        assert result.success is True
        assert result.file.id == "555"
        assert result.file.version_id == "v2"
        assert result.upload_time >= 0

    @patch("src.uploader.client.requests.post")
    def test_no_if_match_header_by_default(self, mock_post, creds, csv_file):
        """Test that If-Match is omitted when not requested."""
        mock_post.return_value = make_response(201, {"entries": [file_entry(version_id="v3")]})

        upload_new_version(creds, "12345", csv_file)

        assert "If-Match" not in mock_post.call_args[1]["headers"]

    @patch("src.uploader.client.requests.post")
    def test_precondition_mismatch_is_distinct_error(self, mock_post, creds, csv_file):
        """Test that a 412 raises RemotePreconditionError."""
        mock_post.return_value = make_response(
            412, {"type": "error", "code": "precondition_failed"}
        )

        with pytest.raises(RemotePreconditionError) as exc_info:
            upload_new_version(creds, "555", csv_file, VersionOptions(if_match="etag-x"))

        assert not isinstance(exc_info.value, (RemoteConflictError, RemoteOtherError))
        assert exc_info.value.status_code == 412

    @patch("src.uploader.client.requests.post")
    def test_version_conflict_has_no_version_hint(self, mock_post, creds, csv_file):
        """Test that a 409 on version upload omits the version hint."""
        mock_post.return_value = make_response(409, {"code": "item_name_in_use"})

        with pytest.raises(RemoteConflictError) as exc_info:
            upload_new_version(creds, "555", csv_file)

        assert "upload_new_version" not in str(exc_info.value)


class TestPreflightCheck:
    """Tests for preflight_check outcomes."""

    @patch("src.uploader.client.requests.options")
    def test_approval(self, mock_options, creds):
        """Test that a successful pre-flight is approved."""
        mock_options.return_value = make_response(200, {"upload_url": "https://upload.box.com/..."})

        outcome = preflight_check(creds, "data.csv", "0", 10)

        assert outcome == PreflightOutcome.ok()
        assert outcome.approved is True

    @patch("src.uploader.client.requests.options")
    def test_conflict_carries_remote_body(self, mock_options, creds):
        """Test that a 409 pre-flight returns the conflicting file."""
        body = {"code": "item_name_in_use", "context_info": {"conflicts": {"id": "999"}}}
        mock_options.return_value = make_response(409, body)

        outcome = preflight_check(creds, "data.csv", "0", 10)

        assert outcome.approved is False
        assert outcome.conflict is True
        assert outcome.conflicting_file == body

    @patch("src.uploader.client.requests.options")
    def test_auth_failure_is_generic_preflight_error(self, mock_options, creds):
        """Test that a pre-flight 401 is a generic pre-flight error."""
        mock_options.return_value = make_response(401, None, text="")

        with pytest.raises(RemoteOtherError, match="Pre-flight check failed") as exc_info:
            preflight_check(creds, "data.csv", "0", 10)

        assert exc_info.value.status_code == 401


class TestGetCurrentUser:
    """Tests for get_current_user."""

    @patch("src.uploader.client.requests.get")
    def test_returns_user(self, mock_get, creds):
        """Test fetching the current user."""
        mock_get.return_value = make_response(200, {"name": "Ada", "login": "ada@example.com"})

        user = get_current_user(creds)

        assert user["login"] == "ada@example.com"
        assert mock_get.call_args[0][0] == "https://api.box.com/2.0/users/me"

    @patch("src.uploader.client.requests.get")
    def test_invalid_token(self, mock_get, creds):
        """Test that a 401 on user lookup raises RemoteAuthError."""
        mock_get.return_value = make_response(401, None, text="")

        with pytest.raises(RemoteAuthError):
            get_current_user(creds)


class TestBoxUploader:
    """Tests for the BoxUploader facade."""

    def test_from_config_uses_configured_endpoints(self):
        """Test building the facade from UploaderConfig."""
        config = UploaderConfig(
            access_token="cfg-token",
            api_url="https://api.example.test/2.0",
            upload_url="https://upload.example.test/api/2.0",
        )

        uploader = BoxUploader.from_config(config)

        assert uploader.credentials.access_token == "cfg-token"
        assert uploader.api_url == "https://api.example.test/2.0"

    @patch("src.uploader.client.requests.post")
    @patch("src.uploader.client.requests.options")
    def test_upload_csv_delegates(self, mock_options, mock_post, csv_file):
        """Test that the facade uses its configured endpoints."""
        mock_options.return_value = make_response(200, {})
        mock_post.return_value = make_response(201, {"entries": [file_entry()]})
        uploader = BoxUploader(
            BoxCredentials("abc"),
            api_url="https://api.example.test/2.0",
            upload_url="https://upload.example.test/api/2.0",
        )

        result = uploader.upload_csv(csv_file, "0")

        assert result.file.name == "data.csv"
        assert mock_options.call_args[0][0] == "https://api.example.test/2.0/files/content"
        assert mock_post.call_args[0][0] == "https://upload.example.test/api/2.0/files/content"

    def test_is_immutable(self):
        """Test that the facade cannot be mutated."""
        uploader = BoxUploader(BoxCredentials("abc"))

        with pytest.raises(AttributeError):
            uploader.credentials = BoxCredentials("other")

    def test_repr_hides_token(self):
        """Test that repr() does not expose the access token."""
        uploader = BoxUploader(BoxCredentials("super-secret"))

        assert "super-secret" not in repr(uploader)
