#!/usr/bin/env python3
"""
Upload CSV files to Box.com.

Command-line wrapper for the uploader module, configured from environment
variables (.env) and optionally a YAML upload profile.

Usage:
    python scripts/upload.py data.csv
    python scripts/upload.py data.csv --folder 123456789 --name renamed.csv
    python scripts/upload.py data.csv --version-of 987654321 --if-match 3
    python scripts/upload.py --config config/monthly_reports.yaml
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List

# Add project root to path for imports (before other imports)
_project_root = Path(__file__).parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

from src.uploader import (  # noqa: E402
    BoxUploader,
    UploadError,
    UploadOptions,
    VersionOptions,
)
from src.utils.config import get_config  # noqa: E402
from src.utils.config_loader import load_config, validate_config  # noqa: E402
from src.utils.logging import get_logger  # noqa: E402

logger = get_logger(__name__)


def parse_args(argv=None):
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Upload CSV files to Box.com",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Upload to the root folder
  %(prog)s report.csv

  # Upload to a specific folder under a different name
  %(prog)s report.csv --folder 123456789 --name report-2026-10.csv

  # Replace the content of an existing Box file, only if still at version 3
  %(prog)s report.csv --version-of 987654321 --if-match 3

  # Run every upload listed in a YAML profile
  %(prog)s --config config/monthly_reports.yaml
        """,
    )

    parser.add_argument(
        "files",
        nargs="*",
        help="CSV file(s) to upload",
    )

    parser.add_argument(
        "-c",
        "--config",
        help="YAML upload profile listing the files to upload",
    )

    parser.add_argument(
        "-f",
        "--folder",
        default=None,
        help="Box folder id (default: BOX_FOLDER_ID or 0 for root)",
    )

    parser.add_argument(
        "-n",
        "--name",
        default=None,
        help="File name on Box (single file only; default: local name)",
    )

    parser.add_argument(
        "--no-preflight",
        action="store_true",
        help="Skip the pre-flight check",
    )

    parser.add_argument(
        "--version-of",
        metavar="FILE_ID",
        default=None,
        help="Upload as a new version of this Box file id",
    )

    parser.add_argument(
        "--if-match",
        metavar="ETAG",
        default=None,
        help="Only replace the file if its current version matches (with --version-of)",
    )

    parser.add_argument(
        "--check-user",
        action="store_true",
        help="Print the Box user the token belongs to before uploading",
    )

    parser.add_argument(
        "-t",
        "--timeout",
        type=int,
        help="Request timeout in seconds (default: from config)",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose output",
    )

    args = parser.parse_args(argv)

    if not args.files and not args.config:
        parser.error("give at least one file or --config")
    if args.if_match and not args.version_of:
        parser.error("--if-match requires --version-of")
    if args.name and len(args.files) > 1:
        parser.error("--name can only be used with a single file")

    return args


def build_jobs(args, default_folder: str) -> List[Dict[str, Any]]:
    """Turn CLI arguments or a YAML profile into a list of upload jobs."""
    if args.config:
        profile = load_config(args.config)
        errors = validate_config(profile)
        if errors:
            raise ValueError(
                "Invalid upload profile:\n" + "\n".join(f"  - {e}" for e in errors)
            )
        return [dict(entry) for entry in profile["uploads"]]

    jobs = []
    for file_arg in args.files:
        job: Dict[str, Any] = {"file": file_arg, "name": args.name}
        if args.version_of:
            job["version_of"] = args.version_of
            job["if_match"] = args.if_match
        else:
            job["folder"] = args.folder or default_folder
            job["preflight"] = not args.no_preflight
        jobs.append(job)
    return jobs


def run_job(uploader: BoxUploader, job: Dict[str, Any], timeout: int, default_folder: str):
    """Run one upload job and return its UploadResult."""
    if job.get("version_of"):
        if_match = job.get("if_match")
        options = VersionOptions(
            file_name=job.get("name"),
            if_match=str(if_match) if if_match is not None else None,
            content_modified_at=_as_text(job.get("content_modified_at")),
            timeout_seconds=timeout,
        )
        return uploader.upload_new_version(str(job["version_of"]), job["file"], options)

    options = UploadOptions(
        file_name=job.get("name"),
        preflight_check=job.get("preflight", True),
        content_created_at=_as_text(job.get("content_created_at")),
        content_modified_at=_as_text(job.get("content_modified_at")),
        timeout_seconds=timeout,
    )
    return uploader.upload_csv(job["file"], str(job.get("folder", default_folder)), options)


def _as_text(value):
    # YAML turns unquoted timestamps into datetime objects
    if value is None or isinstance(value, str):
        return value
    if value.tzinfo is None:
        raise ValueError(f"Timestamp {value} has no UTC offset")
    return value.isoformat()


def main(argv=None):
    """Main entry point for upload CLI."""
    args = parse_args(argv)

    if args.verbose:
        logging.getLogger("src").setLevel(logging.DEBUG)

    env_config = get_config()

    try:
        uploader = BoxUploader.from_config(env_config)
    except (ValueError, FileNotFoundError) as e:
        print(f"❌ Configuration error: {e}")
        print("\nSet BOX_ACCESS_TOKEN in .env or the environment, or provide")
        print(f"a token file at {env_config.token_file}.")
        return 1

    try:
        jobs = build_jobs(args, env_config.folder_id)
    except (ValueError, FileNotFoundError) as e:
        print(f"❌ {e}")
        return 1

    timeout = args.timeout or env_config.upload_timeout_seconds
    failed = 0

    try:
        if args.check_user:
            user = uploader.get_current_user()
            print(f"👤 Authenticated as: {user.get('name')} ({user.get('login')})")

        print(f"📤 Uploading {len(jobs)} file(s) to Box\n")

        for job in jobs:
            try:
                result = run_job(uploader, job, timeout, env_config.folder_id)
            except UploadError as e:
                failed += 1
                print(f"❌ {Path(job['file']).name}: {e}")
                continue

            print(f"✅ {result.file.name}")
            print(f"  File ID: {result.file.id}")
            print(f"  File size: {result.file.size} bytes")
            if result.file.version_id:
                print(f"  Version: {result.file.version_id}")
            print(f"  Upload time: {result.upload_time:.2f}s")
            print(f"  Box URL: {result.file.web_url}")

    except KeyboardInterrupt:
        print("\n⚠️  Upload cancelled by user")
        return 130

    except UploadError as e:
        print(f"❌ {e}")
        return 1

    if len(jobs) > 1:
        print(f"\n📊 {len(jobs) - failed}/{len(jobs)} uploads succeeded")

    return 0 if failed == 0 else 1


if __name__ == "__main__":
    sys.exit(main())
