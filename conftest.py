"""Pytest configuration and shared fixtures."""

import sys
from pathlib import Path

import pytest

# Make the project root importable so `import src...` works without install
project_root = Path(__file__).parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))


@pytest.fixture
def creds():
    """Box credentials with a dummy token."""
    from src.uploader import BoxCredentials

    return BoxCredentials("test-token")


@pytest.fixture
def csv_file(tmp_path: Path) -> Path:
    """A 10-byte CSV file."""
    path = tmp_path / "data.csv"
    path.write_bytes(b"a,b\n1,2\n3\n")
    return path
