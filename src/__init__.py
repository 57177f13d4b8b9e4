"""
Box CSV Uploader

Client-side helper for uploading CSV files to Box.com: local validation,
SHA-1 integrity hashing, optional pre-flight checks, multipart submission
and typed errors for every failure Box reports.

Packages:
- uploader: Box upload operations and error types
- utils: Logging, configuration and metrics

See DESIGN.md for how the pieces fit together.
"""

__version__ = "0.1.0"

from src.utils.logging import setup_logging

# Initialize default logging configuration
setup_logging()
