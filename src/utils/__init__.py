"""
Utility modules for the Box CSV uploader.

- logging: Structured logging with entry/exit decorators
- config: Environment configuration and YAML upload profiles
- metrics: Prometheus counters for uploads and API errors
"""

from src.utils.logging import get_logger, log_function_call

__all__ = ["get_logger", "log_function_call"]
