"""
Utility helpers used by the migration tool.

This subpackage exposes the error types, structured JSON Lines reporting,
logging setup, label normalization and the pre-flight checks.
"""

from .errors import ERRORS, report_error, report_ok
from .log import setup_logging

__all__ = ["ERRORS", "report_error", "report_ok", "setup_logging"]
