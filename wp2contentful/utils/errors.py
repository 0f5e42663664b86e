"""
Error types and structured reporting for the migration.

The :mod:`wp2contentful.utils.errors` module holds the exception hierarchy
used to decide how far a failure propagates, and centralizes the writing of
per-item log entries for both failed and successful publishing steps.  Each
entry is appended to a JSON Lines file under ``reports/migration`` so that
the information can be reviewed or parsed after a run.

Two reporting functions are provided:

``report_error``
    Record an error that occurred for an asset or entry.  An optional
    exception can be supplied and will be serialized to the log.

``report_ok``
    Record a successful step.  Additional key/value information can be
    attached to the entry via the ``extra`` parameter.

The ``ERRORS`` dictionary maps error or event codes to human readable
messages.  Codes not present in the dictionary fall back to the code itself.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class MigrationError(Exception):
    """Base class for failures raised by the migration pipeline."""


class ConfigurationError(MigrationError):
    """Configuration is missing or invalid; the run cannot start."""


class ContentTypeMissingError(ConfigurationError):
    """The target content type does not exist in the Contentful environment."""

    def __init__(self, content_type: str, available: Optional[list] = None) -> None:
        self.content_type = content_type
        self.available = list(available or [])
        super().__init__(f"Content type '{content_type}' not found in the environment")


class SourceDataError(MigrationError):
    """The WordPress post collection could not be read."""


class AssetProcessingError(MigrationError):
    """Contentful did not finish processing an uploaded asset."""


# Mapping of event codes used throughout the migration to descriptive messages.
# The keys include both error and success codes as the same lookup is used by
# :func:`report_error` and :func:`report_ok`.
ERRORS: Dict[str, str] = {
    "ASSET_CREATE": "Failed to create asset in Contentful",
    "ASSET_PROCESS": "Failed to process asset in Contentful",
    "ASSET_PUBLISH": "Failed to publish asset",
    "ENTRY_CREATE": "Failed to create entry in Contentful",
    "ENTRY_PUBLISH": "Failed to publish entry",
    "FEATURED_IMAGE_MISSING": "Featured image asset not available for entry",
    "ASSET_PUBLISHED": "Asset published successfully",
    "ENTRY_PUBLISHED": "Entry published successfully",
}

_REPORT_DIR = os.path.join("reports", "migration")
_WRITE_LOCK = threading.Lock()


def set_report_dir(path: str) -> None:
    """Change the directory the JSON Lines reports are written to."""
    global _REPORT_DIR
    _REPORT_DIR = path


def _write_jsonl(filename: str, data: Dict[str, Any]) -> None:
    """Append ``data`` as a JSON object followed by a newline to ``filename``."""
    line = json.dumps(data, ensure_ascii=False)
    with _WRITE_LOCK:
        os.makedirs(_REPORT_DIR, exist_ok=True)
        with open(os.path.join(_REPORT_DIR, filename), "a", encoding="utf-8") as f:
            f.write(line + "\n")


def report_error(code: str, context: Dict[str, Any], exc: Optional[Exception] = None) -> None:
    """Log an error event.

    Parameters
    ----------
    code:
        A key identifying the type of error.  If ``code`` is present in
        :data:`ERRORS` its value will be used as the message.
    context:
        Identifying fields for the failed item, typically ``slug`` and
        ``title`` for entries or ``file_name`` for assets.
    exc:
        Optional exception instance that triggered the error.  The response
        body is preferred over the string form when the exception carries an
        HTTP response.
    """
    message = ERRORS.get(code, code)
    entry: Dict[str, Any] = {"code": code, "message": message, **context}
    if exc is not None:
        entry["error"] = describe_exception(exc)
    _write_jsonl("errors.jsonl", entry)


def report_ok(code: str, context: Dict[str, Any], extra: Optional[Dict[str, Any]] = None) -> None:
    """Log a successful event.

    Parameters
    ----------
    code:
        A key identifying the type of event.
    context:
        Identifying fields for the item.
    extra:
        Optional dictionary of additional fields to merge into the log entry.
    """
    message = ERRORS.get(code, code)
    entry: Dict[str, Any] = {"code": code, "message": message, **context}
    if extra:
        entry.update(extra)
    _write_jsonl("success.jsonl", entry)


def describe_exception(exc: Exception) -> str:
    """Return the most useful text for ``exc``: the HTTP body if there is one."""
    response = getattr(exc, "response", None)
    if response is not None:
        text = getattr(response, "text", None)
        if text:
            return text
    return str(exc)
