from __future__ import annotations

"""Fatal ingestion errors.

A missing upload is reported with the builtin FileNotFoundError; everything
else raised by the pipeline derives from IngestionError. Row level problems
are never raised.
"""


class IngestionError(Exception):
    """Base class for fatal ingestion failures."""


class NoHeaderFoundError(IngestionError):
    """Raised when every row of the first sheet is blank."""


class WriteFailure(IngestionError):
    """Raised when a per-group workbook (or its directory) cannot be written."""


class UnreadableWorkbookError(IngestionError):
    """Raised when the upload cannot be opened or parsed as a workbook."""
