from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for the JSON Lines error log.

One record per fatal ingestion failure. ``row`` is -1 when the failure is
not tied to a specific sheet row (missing file, header not found, write error).
"""

__all__ = [
    "ErrorRecord",
]


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: Uploaded roster file name
        sheet: Sheet name, empty when the workbook could not be opened
        row: Row number (1-based). -1 for file-level errors
        error_type: Error classification in UPPER_SNAKE_CASE format
        message: Error description
    """
    timestamp: str  # ISO8601 UTC
    file: str
    sheet: str
    row: int
    error_type: str  # UPPER_SNAKE
    message: str

    @staticmethod
    def create(file: str, sheet: str, row: int, error_type: str, message: str) -> ErrorRecord:
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            file=file,
            sheet=sheet,
            row=row,
            error_type=error_type,
            message=message,
        )

    @staticmethod
    def from_exception(file: str, exc: BaseException, sheet: str = "", row: int = -1) -> ErrorRecord:
        """Build a record whose error_type is the UPPER_SNAKE form of the exception class."""
        name = type(exc).__name__
        snake = "".join(f"_{c}" if c.isupper() and i else c for i, c in enumerate(name)).upper()
        return ErrorRecord.create(file, sheet, row, snake, str(exc))

    def to_json_line(self) -> str:
        # 追加キー阻止: dataclass -> dict して json.dumps
        return json.dumps(asdict(self), ensure_ascii=False)
