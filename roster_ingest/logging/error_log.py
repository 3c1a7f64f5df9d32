from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from ..models.error_record import ErrorRecord

"""JSON Lines error log for failed uploads.

One log file per buffer: ``<logs_dir>/errors-YYYYMMDD-HHMMSS.log``, the UTC
stamp taken when the name is first needed. Nothing touches the disk until a
flush has records to write. Serial use only.
"""

__all__ = [
    "ErrorRecord",
    "ErrorLogBuffer",
]

LOGS_DIR = Path("./logs")
TIMESTAMP_FMT = "%Y%m%d-%H%M%S"


class ErrorLogBuffer:
    """Collects ErrorRecord entries and appends them to the log on flush.

    Usable as a context manager; leaving the block flushes::

        with ErrorLogBuffer(Path("logs")) as buf:
            buf.record_exception("L2 Info.xlsx", exc)
    """

    def __init__(self, logs_dir: Path | None = None) -> None:
        self._logs_dir = Path(logs_dir) if logs_dir is not None else LOGS_DIR
        self._pending: list[ErrorRecord] = []
        self._log_name: str | None = None

    @property
    def file_path(self) -> Path:
        """Target log file (name fixed on first access, not created here)."""
        if self._log_name is None:
            self._log_name = f"errors-{datetime.now(UTC).strftime(TIMESTAMP_FMT)}.log"
        return self._logs_dir / self._log_name

    def append(self, record: ErrorRecord) -> None:
        self._pending.append(record)

    def record_exception(self, file: str, exc: BaseException) -> ErrorRecord:
        rec = ErrorRecord.from_exception(file, exc)
        self._pending.append(rec)
        return rec

    def __len__(self) -> int:
        return len(self._pending)

    def flush(self) -> Path | None:
        """Write pending records and clear the buffer.

        Returns the log file path if this call wrote anything, otherwise None.
        """
        if not self._pending:
            return None
        target = self.file_path
        target.parent.mkdir(parents=True, exist_ok=True)
        with target.open("a", encoding="utf-8") as f:
            f.writelines(r.to_json_line() + "\n" for r in self._pending)
        self._pending.clear()
        return target

    def __enter__(self) -> ErrorLogBuffer:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.flush()
