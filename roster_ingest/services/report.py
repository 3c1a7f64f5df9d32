from __future__ import annotations

from typing import Any

from ..models.ingestion_result import GroupFile, IngestionResult, UploadedFile
from .partition import Partition

"""Result reporting.

build_result() is pure aggregation of the partition and the written group
files. render_summary_line() formats the SUMMARY log line for a run and
build_response() the JSON envelope returned for an upload.
"""


def build_result(partition: Partition, group_files: list[GroupFile]) -> IngestionResult:
    return IngestionResult(
        sections=partition.section_names,
        group_files=list(group_files),
        students=list(partition.students),
        student_groups=list(partition.memberships),
        skipped_rows=partition.skipped_rows,
    )


def _format_seconds(elapsed: float) -> str:
    if elapsed == 0:
        return "0"
    if elapsed == int(elapsed):
        return str(int(elapsed))
    if elapsed < 0.01:
        # 指数表記を避ける
        return f"{elapsed:.6f}".rstrip("0").rstrip(".")
    return f"{elapsed:.2f}"


def render_summary_line(file_name: str, result: IngestionResult, elapsed_seconds: float) -> str:
    """Render the SUMMARY line of one ingestion run.

    Examples:
        >>> r = IngestionResult(sections=["A"], group_files=[], students=[], student_groups=[])
        >>> render_summary_line("cs.xlsx", r, 0.0)
        'SUMMARY file=cs.xlsx sections=1 groups=0 rows=0 students=0 skipped_rows=0 elapsed_sec=0'
    """
    return (
        f"SUMMARY file={file_name} "
        f"sections={len(result.sections)} "
        f"groups={len(result.group_files)} "
        f"rows={result.total_rows} "
        f"students={len(result.students)} "
        f"skipped_rows={result.skipped_rows} "
        f"elapsed_sec={_format_seconds(elapsed_seconds)}"
    )


def build_response(uploaded: UploadedFile, result: IngestionResult, include_rows: bool = True) -> dict[str, Any]:
    """Upload response envelope: original file metadata, upload date and the result."""
    return {
        "originalFile": uploaded.to_dict(),
        "uploadDate": uploaded.uploaded_at.isoformat().replace("+00:00", "Z"),
        **result.to_dict(include_rows),
    }
