from __future__ import annotations

import logging
import re
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

import pandas as pd

from ..models.ingestion_result import GroupFile
from ..models.roster import GroupBucket, RosterRow
from .errors import WriteFailure

"""Per-group workbook writer.

For each non-empty group a workbook ``{baseName}_{groupKey}.xlsx`` is written
into ``<dir of staged file>/<groups_dir_name>``. The first row is the detected
header verbatim, followed by the group's rows in encounter order.
"""

logger = logging.getLogger(__name__)

DEFAULT_GROUPS_DIR = "Groupes"
DEFAULT_SHEET_NAME = "Students"
_WHITESPACE = re.compile(r"\s+")


def group_file_name(original_name: str, group_key: str) -> str:
    """Deterministic output file name for a group."""
    base_name = Path(original_name).stem
    safe_key = _WHITESPACE.sub("_", group_key)
    return f"{base_name}_{safe_key}.xlsx"


def _write_workbook(target: Path, header: RosterRow, rows: list[RosterRow], sheet_name: str) -> None:
    frame = pd.DataFrame([list(header), *[list(r) for r in rows]], dtype=object)
    with pd.ExcelWriter(target, engine="openpyxl") as writer:
        frame.to_excel(writer, sheet_name=sheet_name, header=False, index=False)
        _keep_text_cells(writer.sheets[sheet_name])


def _keep_text_cells(worksheet: Any) -> None:
    """Store "=..." strings as text.

    openpyxl turns any str starting with "=" into a formula. Source rows are
    read as cached values, so every formula cell here came from a text cell.
    """
    for row in worksheet.iter_rows():
        for cell in row:
            if cell.data_type == "f":
                cell.data_type = "s"


def write_group_files(
    file_path: Path | str,
    original_name: str,
    header: RosterRow,
    groups: Mapping[str, GroupBucket],
    *,
    groups_dir_name: str = DEFAULT_GROUPS_DIR,
    sheet_name: str = DEFAULT_SHEET_NAME,
    on_written: Callable[[GroupFile], None] | None = None,
) -> list[GroupFile]:
    """Write one workbook per group and return their descriptors.

    Raises:
        WriteFailure: the output directory or any group workbook could not be
            written. No descriptors are returned in that case.
    """
    groups_dir = Path(file_path).parent / groups_dir_name
    try:
        groups_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise WriteFailure(f"cannot create groups directory {groups_dir}: {e}") from e

    written: list[GroupFile] = []
    for group_key, bucket in groups.items():
        if not bucket.rows:
            continue
        file_name = group_file_name(original_name, group_key)
        target = groups_dir / file_name
        try:
            _write_workbook(target, header, bucket.rows, sheet_name)
        except (OSError, ValueError) as e:
            raise WriteFailure(f"cannot write group file {target}: {e}") from e
        group_file = GroupFile(
            section_name=bucket.section_name,
            group_name=group_key,
            file_name=file_name,
            file_path=target.resolve(),
            student_count=bucket.student_count,
            rows=list(bucket.rows),
        )
        logger.debug(f"wrote {file_name} rows={group_file.student_count}")
        written.append(group_file)
        if on_written is not None:
            on_written(group_file)
    return written
