from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pandas as pd

from ..models.roster import RosterRow
from .errors import NoHeaderFoundError, UnreadableWorkbookError

"""Roster workbook reader.

Only the first sheet (workbook order) is read. The header row is not fixed:
leading rows whose cells are all empty are skipped and the first remaining
row is taken as header. Every row after it belongs to the data region, blank
or not; blank data rows are dropped later by the partitioner.
"""

logger = logging.getLogger(__name__)


@dataclass
class SheetRows:
    sheet_name: str
    header: RosterRow
    rows: list[RosterRow]
    header_index: int = 0  # 0-based position of the header row in the sheet


def _is_blank(row: RosterRow | None) -> bool:
    return row is None or all(cell is None for cell in row)


def read_first_sheet(path: Path) -> tuple[str, list[RosterRow]]:
    """Read the first sheet of a workbook as raw rows.

    Cells are read as objects (no numeric coercion, so a matricule stays
    ``12345`` rather than ``12345.0``) and empty cells become ``None``.
    Row positions are preserved.

    Raises:
        UnreadableWorkbookError: not a workbook, corrupt archive, or a parse
            failure (the original exception is chained)
    """
    try:
        with pd.ExcelFile(path) as xls:
            sheet_name = str(xls.sheet_names[0])
            # 空セルのみ NaN 扱い: "NA" / "NULL" 等の文字列は名簿の値としてそのまま残す
            df = xls.parse(
                xls.sheet_names[0], header=None, dtype=object, keep_default_na=False, na_values=[""]
            )
    except Exception as e:
        raise UnreadableWorkbookError(f"cannot read workbook {Path(path).name}: {e}") from e
    rows: list[RosterRow] = []
    for raw in df.itertuples(index=False, name=None):
        rows.append([None if _is_missing(v) else v for v in raw])
    return sheet_name, rows


def _is_missing(value: Any) -> bool:
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):  # pragma: no cover - list-like cell
        return False


def detect_header(rows: list[RosterRow], sheet_name: str = "", file_name: str = "") -> SheetRows:
    """Split raw rows into header and data region.

    Raises:
        NoHeaderFoundError: every row is blank (or the sheet has no rows)
    """
    index = 0
    while index < len(rows) and _is_blank(rows[index]):
        index += 1
    if index >= len(rows):
        raise NoHeaderFoundError(f"no header row found in '{file_name or sheet_name}'")
    return SheetRows(
        sheet_name=sheet_name,
        header=list(rows[index]),
        rows=rows[index + 1:],
        header_index=index,
    )


def read_roster(path: Path | str, original_name: str | None = None) -> SheetRows:
    """Read an uploaded roster and locate its header row.

    Parameters
    ----------
    path: staged workbook path (must already be fully written)
    original_name: client supplied file name, used for messages only

    Raises
    ------
    FileNotFoundError: path does not exist at call time
    NoHeaderFoundError: the first sheet contains no non-blank row
    UnreadableWorkbookError: the file is not a readable workbook
    """
    path = Path(path)
    name = original_name or path.name
    if not path.exists():
        raise FileNotFoundError(f"uploaded file not found: {path}")
    sheet_name, rows = read_first_sheet(path)
    sheet = detect_header(rows, sheet_name=sheet_name, file_name=name)
    logger.debug(
        f"read {name}: sheet={sheet_name} header_row={sheet.header_index + 1} data_rows={len(sheet.rows)}"
    )
    return sheet
