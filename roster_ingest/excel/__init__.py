"""Workbook I/O: first-sheet roster reading and per-group workbook writing."""

from .errors import IngestionError, NoHeaderFoundError, UnreadableWorkbookError, WriteFailure
from .reader import SheetRows, detect_header, read_first_sheet, read_roster
from .writer import group_file_name, write_group_files

__all__ = [
    "IngestionError",
    "NoHeaderFoundError",
    "UnreadableWorkbookError",
    "WriteFailure",
    "SheetRows",
    "detect_header",
    "read_first_sheet",
    "read_roster",
    "group_file_name",
    "write_group_files",
]
