"""Roster spreadsheet ingestion: split an uploaded class roster into per-group workbooks."""

__version__ = "0.3.0"
