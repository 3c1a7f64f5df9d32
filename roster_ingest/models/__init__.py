"""Domain models for the roster ingestion pipeline.

Row level types (RosterRow, ParsedRow, RowSkipReason), the per-run entities
(Student, StudentGroupMembership, GroupBucket, GroupFile) and the terminal
IngestionResult that crosses the component boundary.
"""

from .error_record import ErrorRecord
from .ingestion_result import GroupFile, IngestionResult, UploadedFile
from .roster import (
    GroupBucket,
    ParsedRow,
    RosterRow,
    RowSkipReason,
    Student,
    StudentGroupMembership,
)

__all__ = [
    # Row level
    "RosterRow",
    "ParsedRow",
    "RowSkipReason",
    # Entities
    "Student",
    "StudentGroupMembership",
    "GroupBucket",
    "GroupFile",
    "UploadedFile",
    # Result
    "IngestionResult",
    "ErrorRecord",
]
