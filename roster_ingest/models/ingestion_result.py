from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from .roster import RosterRow, Student, StudentGroupMembership

"""Ingestion result models.

IngestionResult is the only object handed back to the caller, which persists
sections / groups / students / memberships into its own store. to_dict()
renders the camelCase wire shape returned by the upload endpoint.
"""

__all__ = [
    "GroupFile",
    "IngestionResult",
    "UploadedFile",
]


@dataclass(frozen=True)
class GroupFile:
    """Descriptor of one per-group workbook written to disk."""
    section_name: str
    group_name: str
    file_name: str
    file_path: Path
    student_count: int
    rows: list[RosterRow] = field(default_factory=list, repr=False)

    def to_dict(self, include_rows: bool = True) -> dict[str, Any]:
        data: dict[str, Any] = {
            "sectionName": self.section_name,
            "groupName": self.group_name,
            "fileName": self.file_name,
            "filePath": str(self.file_path),
            "studentCount": self.student_count,
        }
        if include_rows:
            data["students"] = [list(r) for r in self.rows]
        return data


@dataclass(frozen=True)
class IngestionResult:
    """Terminal aggregate of one ingestion run."""
    sections: list[str]
    group_files: list[GroupFile]
    students: list[Student]
    student_groups: list[StudentGroupMembership]
    skipped_rows: int = 0  # 除外された行数 (サマリ表示用、ワイヤ形式には含めない)

    @property
    def total_rows(self) -> int:
        return sum(g.student_count for g in self.group_files)

    def to_dict(self, include_rows: bool = True) -> dict[str, Any]:
        return {
            "sections": list(self.sections),
            "groupFiles": [g.to_dict(include_rows) for g in self.group_files],
            "students": [
                {"matricule": s.matricule, "firstName": s.first_name, "lastName": s.last_name}
                for s in self.students
            ],
            "studentGroups": [
                {"matricule": m.matricule, "groupName": m.group_name} for m in self.student_groups
            ],
        }


@dataclass(frozen=True)
class UploadedFile:
    """A roster file staged into the upload tree, echoed back as ``originalFile``."""
    name: str
    path: Path
    size: int
    content_type: str | None = None
    uploaded_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "path": str(self.path),
            "size": self.size,
            "type": self.content_type,
        }
