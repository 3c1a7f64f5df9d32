from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

"""Row level roster models.

A RosterRow is the raw list of cell values read from the data region of the
sheet (empty cells are None). ParsedRow is the validated view of the five
positional fields the pipeline cares about.
"""

__all__ = [
    "RosterRow",
    "ParsedRow",
    "RowSkipReason",
    "Student",
    "StudentGroupMembership",
    "GroupBucket",
]

RosterRow = list[Any]


class RowSkipReason(Enum):
    """Why a data row was excluded from partitioning.

    Skipped rows are not errors: rosters routinely carry blank or footer rows.
    """
    NOT_A_ROW = "not_a_row"
    TOO_FEW_COLUMNS = "too_few_columns"
    MISSING_SECTION_OR_GROUP = "missing_section_or_group"


@dataclass(frozen=True)
class ParsedRow:
    """Trimmed positional fields of a qualifying data row."""
    matricule: str
    last_name: str
    first_name: str
    section_name: str
    group_name: str
    raw: RosterRow = field(repr=False, compare=False)

    @property
    def has_identity(self) -> bool:
        # matricule / 姓 / 名 がすべて揃っている行のみ学生レコードを生成
        return bool(self.matricule and self.last_name and self.first_name)


@dataclass(frozen=True)
class Student:
    matricule: str
    first_name: str
    last_name: str


@dataclass(frozen=True)
class StudentGroupMembership:
    matricule: str
    group_name: str  # group key (composite in normalizing mode)


@dataclass
class GroupBucket:
    """Rows accumulated for one group during a run.

    Created on the first row referencing the group, only appended to afterwards.
    """
    section_name: str
    group_name: str
    rows: list[RosterRow] = field(default_factory=list)

    @property
    def student_count(self) -> int:
        return len(self.rows)
