from __future__ import annotations

import logging
import re
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from ..models.roster import (
    GroupBucket,
    ParsedRow,
    RosterRow,
    RowSkipReason,
    Student,
    StudentGroupMembership,
)

"""Group partitioner.

Classifies each data row by (section, group) and accumulates per-group row
buckets together with the derived student and membership records.

Expected positional layout of a data row (0-indexed):
    3 = matricule, 4 = last name, 5 = first name, 6 = section, 7 = group

Two naming modes:
- plain: section / group names are used as written, groups keyed by name
- normalizing: names lower-cased, sections rendered as ``Section <X>`` and
  groups keyed by ``{section}_{group}`` so equal group names in different
  sections stay apart
"""

__all__ = [
    "Partition",
    "normalize_section_name",
    "parse_row",
    "partition_rows",
]

logger = logging.getLogger(__name__)

MATRICULE_COL = 3
LAST_NAME_COL = 4
FIRST_NAME_COL = 5
SECTION_COL = 6
GROUP_COL = 7
MIN_COLUMNS = GROUP_COL + 1

_SECTION_WORD = re.compile(r"section\s*", re.IGNORECASE)


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def normalize_section_name(raw: str) -> str:
    """Canonical display form of a section name.

    >>> normalize_section_name("section a")
    'Section A'
    >>> normalize_section_name("SecB")
    'Section SECB'
    """
    lowered = raw.strip().lower()
    if "section" in lowered:
        remainder = _SECTION_WORD.sub("", lowered).strip().upper()
    else:
        remainder = lowered.upper()
    return f"Section {remainder}".rstrip()


def parse_row(row: RosterRow | None, normalize: bool = False) -> ParsedRow | RowSkipReason:
    """Extract the positional fields of a data row, or say why it is skipped."""
    if row is None:
        return RowSkipReason.NOT_A_ROW
    if len(row) < MIN_COLUMNS:
        return RowSkipReason.TOO_FEW_COLUMNS
    section_name = _cell_text(row[SECTION_COL])
    group_name = _cell_text(row[GROUP_COL])
    if normalize:
        section_name = section_name.lower()
        group_name = group_name.lower()
    if not section_name or not group_name:
        return RowSkipReason.MISSING_SECTION_OR_GROUP
    return ParsedRow(
        matricule=_cell_text(row[MATRICULE_COL]),
        last_name=_cell_text(row[LAST_NAME_COL]),
        first_name=_cell_text(row[FIRST_NAME_COL]),
        section_name=section_name,
        group_name=group_name,
        raw=row,
    )


@dataclass
class Partition:
    """Accumulated state of one partitioning pass (insertion ordered)."""
    sections: dict[str, None] = field(default_factory=dict)  # 順序付き集合として使用
    groups: dict[str, GroupBucket] = field(default_factory=dict)
    students: list[Student] = field(default_factory=list)
    memberships: list[StudentGroupMembership] = field(default_factory=list)
    skipped: Counter[RowSkipReason] = field(default_factory=Counter)

    @property
    def section_names(self) -> list[str]:
        return list(self.sections)

    @property
    def qualifying_rows(self) -> int:
        return sum(b.student_count for b in self.groups.values())

    @property
    def skipped_rows(self) -> int:
        return sum(self.skipped.values())

    def bucket_for(self, group_key: str, section_name: str) -> GroupBucket:
        bucket = self.groups.get(group_key)
        if bucket is None:
            bucket = GroupBucket(section_name=section_name, group_name=group_key)
            self.groups[group_key] = bucket
        return bucket

    def add(self, parsed: ParsedRow, normalize: bool = False) -> None:
        if normalize:
            section_name = normalize_section_name(parsed.section_name)
            group_key = f"{section_name}_{parsed.group_name}"
        else:
            section_name = parsed.section_name
            group_key = parsed.group_name
        self.sections.setdefault(section_name, None)
        self.bucket_for(group_key, section_name).rows.append(parsed.raw)
        if parsed.has_identity:
            self.students.append(
                Student(matricule=parsed.matricule, first_name=parsed.first_name, last_name=parsed.last_name)
            )
            self.memberships.append(StudentGroupMembership(matricule=parsed.matricule, group_name=group_key))


def partition_rows(
    rows: Iterable[RosterRow | None], normalize: bool = False, context: str | None = None
) -> Partition:
    """Partition data rows into groups.

    Malformed rows are skipped silently (counted in ``Partition.skipped``);
    this function never raises for row content.

    Args:
        rows: data region rows (after the header)
        normalize: use the normalizing naming mode
        context: optional branch / academic year label, only used in log lines
    """
    partition = Partition()
    for row in rows:
        parsed = parse_row(row, normalize=normalize)
        if isinstance(parsed, RowSkipReason):
            partition.skipped[parsed] += 1
            continue
        partition.add(parsed, normalize=normalize)

    label = f" context={context}" if context else ""
    logger.debug(
        f"partitioned{label}: sections={len(partition.sections)} groups={len(partition.groups)} "
        f"rows={partition.qualifying_rows} skipped={dict((k.value, v) for k, v in partition.skipped.items())}"
    )
    return partition
