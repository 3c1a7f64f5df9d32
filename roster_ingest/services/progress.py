from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

from ..models.ingestion_result import GroupFile

"""Progress display for group file writing (TTY only).

A single tqdm bar counts written group workbooks. In non-TTY environments
(CI, piped output) the bar is disabled to avoid ANSI control sequence spam.
"""

__all__ = [
    "GroupProgress",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    return sys.stdout.isatty()


class GroupProgress:
    """Progress tracker over the groups of one roster."""

    def __init__(self, total_groups: int, *, description: str = "Writing groups", enabled: bool | None = None) -> None:
        self.total_groups = total_groups
        self.description = description
        self.written = 0
        self.enabled = is_tty_enabled() if enabled is None else enabled
        self.pbar: TqdmType[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                total=total_groups,
                desc=description,
                unit="group",
                disable=False,
                leave=False,
                position=0,
                ncols=80,
                ascii=True,
            )
        else:
            self.pbar = None

    def advance(self, group_file: GroupFile) -> None:
        self.written += 1
        if self.enabled and self.pbar is not None:
            self.pbar.set_postfix(group=group_file.group_name, rows=group_file.student_count)
            self.pbar.update(1)

    def close(self) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> GroupProgress:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
