from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from ..excel.reader import read_roster
from ..excel.writer import DEFAULT_GROUPS_DIR, DEFAULT_SHEET_NAME, write_group_files
from ..models.ingestion_result import IngestionResult
from .partition import partition_rows
from .progress import GroupProgress
from .report import build_result

if TYPE_CHECKING:
    from ..config.loader import IngestConfig

"""Roster ingestion pipeline.

Ingestor -> Partitioner -> Writer -> Reporter, strictly sequential. Each call
is independent: no state is shared between runs, so concurrent uploads can be
processed in parallel by the caller. Every fatal error (missing file, unreadable
workbook, no header, write failure) propagates unchanged.
"""

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineOptions:
    normalize: bool = False  # section/group 名の正規化 (branch 単位のアップロード向け)
    groups_dir_name: str = DEFAULT_GROUPS_DIR
    output_sheet_name: str = DEFAULT_SHEET_NAME
    include_rows: bool = True
    show_progress: bool | None = None  # None = TTY 判定

    @classmethod
    def from_config(cls, cfg: IngestConfig, normalize: bool | None = None) -> PipelineOptions:
        return cls(
            normalize=cfg.normalize_sections if normalize is None else normalize,
            groups_dir_name=cfg.groups_dir_name,
            output_sheet_name=cfg.output_sheet_name,
            include_rows=cfg.include_rows,
        )


def process_roster(
    file_path: Path | str,
    original_name: str | None = None,
    *,
    options: PipelineOptions | None = None,
    context: str | None = None,
) -> IngestionResult:
    """Ingest one staged roster workbook.

    Args:
        file_path: staged workbook; group files are written beside it
        original_name: client supplied file name (defaults to the file's name),
            used to derive output file names
        options: naming mode and output layout
        context: branch / academic year label for log lines

    Returns:
        IngestionResult for the caller to persist

    Raises:
        FileNotFoundError, UnreadableWorkbookError, NoHeaderFoundError, WriteFailure
    """
    options = options or PipelineOptions()
    path = Path(file_path)
    name = original_name or path.name
    logger.info(f"processing {name}" + (f" ({context})" if context else ""))

    sheet = read_roster(path, name)
    partition = partition_rows(sheet.rows, normalize=options.normalize, context=context)
    with GroupProgress(len(partition.groups), enabled=options.show_progress) as progress:
        group_files = write_group_files(
            path,
            name,
            sheet.header,
            partition.groups,
            groups_dir_name=options.groups_dir_name,
            sheet_name=options.output_sheet_name,
            on_written=progress.advance,
        )
    result = build_result(partition, group_files)

    logger.info(
        f"{name}: groups={len(result.group_files)} rows={result.total_rows} students={len(result.students)}"
    )
    return result
