from __future__ import annotations

import argparse
import json
import sys
import time
from pathlib import Path

from dotenv import load_dotenv

from ..config.loader import DEFAULT_CONFIG_PATH, ConfigError, IngestConfig, load_config
from ..excel.errors import IngestionError
from ..excel.reader import read_roster
from ..logging.error_log import ErrorLogBuffer
from ..logging.init import log_summary, setup_logging
from ..models.ingestion_result import UploadedFile
from ..services.pipeline import PipelineOptions, process_roster
from ..services.report import build_response, render_summary_line
from ..services.staging import (
    UnsupportedUploadError,
    UploadTooLargeError,
    content_type_for,
    discard_upload,
    ensure_supported,
    stage_upload,
)

"""CLI entrypoint.

Flow:
- Load .env and config
- Stage the roster into the upload tree (unless --no-stage)
- Run the ingestion pipeline
- Emit the upload response as JSON (stdout or --output) and a SUMMARY line

Fatal failures are logged, appended to the JSON Lines error log and mapped
to exit code 1.
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env so that ROSTER_UPLOAD_ROOT can override the config file."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="roster-ingest", description="Split a roster workbook into one workbook per group"
    )
    p.add_argument("file", type=Path, help="Roster workbook (.xlsx)")
    p.add_argument("--name", help="Original upload file name (default: the file's own name)")
    p.add_argument("--branch", help="Branch folder in the upload tree (default: config default_branch)")
    p.add_argument("--academic-year", help="Academic year folder in the upload tree")
    norm = p.add_mutually_exclusive_group()
    norm.add_argument("--normalize", dest="normalize", action="store_true", default=None,
                      help="Normalize section names and key groups by section")
    norm.add_argument("--no-normalize", dest="normalize", action="store_false",
                      help="Use section and group names as written")
    p.add_argument("--output", type=Path, help="Write the JSON response to this file instead of stdout")
    p.add_argument("--no-stage", action="store_true", help="Process the file in place")
    p.add_argument("--cleanup-on-error", action="store_true", help="Remove the staged upload if ingestion fails")
    p.add_argument("--inspect", action="store_true", help="Print detected header & first rows then exit")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Config file path")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    return p.parse_args(argv)


def _inspect(path: Path, name: str) -> int:
    try:
        sheet = read_roster(path, name)
    except (FileNotFoundError, IngestionError) as e:
        print(f"inspect: {e}")
        return EXIT_FATAL
    print(f"FILE: {name} SHEET: {sheet.sheet_name} header_row={sheet.header_index + 1}")
    print(f"  header={sheet.header}")
    for row in sheet.rows[:3]:
        print(f"  row={[c.isoformat() if hasattr(c, 'isoformat') else c for c in row]}")
    return EXIT_SUCCESS


def _context_label(branch: str | None, academic_year: str | None) -> str | None:
    parts = [p for p in (branch, academic_year) if p]
    return "/".join(parts) if parts else None


def _record_failure(cfg: IngestConfig, name: str, exc: BaseException) -> None:
    with ErrorLogBuffer(Path(cfg.logs_dir)) as buf:
        buf.record_exception(name, exc)


def main(argv: list[str] | None = None) -> int:
    # NOTE: [] が渡された場合に sys.argv を読まないよう None のときのみ参照
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    logger = setup_logging(debug=args.debug)
    logger.debug("debug mode enabled")

    _load_env_file(Path(".env"), override=True)
    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    name = args.name or args.file.name
    if args.inspect:
        return _inspect(args.file, name)

    try:
        if args.no_stage:
            if not args.file.is_file():
                raise FileNotFoundError(f"uploaded file not found: {args.file}")
            ensure_supported(name)
            uploaded = UploadedFile(
                name=name,
                path=args.file.resolve(),
                size=args.file.stat().st_size,
                content_type=content_type_for(name),
            )
        else:
            uploaded = stage_upload(
                args.file,
                cfg.upload_root,
                name,
                branch=args.branch or cfg.default_branch,
                academic_year=args.academic_year,
                max_bytes=cfg.max_upload_bytes,
            )
    except (FileNotFoundError, UnsupportedUploadError, UploadTooLargeError) as e:
        logger.error(f"upload: {e}")
        _record_failure(cfg, name, e)
        return EXIT_FATAL

    options = PipelineOptions.from_config(cfg, normalize=args.normalize)
    started = time.perf_counter()
    try:
        result = process_roster(
            uploaded.path,
            name,
            options=options,
            context=_context_label(args.branch, args.academic_year),
        )
    except (FileNotFoundError, IngestionError) as e:
        logger.error(f"processing: {e}")
        _record_failure(cfg, name, e)
        if args.cleanup_on_error and not args.no_stage:
            discard_upload(uploaded)
        return EXIT_FATAL
    elapsed = time.perf_counter() - started

    response = build_response(uploaded, result, include_rows=options.include_rows)
    payload = json.dumps(response, ensure_ascii=False, indent=2, default=str)
    if args.output is not None:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(payload + "\n", encoding="utf-8")
        logger.info(f"response written to {args.output}")
    else:
        print(payload)

    # log_summary が "SUMMARY " を付与するので除去して渡す
    log_summary(render_summary_line(name, result, elapsed)[len("SUMMARY "):])
    return EXIT_SUCCESS
