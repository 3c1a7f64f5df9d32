from __future__ import annotations

import logging
import mimetypes
import shutil
from pathlib import Path

from ..models.ingestion_result import UploadedFile

"""Upload staging.

Moves an uploaded roster into the permanent upload tree before ingestion:

    <upload_root>/<branch>/[<academic_year>/]<file stem>/<original name>

The per-group workbooks are then written next to it in ``Groupes/``.
Removing a staged file after a failed run is the caller's responsibility
(see discard_upload).
"""

logger = logging.getLogger(__name__)

DEFAULT_BRANCH = "Cs"
DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024

# openpyxl で読める形式のみ受け付ける (.xls / .csv は不可)
_CONTENT_TYPES = {
    ".xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ".xlsm": "application/vnd.ms-excel.sheet.macroEnabled.12",
}
SUPPORTED_SUFFIXES = tuple(_CONTENT_TYPES)


class UploadTooLargeError(Exception):
    """Raised when an upload exceeds the configured size limit."""


class UnsupportedUploadError(Exception):
    """Raised when an upload is not an .xlsx / .xlsm workbook."""


def ensure_supported(name: str) -> None:
    suffix = Path(name).suffix.lower()
    if suffix not in _CONTENT_TYPES:
        raise UnsupportedUploadError(
            f"{Path(name).name}: unsupported file type '{suffix or '(none)'}', expected one of {', '.join(SUPPORTED_SUFFIXES)}"
        )


def content_type_for(name: str) -> str:
    suffix = Path(name).suffix.lower()
    if suffix in _CONTENT_TYPES:
        return _CONTENT_TYPES[suffix]
    guessed, _ = mimetypes.guess_type(name)
    return guessed or "application/octet-stream"


def staging_directory(
    upload_root: Path | str,
    original_name: str,
    branch: str | None = None,
    academic_year: str | None = None,
) -> Path:
    """Directory a given upload is stored in (not created here)."""
    path = Path(upload_root) / (branch or DEFAULT_BRANCH)
    if academic_year:
        path = path / str(academic_year)
    # 元ファイル名は表示用のみ: ディレクトリ成分を含んでいても basename だけ使う
    return path / Path(Path(original_name).name).stem


def stage_upload(
    source: Path | str,
    upload_root: Path | str,
    original_name: str | None = None,
    *,
    branch: str | None = None,
    academic_year: str | None = None,
    max_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
) -> UploadedFile:
    """Copy an uploaded file into the upload tree under its original name.

    Raises:
        FileNotFoundError: source does not exist
        UnsupportedUploadError: original name is not an .xlsx / .xlsm file
        UploadTooLargeError: source is larger than max_bytes
    """
    source = Path(source)
    if not source.is_file():
        raise FileNotFoundError(f"uploaded file not found: {source}")
    name = Path(original_name or source.name).name
    ensure_supported(name)
    size = source.stat().st_size
    if size > max_bytes:
        raise UploadTooLargeError(f"{name} is {size} bytes, limit is {max_bytes}")

    target_dir = staging_directory(upload_root, name, branch=branch, academic_year=academic_year)
    target_dir.mkdir(parents=True, exist_ok=True)
    target = target_dir / name
    if source.resolve() != target.resolve():
        shutil.copy2(source, target)
    logger.info(f"staged {name} -> {target}")
    return UploadedFile(name=name, path=target.resolve(), size=size, content_type=content_type_for(name))


def discard_upload(uploaded: UploadedFile) -> None:
    """Remove a staged upload (used after a failed ingestion run)."""
    try:
        uploaded.path.unlink()
    except FileNotFoundError:
        return
    logger.info(f"removed staged upload {uploaded.path}")
