# Shared pytest fixtures
from __future__ import annotations
import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pandas as pd
import pytest

HEADER = ["No", "Ref", "Filiere", "Matricule", "Nom", "Prenom", "Section", "Groupe"]


def make_excel(path: Path, sheets: dict[str, list[list[Any]]]) -> Path:
    """Write raw rows (no header handling) to a workbook, one entry per sheet."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        for sheet, rows in sheets.items():
            df = pd.DataFrame(rows, dtype=object)
            df.to_excel(writer, sheet_name=sheet, header=False, index=False)
    return path


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "incoming").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        monkeypatch.delenv("ROSTER_UPLOAD_ROOT", raising=False)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """upload_root: ./uploads
default_branch: Cs
groups_dir_name: Groupes
output_sheet_name: Students
normalize_sections: false
include_rows: true
max_upload_bytes: 1048576
logs_dir: logs
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "ingest.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def roster_header() -> list[str]:
    return list(HEADER)


@pytest.fixture()
def make_workbook(temp_workdir: Path) -> Callable[..., Path]:
    """Write several sheets into incoming/<name>."""
    def _make(name: str, sheets: dict[str, list[list[Any]]]) -> Path:
        return make_excel(temp_workdir / "incoming" / name, sheets)
    return _make


@pytest.fixture()
def roster_rows() -> list[list[Any]]:
    """A leading blank row, a header and five data rows (one footer, one without matricule)."""
    return [
        [None] * 8,
        list(HEADER),
        [1, "R001", "Info", "2024001", "Doe", "Jane", "Section A", "G1"],
        [2, "R002", "Info", "2024002", "Roe", "Rick", "section a", "g1"],
        [3, "R003", "Info", None, "Poe", "Ann", "SecB", "G2"],
        [4, "R004", "Info", "2024004", "Lee", "Sam", "Section A", "G2"],
        [None, None, None, None, None, None, None, None],
        ["Total", None, None, None, None, None, None, None],
    ]


@pytest.fixture()
def make_roster(temp_workdir: Path) -> Callable[..., Path]:
    def _make(rows: list[list[Any]], name: str = "L2 Info.xlsx", directory: Path | None = None) -> Path:
        target = (directory or temp_workdir / "incoming") / name
        return make_excel(target, {"Liste": rows})
    return _make
