from __future__ import annotations
import json
from pathlib import Path

from roster_ingest.cli import main as cli_main
from roster_ingest.logging.init import reset_logging


def _errors(temp_workdir: Path) -> list[dict]:
    records = []
    for f in (temp_workdir / "logs").glob("errors-*.log"):
        records.extend(json.loads(line) for line in f.read_text(encoding="utf-8").splitlines())
    return records


def test_cli_stages_and_ingests(write_config, make_roster, roster_rows, temp_workdir: Path, capsys):
    reset_logging()
    src = make_roster(roster_rows)
    out_json = temp_workdir / "out" / "response.json"
    code = cli_main([
        str(src),
        "--branch", "Cs",
        "--academic-year", "2024",
        "--output", str(out_json),
        "--config", "config/ingest.yml",
    ])
    out = capsys.readouterr().out
    assert code == 0

    staged = temp_workdir / "uploads" / "Cs" / "2024" / "L2 Info" / "L2 Info.xlsx"
    assert staged.exists()
    assert (staged.parent / "Groupes" / "L2 Info_G1.xlsx").exists()

    response = json.loads(out_json.read_text(encoding="utf-8"))
    assert response["originalFile"]["name"] == "L2 Info.xlsx"
    assert response["originalFile"]["path"] == str(staged.resolve())
    assert response["sections"] == ["Section A", "section a", "SecB"]
    assert len(response["groupFiles"]) == 3
    assert "students" in response["groupFiles"][0]
    assert "SUMMARY file=L2 Info.xlsx sections=3 groups=3 rows=4 students=3 skipped_rows=2" in out


def test_cli_normalize_flag_and_stdout(write_config, make_roster, roster_rows, temp_workdir: Path, capsys):
    reset_logging()
    src = make_roster(roster_rows)
    code = cli_main([str(src), "--normalize", "--no-stage", "--config", "config/ingest.yml"])
    out = capsys.readouterr().out
    assert code == 0
    payload = out[out.index("{"):out.rindex("}") + 1]
    response = json.loads(payload)
    assert response["sections"] == ["Section A", "Section SECB"]
    # --no-stage: 入力ファイルの隣に Groupes を作成
    assert (src.parent / "Groupes" / "L2 Info_Section_A_g1.xlsx").exists()
    assert not (temp_workdir / "uploads").exists()


def test_cli_config_normalize_and_no_rows(write_config, make_roster, roster_rows, temp_workdir: Path, capsys):
    reset_logging()
    text = write_config.read_text(encoding="utf-8")
    text = text.replace("normalize_sections: false", "normalize_sections: true").replace(
        "include_rows: true", "include_rows: false"
    )
    write_config.write_text(text, encoding="utf-8")
    out_json = temp_workdir / "response.json"
    code = cli_main([str(make_roster(roster_rows)), "--output", str(out_json), "--config", str(write_config)])
    assert code == 0
    response = json.loads(out_json.read_text(encoding="utf-8"))
    assert response["groupFiles"][0]["groupName"] == "Section A_g1"
    assert "students" not in response["groupFiles"][0]


def test_cli_missing_config(temp_workdir: Path, make_roster, roster_rows, capsys):
    reset_logging()
    code = cli_main([str(make_roster(roster_rows)), "--config", "config/ingest.yml"])
    out = capsys.readouterr().out
    assert code == 1
    assert "ERROR config:" in out


def test_cli_missing_input(write_config, temp_workdir: Path, capsys):
    reset_logging()
    code = cli_main([str(temp_workdir / "incoming" / "nope.xlsx"), "--config", "config/ingest.yml"])
    out = capsys.readouterr().out
    assert code == 1
    assert "ERROR upload:" in out
    assert [r["error_type"] for r in _errors(temp_workdir)] == ["FILE_NOT_FOUND_ERROR"]


def test_cli_blank_roster_cleanup(write_config, make_roster, temp_workdir: Path, capsys):
    reset_logging()
    src = make_roster([[None, None], [None, None]], name="blank.xlsx")
    code = cli_main([str(src), "--cleanup-on-error", "--config", "config/ingest.yml"])
    out = capsys.readouterr().out
    assert code == 1
    assert "ERROR processing:" in out
    assert not (temp_workdir / "uploads" / "Cs" / "blank" / "blank.xlsx").exists()
    records = _errors(temp_workdir)
    assert records[0]["error_type"] == "NO_HEADER_FOUND_ERROR"
    assert records[0]["file"] == "blank.xlsx"


def test_cli_blank_roster_kept_without_cleanup(write_config, make_roster, temp_workdir: Path, capsys):
    reset_logging()
    src = make_roster([[None, None]], name="blank.xlsx")
    code = cli_main([str(src), "--config", "config/ingest.yml"])
    assert code == 1
    assert (temp_workdir / "uploads" / "Cs" / "blank" / "blank.xlsx").exists()


def test_cli_upload_too_large(write_config, make_roster, roster_rows, temp_workdir: Path, capsys):
    reset_logging()
    text = write_config.read_text(encoding="utf-8").replace("max_upload_bytes: 1048576", "max_upload_bytes: 10")
    write_config.write_text(text, encoding="utf-8")
    code = cli_main([str(make_roster(roster_rows)), "--config", "config/ingest.yml"])
    out = capsys.readouterr().out
    assert code == 1
    assert "ERROR upload:" in out
    assert _errors(temp_workdir)[0]["error_type"] == "UPLOAD_TOO_LARGE_ERROR"


def test_cli_inspect(write_config, make_roster, roster_rows, capsys):
    reset_logging()
    code = cli_main([str(make_roster(roster_rows)), "--inspect", "--config", "config/ingest.yml"])
    out = capsys.readouterr().out
    assert code == 0
    assert "FILE: L2 Info.xlsx SHEET: Liste" in out
    assert "Matricule" in out


def test_cli_env_file_overrides_upload_root(write_config, make_roster, roster_rows, temp_workdir: Path, capsys, monkeypatch):
    reset_logging()
    (temp_workdir / ".env").write_text("ROSTER_UPLOAD_ROOT=./from-env\n", encoding="utf-8")
    # load_dotenv が上書きする値をテスト後に消すため先に登録しておく
    monkeypatch.setenv("ROSTER_UPLOAD_ROOT", "./ignored")
    code = cli_main([str(make_roster(roster_rows)), "--output", "r.json", "--config", "config/ingest.yml"])
    assert code == 0
    assert (temp_workdir / "from-env" / "Cs" / "L2 Info" / "L2 Info.xlsx").exists()


def test_cli_unreadable_workbook_cleanup(write_config, temp_workdir: Path, capsys):
    reset_logging()
    src = temp_workdir / "incoming" / "garbage.xlsx"
    src.write_bytes(b"not a workbook at all")
    code = cli_main([str(src), "--cleanup-on-error", "--config", "config/ingest.yml"])
    out = capsys.readouterr().out
    assert code == 1
    assert "ERROR processing:" in out
    assert not (temp_workdir / "uploads" / "Cs" / "garbage" / "garbage.xlsx").exists()
    records = _errors(temp_workdir)
    assert records[0]["error_type"] == "UNREADABLE_WORKBOOK_ERROR"
    assert records[0]["file"] == "garbage.xlsx"


def test_cli_inspect_unreadable_workbook(write_config, temp_workdir: Path, capsys):
    reset_logging()
    src = temp_workdir / "incoming" / "garbage.xlsx"
    src.write_bytes(b"PK\x03\x04broken")
    code = cli_main([str(src), "--inspect", "--config", "config/ingest.yml"])
    out = capsys.readouterr().out
    assert code == 1
    assert "inspect: cannot read workbook garbage.xlsx" in out


def test_cli_rejects_unsupported_upload(write_config, temp_workdir: Path, capsys):
    reset_logging()
    src = temp_workdir / "incoming" / "roster.csv"
    src.write_text("No,Ref\n1,R1\n", encoding="utf-8")
    code = cli_main([str(src), "--config", "config/ingest.yml"])
    out = capsys.readouterr().out
    assert code == 1
    assert "ERROR upload:" in out
    assert not (temp_workdir / "uploads").exists()
    assert _errors(temp_workdir)[0]["error_type"] == "UNSUPPORTED_UPLOAD_ERROR"


def test_cli_no_stage_rejects_unsupported_upload(write_config, temp_workdir: Path, capsys):
    reset_logging()
    src = temp_workdir / "incoming" / "roster.csv"
    src.write_text("No,Ref\n", encoding="utf-8")
    code = cli_main([str(src), "--no-stage", "--config", "config/ingest.yml"])
    assert code == 1
    assert "ERROR upload:" in capsys.readouterr().out
