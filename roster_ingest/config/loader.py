from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..excel.writer import DEFAULT_GROUPS_DIR, DEFAULT_SHEET_NAME
from ..services.staging import DEFAULT_BRANCH, DEFAULT_MAX_UPLOAD_BYTES

"""Config loader.

Responsibilities:
- Load YAML config (default ``config/ingest.yml``)
- Validate against the bundled JSON schema (config_schema.json)
- Apply defaults for optional keys
- ``ROSTER_UPLOAD_ROOT`` (environment / .env) overrides ``upload_root``
"""

DEFAULT_CONFIG_PATH = Path("config/ingest.yml")
SCHEMA_PATH = Path(__file__).with_name("config_schema.json")
UPLOAD_ROOT_ENV = "ROSTER_UPLOAD_ROOT"


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class IngestConfig:
    upload_root: str
    default_branch: str = DEFAULT_BRANCH
    groups_dir_name: str = DEFAULT_GROUPS_DIR
    output_sheet_name: str = DEFAULT_SHEET_NAME
    normalize_sections: bool = False
    include_rows: bool = True
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
    logs_dir: str = "logs"


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: schema file missing / not valid JSON, or data violates it
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")
    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def load_config(path: Path = DEFAULT_CONFIG_PATH) -> IngestConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping: {path}")

    # 環境変数を優先 (.env 読み込み後)
    env_root = os.getenv(UPLOAD_ROOT_ENV)
    if env_root:
        data = {**data, "upload_root": env_root}

    _validate_config_schema(data)

    return IngestConfig(
        upload_root=data["upload_root"],
        default_branch=data.get("default_branch", DEFAULT_BRANCH),
        groups_dir_name=data.get("groups_dir_name", DEFAULT_GROUPS_DIR),
        output_sheet_name=data.get("output_sheet_name", DEFAULT_SHEET_NAME),
        normalize_sections=data.get("normalize_sections", False),
        include_rows=data.get("include_rows", True),
        max_upload_bytes=data.get("max_upload_bytes", DEFAULT_MAX_UPLOAD_BYTES),
        logs_dir=data.get("logs_dir", "logs"),
    )
