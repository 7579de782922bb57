# archmodel/writer.py
from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml


def dump_yaml(data: Any) -> str:
    """Serialize with stable key order preserved as built (no re-sorting)."""
    return yaml.safe_dump(data, sort_keys=False, allow_unicode=True, default_flow_style=False)


def write_yaml(path: Path, data: Any) -> None:
    """Write a YAML document, creating parent directories as needed."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dump_yaml(data), encoding="utf-8")
