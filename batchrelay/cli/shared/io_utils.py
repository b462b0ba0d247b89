"""Parsing helpers for CLI arguments and batch files."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any


def parse_value(raw: str) -> Any:
    """Parse CLI input value as JSON if possible; fallback to string."""
    text = raw.strip()
    if text == "":
        return None
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        lowered = text.lower()
        if lowered in {"true", "false"}:
            return lowered == "true"
        return text


def load_calls(path: Path) -> list[dict[str, Any]]:
    """
    Read a batch file: a JSON array of ``{"method": ..., "params": ...}``.

    Raises:
        ValueError: the file is not such an array.
    """
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
        raise ValueError(f"{path} must hold a JSON array of call objects")
    return data


def format_result(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)
