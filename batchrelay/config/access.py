"""
Process-wide config cache shared by the CLI commands.

Entries are keyed by resolved file path together with the file's modification
stamp, so a file rewritten by ``config init`` (or by hand) is re-read on the
next lookup without an explicit reload.
"""

from __future__ import annotations

import threading
from pathlib import Path

from batchrelay.config.loader import get_config_path, load_config
from batchrelay.config.schema import Config

_lock = threading.Lock()
# path -> (mtime_ns or None when the file is absent, config)
_entries: dict[Path, tuple[int | None, Config]] = {}


def _resolve(config_path: Path | None) -> Path:
    return Path(config_path or get_config_path()).expanduser().resolve()


def _stamp(path: Path) -> int | None:
    try:
        return path.stat().st_mtime_ns
    except FileNotFoundError:
        return None


def get_config(*, config_path: Path | None = None, force_reload: bool = False) -> Config:
    """
    Config for ``config_path`` (default file when omitted).

    Raises:
        ValueError: the file exists but does not hold a valid config.
    """
    path = _resolve(config_path)
    stamp = _stamp(path)
    with _lock:
        entry = _entries.get(path)
        if force_reload or entry is None or entry[0] != stamp:
            entry = (stamp, load_config(path))
            _entries[path] = entry
        return entry[1]


def clear_config_cache(*, config_path: Path | None = None) -> None:
    with _lock:
        if config_path is None:
            _entries.clear()
        else:
            _entries.pop(_resolve(config_path), None)
