"""Shared filesystem helpers used by the bundler."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, Optional


def last_modified(path: Path) -> int:
    """Return the modification time of ``path`` in nanoseconds."""

    return path.stat().st_mtime_ns


def newest_modified(paths: Iterable[Path]) -> int:
    """Return the most recent modification time across ``paths``."""

    return max(last_modified(path) for path in paths)


def pin_modified_time(path: Path, mtime_ns: int) -> None:
    """Set the modification time of ``path`` to ``mtime_ns``, keeping its access time."""

    os.utime(path, ns=(path.stat().st_atime_ns, mtime_ns))


def is_stale(output: Path, input_mtime_ns: int) -> bool:
    """Return True when ``output`` is missing or older than its newest input."""

    try:
        return last_modified(output) < input_mtime_ns
    except FileNotFoundError:
        return True


def write_text(path: Path, content: str, *, newline: Optional[str] = None) -> None:
    """Write text to file ensuring parent directories exist."""

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8", newline=newline)
