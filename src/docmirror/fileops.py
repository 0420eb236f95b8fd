"""Small filesystem helpers shared by the cache, ledger and orchestrator."""

from __future__ import annotations

import os
import shutil
import sys
from contextlib import suppress
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path


def atomic_write_text(path: Path, text: str) -> None:
    """Write ``text`` to ``path`` with atomic replace semantics.

    Parent directories are created as needed. A crash leaves either the old
    file or the new one, never a truncated mix.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(path.name + ".tmp")
    try:
        _write_bytes_fsync(tmp_path, text.encode("utf-8"))
        os.replace(tmp_path, path)
        _fsync_directory(path.parent)
    finally:
        with suppress(OSError):
            tmp_path.unlink(missing_ok=True)


def read_lines(path: Path) -> list[str]:
    """Return non-blank lines of a newline-delimited list file, or [] if absent."""
    if not path.is_file():
        return []
    return [line.strip() for line in path.read_text(encoding="utf-8").splitlines() if line.strip()]


def remove_tree(path: Path) -> bool:
    """Delete a directory tree. Returns False when there was nothing to delete."""
    if not path.exists():
        return False
    shutil.rmtree(path)
    return True


def _write_bytes_fsync(path: Path, data: bytes) -> None:
    with path.open("wb") as file_obj:
        file_obj.write(data)
        file_obj.flush()
        os.fsync(file_obj.fileno())


def _fsync_directory(path: Path) -> None:
    if sys.platform == "win32":
        return  # Windows does not support fsync on directory handles
    directory_fd = os.open(path, os.O_RDONLY)
    try:
        os.fsync(directory_fd)
    finally:
        os.close(directory_fd)
