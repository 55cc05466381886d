"""File scanner — enumerate and read CodeSource files."""

from __future__ import annotations

from pathlib import Path

# Directories never scanned for definition content
SKIP_DIRS = {".git", ".svn", "__pycache__", ".idea", ".vs"}

SOURCE_ENCODING = "utf-8-sig"


def list_files(directory: Path, pattern: str) -> list[Path]:
    """Recursively list files under ``directory`` whose name matches ``pattern``.

    The result is sorted by path so that repeated runs report in the same order.
    """
    files = []
    for item in directory.rglob(pattern):
        if item.is_file() and _should_include(item.relative_to(directory)):
            files.append(item)
    return sorted(files)


def list_top_level_dirs(directory: Path) -> list[Path]:
    """Immediate subdirectories of ``directory``, sorted by name."""
    return sorted(p for p in directory.iterdir() if p.is_dir())


def read_text(path: Path) -> str:
    """Read a whole file as text. A leading byte-order mark is dropped."""
    return path.read_text(encoding=SOURCE_ENCODING, errors="replace")


def _should_include(relative: Path) -> bool:
    for part in relative.parts[:-1]:
        if part in SKIP_DIRS:
            return False
    return True
