"""Read-only filesystem queries shared by every ecosystem profile.

Traversal never follows symlinks, so directory cycles cannot occur. Entries
that cannot be listed or read are skipped and described in the optional
``warnings`` list instead of aborting the scan.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Collection, Iterator
from fnmatch import fnmatchcase
from pathlib import Path

logger = logging.getLogger(__name__)


def _warn(warnings: list[str] | None, message: str) -> None:
    logger.warning(message)
    if warnings is not None:
        warnings.append(message)


def exists(root: Path, name: str, warnings: list[str] | None = None) -> bool:
    path = root / name
    try:
        return path.is_file()
    except OSError as exc:
        _warn(warnings, f"Skipped unreadable entry {path}: {exc.strerror or exc}")
        return False


def find_glob(root: Path, pattern: str, warnings: list[str] | None = None) -> str | None:
    try:
        with os.scandir(root) as it:
            names = sorted(e.name for e in it if e.is_file(follow_symlinks=False))
    except OSError as exc:
        _warn(warnings, f"Skipped unreadable directory {root}: {exc.strerror or exc}")
        return None
    for name in names:
        if fnmatchcase(name, pattern):
            return name
    return None


def _sorted_entries(directory: Path, warnings: list[str] | None) -> list[os.DirEntry[str]] | None:
    try:
        with os.scandir(directory) as it:
            return sorted(it, key=lambda e: e.name)
    except OSError as exc:
        _warn(warnings, f"Skipped unreadable directory {directory}: {exc.strerror or exc}")
        return None


def walk_files(root: Path, warnings: list[str] | None = None) -> Iterator[Path]:
    # Depth-first in name order; one entry iterator per open directory.
    top = _sorted_entries(root, warnings)
    if top is None:
        return
    stack: list[Iterator[os.DirEntry[str]]] = [iter(top)]
    while stack:
        entry = next(stack[-1], None)
        if entry is None:
            stack.pop()
            continue
        try:
            if entry.is_dir(follow_symlinks=False):
                children = _sorted_entries(Path(entry.path), warnings)
                if children is not None:
                    stack.append(iter(children))
            elif entry.is_file(follow_symlinks=False):
                yield Path(entry.path)
        except OSError as exc:
            _warn(warnings, f"Skipped unreadable entry {entry.path}: {exc.strerror or exc}")


def has_extension(root: Path, ext: str | Collection[str], warnings: list[str] | None = None) -> bool:
    wanted = {ext} if isinstance(ext, str) else set(ext)
    return any(path.suffix in wanted for path in walk_files(root, warnings))


def read_source(path: Path, warnings: list[str] | None = None) -> str | None:
    try:
        raw = path.read_bytes()
    except OSError as exc:
        _warn(warnings, f"Skipped unreadable file {path}: {exc.strerror or exc}")
        return None
    return raw.decode("utf-8", errors="ignore")
