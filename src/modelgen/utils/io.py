"""Output helpers: all-or-nothing writes of a set of files."""

from __future__ import annotations
from pathlib import Path
from typing import Dict, List, Tuple
import os
import shutil

__all__ = ["OutputExistsError", "write_files_atomically"]

TMP_SUFFIX = ".tmp"
BAK_SUFFIX = ".bak"


class OutputExistsError(FileExistsError):
    pass


def _discard(paths) -> None:
    for p in paths:
        p.unlink(missing_ok=True)


def _replace_staged(staged: List[Tuple[Path, Path]]) -> None:
    """Move every temporary over its target, restoring all targets on failure.

    Existing targets are backed up first; on error the backups are put back
    and targets that did not exist before are removed again.
    """
    backups: List[Tuple[Path, Path]] = []
    created: List[Path] = []
    try:
        for tmp, path in staged:
            existed = path.is_file()
            if existed:
                bak = path.with_name(path.name + BAK_SUFFIX)
                shutil.copyfile(path, bak)
                backups.append((bak, path))
            os.replace(tmp, path)
            if not existed:
                created.append(path)
    except OSError:
        for bak, path in backups:
            os.replace(bak, path)
        _discard(created)
        _discard(tmp for tmp, _ in staged)
        raise
    _discard(bak for bak, _ in backups)


def write_files_atomically(
    files: Dict[Path, bytes], *, force: bool = True
) -> int:
    """Write every file or none of them; returns total bytes written.

    Each payload goes to a sibling ``.tmp`` file first; targets are only
    replaced once all temporaries exist.
    """
    if not force:
        existing = [str(p) for p in files if p.exists()]
        if existing:
            raise OutputExistsError(
                f"Refusing to overwrite existing outputs: {', '.join(existing)}"
            )
    staged: List[Tuple[Path, Path]] = []
    try:
        for path, payload in files.items():
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp = path.with_name(path.name + TMP_SUFFIX)
            tmp.write_bytes(payload)
            staged.append((tmp, path))
    except OSError:
        _discard(tmp for tmp, _ in staged)
        raise
    _replace_staged(staged)
    return sum(len(p) for p in files.values())
