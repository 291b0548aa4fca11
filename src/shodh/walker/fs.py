"""Filesystem primitive: list the immediate children of one directory."""

from __future__ import annotations

import errno
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

from ..entities import EntryKind
from ..errors import TraversalError


@dataclass(frozen=True)
class ChildEntry:
    """One child of a listed directory.

    ``kind`` is None when the entry cannot be classified, which happens for
    broken symlinks and entries removed between listing and inspection.
    """
    path: str
    name: str
    kind: Optional[EntryKind]
    is_symlink: bool = False


def _classify(entry: os.DirEntry) -> tuple[Optional[EntryKind], bool]:
    try:
        is_symlink = entry.is_symlink()
        if entry.is_dir():
            return EntryKind.DIR, is_symlink
        if is_symlink and not os.path.exists(entry.path):
            return None, True
        return EntryKind.FILE, is_symlink
    except OSError:
        return None, False


def list_children(directory: Union[str, Path]) -> List[ChildEntry]:
    """List the immediate children of ``directory``.

    Directory-ness follows symlinks, so a link to a directory is reported as
    DIR with ``is_symlink`` set; the caller decides whether to descend.

    Raises:
        TraversalError: If the directory is missing, unreadable or not a directory
    """
    try:
        with os.scandir(directory) as it:
            entries = list(it)
    except FileNotFoundError as exc:
        raise TraversalError(directory, TraversalError.NOT_FOUND, exc.strerror or "") from exc
    except NotADirectoryError as exc:
        raise TraversalError(directory, TraversalError.NOT_A_DIRECTORY, exc.strerror or "") from exc
    except PermissionError as exc:
        raise TraversalError(directory, TraversalError.NOT_READABLE, exc.strerror or "") from exc
    except OSError as exc:
        # ELOOP and friends: treat as unreadable
        reason = TraversalError.NOT_FOUND if exc.errno == errno.ENOENT else TraversalError.NOT_READABLE
        raise TraversalError(directory, reason, exc.strerror or str(exc)) from exc

    children: List[ChildEntry] = []
    for entry in entries:
        kind, is_symlink = _classify(entry)
        children.append(ChildEntry(path=entry.path, name=entry.name, kind=kind, is_symlink=is_symlink))
    return children
