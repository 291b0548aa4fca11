"""Lazy directory tree walker producing scoring candidates."""

from __future__ import annotations

import fnmatch
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, FrozenSet, Iterator, List, Optional, Tuple, Union

from ..config import Config
from ..entities import Candidate, EntryKind
from ..errors import TraversalError
from .fs import ChildEntry, list_children

logger = logging.getLogger(__name__)

Lister = Callable[[Union[str, Path]], List[ChildEntry]]

# (st_dev, st_ino) of a directory
DirKey = Tuple[int, int]


@dataclass
class WalkStats:
    """Counters collected while walking.

    Attributes:
        entries_scanned: Children seen across all listed directories
        entries_yielded: Candidates handed to the caller
        entries_skipped: Unreadable directories, broken links and cycles
        errors: Messages for skipped directories
    """
    entries_scanned: int = 0
    entries_yielded: int = 0
    entries_skipped: int = 0
    errors: List[str] = field(default_factory=list)


class TreeWalker:
    """Enumerate candidates below a root directory.

    Hidden entries are yielded (and descended into) unless
    ``config.include_hidden`` is False. The kind filter only controls what
    is yielded; directories are always descended into so that files below
    a filtered-out directory are still found.

    Order of the produced candidates is unspecified.

    Example:
        walker = TreeWalker(Config(kind_filter=KindFilter.FILES))
        for candidate in walker.walk(Path("src")):
            print(candidate.path)
    """

    def __init__(self, config: Config, lister: Optional[Lister] = None) -> None:
        self.config = config
        self.stats = WalkStats()
        self._lister: Lister = lister or list_children

    def walk(self, root: Union[str, Path]) -> Iterator[Candidate]:
        """Yield candidates below ``root``.

        The root itself is not a candidate unless it is a regular file, in
        which case it is the only one. A missing root yields nothing.
        """
        root_str = os.fspath(root)
        try:
            root_stat = os.stat(root_str)
        except OSError as exc:
            logger.warning("Cannot access search root %s: %s", root_str, exc.strerror or exc)
            self._record_skip(f"{root_str}: {exc.strerror or exc}")
            return

        if not os.path.isdir(root_str):
            candidate = Candidate.from_path(root_str, EntryKind.FILE)
            self.stats.entries_scanned += 1
            if self.config.kind_filter.accepts(candidate.kind):
                self.stats.entries_yielded += 1
                yield candidate
            return

        root_key = (root_stat.st_dev, root_stat.st_ino)
        # Each item is (directory, depth of its children, keys of its ancestors and itself)
        stack: List[Tuple[str, int, FrozenSet[DirKey]]] = [(root_str, 0, frozenset({root_key}))]

        while stack:
            directory, depth, ancestors = stack.pop()
            try:
                children = self._lister(directory)
            except TraversalError as exc:
                logger.warning("Skipping %s: %s", exc.path, exc.reason)
                self._record_skip(str(exc))
                continue

            for child in children:
                self.stats.entries_scanned += 1
                if not self._is_visible(child.name):
                    continue
                if child.kind is None:
                    logger.debug("Skipping unresolvable entry: %s", child.path)
                    self._record_skip()
                    continue

                if self.config.kind_filter.accepts(child.kind):
                    self.stats.entries_yielded += 1
                    yield Candidate(path=child.path, name=child.name, kind=child.kind)

                if child.kind is EntryKind.DIR:
                    key = self._descend_key(child, depth, ancestors)
                    if key is not None:
                        stack.append((child.path, depth + 1, ancestors | {key}))

    def _is_visible(self, name: str) -> bool:
        if not self.config.include_hidden and name.startswith("."):
            return False
        for pattern in self.config.exclude:
            if fnmatch.fnmatch(name, pattern):
                return False
        return True

    def _descend_key(
        self,
        child: ChildEntry,
        depth: int,
        ancestors: FrozenSet[DirKey],
    ) -> Optional[DirKey]:
        """Return the directory key of ``child`` if the walk should enter it.

        A directory is only refused when it is one of its own ancestors.
        The same directory reached through two unrelated paths is walked
        under both.
        """
        max_depth = self.config.max_depth
        if max_depth >= 0 and depth + 1 > max_depth:
            return None
        if child.is_symlink and not self.config.follow_symlinks:
            return None

        try:
            st = os.stat(child.path)
        except OSError as exc:
            logger.debug("Cannot stat %s: %s", child.path, exc)
            self._record_skip()
            return None

        key = (st.st_dev, st.st_ino)
        if key in ancestors:
            logger.debug("Skipping symlink cycle: %s", child.path)
            self._record_skip()
            return None
        return key

    def _record_skip(self, message: Optional[str] = None) -> None:
        self.stats.entries_skipped += 1
        if message:
            self.stats.errors.append(message)


def walk(root: Union[str, Path], config: Optional[Config] = None) -> Iterator[Candidate]:
    """Convenience wrapper around ``TreeWalker(config).walk(root)``."""
    return TreeWalker(config or Config()).walk(root)
