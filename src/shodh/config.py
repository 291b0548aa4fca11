"""Configuration system for shodh.

A ``Config`` is a frozen snapshot of the run parameters. It is shared
read-only by the walker, every scoring worker and the aggregator.

Priority: defaults -> settings file -> environment -> explicit overrides.
"""

from __future__ import annotations

import dataclasses
import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from .entities import EntryKind
from .errors import ConfigError

log = logging.getLogger(__name__)

# Default number of results shown
DEFAULT_LIMIT = 10

# Candidates handed to a worker at a time
DEFAULT_BATCH_SIZE = 256

_TRUE_VALUES = {"true", "1", "yes", "on"}
_FALSE_VALUES = {"false", "0", "no", "off"}


def _default_workers() -> int:
    return os.cpu_count() or 1


class KindFilter(Enum):
    """Which entry kinds become candidates."""
    ALL = "all"
    FILES = "files"
    DIRS = "dirs"

    @classmethod
    def from_flags(cls, files_only: bool = False, dirs_only: bool = False) -> "KindFilter":
        """Build a filter from the mutually exclusive CLI flags.

        Raises:
            ConfigError: If both flags are set
        """
        if files_only and dirs_only:
            raise ConfigError("--files-only and --dirs-only are mutually exclusive")
        if files_only:
            return cls.FILES
        if dirs_only:
            return cls.DIRS
        return cls.ALL

    def accepts(self, kind: EntryKind) -> bool:
        if self is KindFilter.FILES:
            return kind is EntryKind.FILE
        if self is KindFilter.DIRS:
            return kind is EntryKind.DIR
        return True


@dataclass(frozen=True)
class ScoringWeights:
    """Weights of the alignment scorer.

    - match_weight: added for each aligned equal character
    - mismatch_penalty: subtracted for an aligned unequal character
    - gap_penalty: subtracted for each skipped candidate character
    - consecutive_bonus: added when the previous pair was also a match
    - boundary_bonus: added when the matched character starts a word
    """

    match_weight: int = 2
    mismatch_penalty: int = 1
    gap_penalty: int = 2
    consecutive_bonus: int = 1
    boundary_bonus: int = 2

    def __post_init__(self) -> None:
        if self.match_weight < 1:
            raise ConfigError(f"match_weight must be >= 1, got {self.match_weight}")
        for name in ("mismatch_penalty", "gap_penalty", "consecutive_bonus", "boundary_bonus"):
            value = getattr(self, name)
            if value < 0:
                raise ConfigError(f"{name} must be >= 0, got {value}")


@dataclass(frozen=True)
class Config:
    """Run configuration.

    - case_sensitive: compare raw characters instead of case-folded ones
    - kind_filter: files only, directories only, or both
    - limit: maximum number of results (0 returns nothing)
    - parallel: score on a worker pool; False runs a single inline worker
    - max_workers: pool size when parallel
    - include_hidden: yield dot-prefixed entries and descend into them
    - exclude: glob patterns on the entry name; matches are not yielded or descended
    - max_depth: -1 unlimited, 0 only the root's children
    - follow_symlinks: descend into symlinked directories (cycle-guarded)
    - batch_size: candidates per work item handed to a worker
    - weights: alignment scorer weights
    """

    case_sensitive: bool = False
    kind_filter: KindFilter = KindFilter.ALL
    limit: int = DEFAULT_LIMIT
    parallel: bool = True
    max_workers: int = field(default_factory=_default_workers)
    include_hidden: bool = True
    exclude: Tuple[str, ...] = ()
    max_depth: int = -1
    follow_symlinks: bool = True
    batch_size: int = DEFAULT_BATCH_SIZE
    weights: ScoringWeights = field(default_factory=ScoringWeights)

    def __post_init__(self) -> None:
        # Accept any iterable of patterns but store a hashable tuple
        if not isinstance(self.exclude, tuple):
            object.__setattr__(self, "exclude", tuple(self.exclude))
        self.validate()

    def validate(self) -> None:
        """Check the configuration for contradictions.

        Raises:
            ConfigError: On an invalid limit, worker count, depth or batch size
        """
        if not isinstance(self.kind_filter, KindFilter):
            raise ConfigError(f"kind_filter must be a KindFilter, got {self.kind_filter!r}")
        if self.limit < 0:
            raise ConfigError(f"Result limit must be >= 0, got {self.limit}")
        if self.max_workers < 1:
            raise ConfigError(f"max_workers must be >= 1, got {self.max_workers}")
        if self.max_depth < -1:
            raise ConfigError(f"max_depth must be >= -1, got {self.max_depth}")
        if self.batch_size < 1:
            raise ConfigError(f"batch_size must be >= 1, got {self.batch_size}")

    @property
    def effective_workers(self) -> int:
        """Number of scoring workers for this run."""
        return self.max_workers if self.parallel else 1

    def replace(self, **changes: Any) -> "Config":
        """Return a copy with ``changes`` applied (validated again)."""
        return dataclasses.replace(self, **changes)

    @classmethod
    def load(
        cls,
        settings_path: Optional[Path | str] = None,
        **overrides: Any,
    ) -> "Config":
        """Load config from the settings file, environment and overrides.

        Args:
            settings_path: Explicit settings file (default: discovered)
            **overrides: Field values that win over everything else;
                ``None`` values are ignored

        Raises:
            ConfigError: If the explicit settings file or any value is invalid
        """
        from .settings import load_settings

        settings = load_settings(settings_path)
        values: Dict[str, Any] = {}

        search = settings.search
        for name in ("limit", "case_sensitive", "parallel", "max_workers", "batch_size"):
            value = getattr(search, name)
            if value is not None:
                values[name] = value

        walk = settings.walk
        for name in ("include_hidden", "max_depth", "follow_symlinks"):
            value = getattr(walk, name)
            if value is not None:
                values[name] = value
        if walk.exclude:
            values["exclude"] = tuple(walk.exclude)

        scoring = settings.scoring
        values["weights"] = ScoringWeights(
            match_weight=scoring.match_weight,
            mismatch_penalty=scoring.mismatch_penalty,
            gap_penalty=scoring.gap_penalty,
            consecutive_bonus=scoring.consecutive_bonus,
            boundary_bonus=scoring.boundary_bonus,
        )

        values.update(_env_overrides())
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


def _parse_bool(name: str, raw: str) -> Optional[bool]:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    log.warning("Invalid %s in environment: %r", name, raw)
    return None


def _parse_int(name: str, raw: str) -> Optional[int]:
    try:
        return int(raw)
    except ValueError:
        log.warning("Invalid %s in environment: %r", name, raw)
        return None


def _env_overrides() -> Dict[str, Any]:
    """Collect overrides from SHODH_* environment variables.

    Supported variables:
        SHODH_LIMIT: Result limit
        SHODH_CASE_SENSITIVE: Case-sensitive matching (true/false)
        SHODH_PARALLEL: Parallel scoring (true/false)
        SHODH_MAX_WORKERS: Worker pool size
        SHODH_INCLUDE_HIDDEN: Include dot-prefixed entries (true/false)
    """
    overrides: Dict[str, Any] = {}

    int_vars = {"SHODH_LIMIT": "limit", "SHODH_MAX_WORKERS": "max_workers"}
    for env_name, field_name in int_vars.items():
        raw = os.environ.get(env_name)
        if raw is None:
            continue
        value = _parse_int(env_name, raw)
        if value is not None:
            overrides[field_name] = value
            log.debug("Overriding %s from environment: %s", field_name, value)

    bool_vars = {
        "SHODH_CASE_SENSITIVE": "case_sensitive",
        "SHODH_PARALLEL": "parallel",
        "SHODH_INCLUDE_HIDDEN": "include_hidden",
    }
    for env_name, field_name in bool_vars.items():
        raw = os.environ.get(env_name)
        if raw is None:
            continue
        flag = _parse_bool(env_name, raw)
        if flag is not None:
            overrides[field_name] = flag
            log.debug("Overriding %s from environment: %s", field_name, flag)

    return overrides
