"""Exception hierarchy for shodh."""

from __future__ import annotations

from pathlib import Path
from typing import Union


class ShodhError(Exception):
    """Base class for all shodh errors."""


class ConfigError(ShodhError):
    """Invalid run configuration or settings file.

    Raised before traversal starts; a run never begins with a bad config.
    """


class TraversalError(ShodhError):
    """A directory could not be enumerated.

    Attributes:
        path: Directory that failed
        reason: One of "not-found", "not-readable", "not-a-directory"
    """

    NOT_FOUND = "not-found"
    NOT_READABLE = "not-readable"
    NOT_A_DIRECTORY = "not-a-directory"

    def __init__(self, path: Union[str, Path], reason: str, detail: str = "") -> None:
        self.path = Path(path)
        self.reason = reason
        self.detail = detail
        message = f"{self.path}: {reason}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)
