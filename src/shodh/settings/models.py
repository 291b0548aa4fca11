"""Pydantic models for the shodh settings file."""

from __future__ import annotations

from pydantic import BaseModel, Field


class SearchSettings(BaseModel):
    """Search defaults. ``None`` leaves the built-in default in place."""

    limit: int | None = Field(default=None, ge=0)
    case_sensitive: bool | None = None
    parallel: bool | None = None
    max_workers: int | None = Field(default=None, ge=1)
    batch_size: int | None = Field(default=None, ge=1)

    model_config = {"extra": "allow"}


class WalkSettings(BaseModel):
    """Traversal policy."""

    include_hidden: bool | None = None
    exclude: list[str] = Field(default_factory=list)
    max_depth: int | None = Field(default=None, ge=-1)
    follow_symlinks: bool | None = None

    model_config = {"extra": "allow"}


class ScoringSettings(BaseModel):
    """Alignment scorer weights."""

    match_weight: int = Field(default=2, ge=1)
    mismatch_penalty: int = Field(default=1, ge=0)
    gap_penalty: int = Field(default=2, ge=0)
    consecutive_bonus: int = Field(default=1, ge=0)
    boundary_bonus: int = Field(default=2, ge=0)

    model_config = {"extra": "allow"}


class ShodhSettings(BaseModel):
    """Root settings document.

    Example YAML:
        version: 1
        search:
          limit: 20
          case_sensitive: false
          max_workers: ${SHODH_WORKERS:-4}
        walk:
          include_hidden: false
          exclude: [".git", "node_modules", "__pycache__"]
          max_depth: -1
        scoring:
          match_weight: 2
          gap_penalty: 2
    """

    version: int = 1
    search: SearchSettings = Field(default_factory=SearchSettings)
    walk: WalkSettings = Field(default_factory=WalkSettings)
    scoring: ScoringSettings = Field(default_factory=ScoringSettings)

    model_config = {"extra": "allow"}
