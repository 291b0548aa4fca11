"""Settings file support (YAML or JSON, validated with pydantic)."""

from .loader import find_settings_file, load_settings
from .models import ScoringSettings, SearchSettings, ShodhSettings, WalkSettings

__all__ = [
    "ScoringSettings",
    "SearchSettings",
    "ShodhSettings",
    "WalkSettings",
    "find_settings_file",
    "load_settings",
]
