"""
Configuration for geo-suggest.

Only fixed numeric parameters are configurable: search radii, result limits,
the upstream timeout and the retry cooldown.
"""

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

import yaml

from .commons import MAX_PAGEIDS_PER_REQUEST

PLUGIN_NAME = "datasette-geo-suggest"


@dataclass(frozen=True)
class SuggestConfig:
    """Suggestion engine parameters. Read-only once loaded."""

    nearby_files_limit: int = 50  # Nearby files (and category pages) to analyze
    retry_cooldown_seconds: float = 3.0  # Wait before allowing a retry
    suggestion_radius_m: int = 10000  # Category and subject search radius
    api_timeout_seconds: float = 10.0  # Per upstream call
    file_radius_m: int = 5000  # Nearby file search radius
    frequent_categories_limit: int = 25
    subject_limit: int = 50

    @property
    def subject_radius_km(self) -> float:
        """Subject search radius; the SPARQL service takes kilometers."""
        return self.suggestion_radius_m / 1000

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SuggestConfig":
        """Create config from a dictionary (e.g., from YAML).

        Unknown keys are ignored. Values are coerced to the field type.
        """
        values: dict[str, Any] = {}
        for f in fields(cls):
            if f.name in data and data[f.name] is not None:
                caster = float if f.type in (float, "float") else int
                values[f.name] = caster(data[f.name])
        config = cls(**values)
        config.check()
        return config

    @classmethod
    def from_yaml(cls, path: Path) -> "SuggestConfig":
        """Load config from a YAML file (datasette.yaml format)."""
        if not path.exists():
            return cls()

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        # Look for config under plugins.datasette-geo-suggest
        plugin_config = (data.get("plugins") or {}).get(PLUGIN_NAME) or {}
        return cls.from_dict(plugin_config)

    def check(self) -> None:
        """Raise ValueError if any parameter is out of range."""
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name == "retry_cooldown_seconds":
                if value < 0:
                    raise ValueError(f"{f.name} must not be negative, got {value}")
            elif value <= 0:
                raise ValueError(f"{f.name} must be positive, got {value}")

        # Every nearby file must fit in one batched category lookup
        if self.nearby_files_limit > MAX_PAGEIDS_PER_REQUEST:
            raise ValueError(
                f"nearby_files_limit must be at most {MAX_PAGEIDS_PER_REQUEST}, "
                f"got {self.nearby_files_limit}"
            )

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary for JSON serialization."""
        return {f.name: getattr(self, f.name) for f in fields(self)}
