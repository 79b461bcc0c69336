"""
Data models for geo-suggest.

All suggestion types are immutable value objects owned by the request that
produced them. Sources normalize upstream payloads into these shapes so
callers never see raw API records.
"""

from dataclasses import dataclass, field
from typing import Any

CATEGORY_PREFIX = "Category:"


def strip_category_prefix(title: str) -> str:
    """Normalize a category page title to its bare name."""
    return title.removeprefix(CATEGORY_PREFIX)


def format_degrees(value: float) -> str:
    """Fixed-point degrees without trailing zeros (never exponent notation)."""
    return f"{value:.5f}".rstrip("0").rstrip(".")


@dataclass(frozen=True)
class Coordinate:
    """A validated point. Build with coordinates.validate(), not directly."""

    lat: float
    lon: float

    @property
    def geosearch(self) -> str:
        """Center point in MediaWiki gscoord form."""
        return f"{format_degrees(self.lat)}|{format_degrees(self.lon)}"

    @property
    def wkt(self) -> str:
        """Center point as a WKT literal (longitude first)."""
        return f"Point({format_degrees(self.lon)} {format_degrees(self.lat)})"

    def to_dict(self) -> dict[str, Any]:
        return {"lat": self.lat, "lon": self.lon}


@dataclass(frozen=True)
class CategoryMatch:
    """A category page found directly by proximity search."""

    name: str
    distance_meters: float

    @property
    def distance_km(self) -> float:
        return self.distance_meters / 1000

    @property
    def display_label(self) -> str:
        return f"{self.name} ({self.distance_km:.2f}km)"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "name": self.name,
            "distance_meters": self.distance_meters,
            "distance_km": self.distance_km,
            "label": self.display_label,
        }


@dataclass(frozen=True)
class CategoryFrequency:
    """A category carried by one or more nearby files."""

    name: str
    count: int

    @property
    def display_label(self) -> str:
        return f"{self.name} ({self.count})"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"name": self.name, "count": self.count, "label": self.display_label}


@dataclass(frozen=True)
class SubjectMatch:
    """A Wikidata entity near the point."""

    id: str  # e.g., "Q727"
    label: str = ""
    description: str = ""
    distance_km: float = 0.0  # As computed by the query service

    @property
    def display_label(self) -> str:
        return f"{self.label} ({self.distance_km:.2f} km)"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        result: dict[str, Any] = {
            "id": self.id,
            "label": self.label,
            "distance_km": self.distance_km,
            "display_label": self.display_label,
        }
        if self.description:
            result["description"] = self.description
        return result


@dataclass(frozen=True)
class CategorySuggestions:
    """Both category lists, always present together, each possibly empty."""

    proximity: list[CategoryMatch] = field(default_factory=list)
    frequency: list[CategoryFrequency] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.proximity and not self.frequency

    def to_dict(self) -> dict[str, Any]:
        return {
            "proximity": [c.to_dict() for c in self.proximity],
            "frequency": [c.to_dict() for c in self.frequency],
        }


@dataclass(frozen=True)
class SuggestionResult:
    """
    Complete suggestion set for one coordinate.

    Proximity and frequency stay separate ranked lists: one measures
    distance, the other co-occurrence on nearby files.
    """

    categories_by_proximity: list[CategoryMatch] = field(default_factory=list)
    categories_by_frequency: list[CategoryFrequency] = field(default_factory=list)
    subjects: list[SubjectMatch] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (
            self.categories_by_proximity or self.categories_by_frequency or self.subjects
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "categories_by_proximity": [c.to_dict() for c in self.categories_by_proximity],
            "categories_by_frequency": [c.to_dict() for c in self.categories_by_frequency],
            "subjects": [s.to_dict() for s in self.subjects],
        }
