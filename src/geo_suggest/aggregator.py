"""
Suggestion aggregation for geo-suggest.

Fans out to the category and subject sources concurrently and joins their
results. Each source degrades to an empty list on failure, so a failing
source never blocks or cancels its siblings.
"""

import asyncio
import logging
from typing import Any

from .commons import CommonsClient, GeoCategorySource, GeoFileFrequencySource
from .config import SuggestConfig
from .models import (
    CategoryFrequency,
    CategoryMatch,
    CategorySuggestions,
    Coordinate,
    SubjectMatch,
    SuggestionResult,
)
from .wikidata import GeoSubjectSource, WikidataClient

logger = logging.getLogger(__name__)


def _or_empty(result: Any, source: str) -> list:
    """Replace an exception that escaped a source with an empty list."""
    if isinstance(result, BaseException):
        logger.error(f"{source} raised past its boundary: {result!r}")
        return []
    return result


class SuggestionAggregator:
    """
    Coordinates the three suggestion sources.

    Proximity and frequency categories are returned as two separate ranked
    lists; no combined score is computed. There is no retry here: one
    attempt per user action.
    """

    def __init__(
        self,
        config: SuggestConfig | None = None,
        category_source: GeoCategorySource | None = None,
        frequency_source: GeoFileFrequencySource | None = None,
        subject_source: GeoSubjectSource | None = None,
    ):
        """
        Initialize the aggregator.

        Sources default to ones backed by the public Commons and Wikidata
        endpoints, using the configured timeout.
        """
        self.config = config or SuggestConfig()
        timeout = self.config.api_timeout_seconds

        if category_source is None or frequency_source is None:
            commons = CommonsClient(timeout_seconds=timeout)
            category_source = category_source or GeoCategorySource(commons)
            frequency_source = frequency_source or GeoFileFrequencySource(commons)

        self.category_source = category_source
        self.frequency_source = frequency_source
        self.subject_source = subject_source or GeoSubjectSource(
            WikidataClient(timeout_seconds=timeout)
        )

    async def _nearby(self, coordinate: Coordinate) -> list[CategoryMatch]:
        return await self.category_source.fetch_nearby_categories(
            coordinate,
            radius_meters=self.config.suggestion_radius_m,
            limit=self.config.nearby_files_limit,
        )

    async def _frequent(self, coordinate: Coordinate) -> list[CategoryFrequency]:
        return await self.frequency_source.fetch_frequent_categories(
            coordinate,
            radius_meters=self.config.file_radius_m,
            file_limit=self.config.nearby_files_limit,
            category_limit=self.config.frequent_categories_limit,
        )

    async def suggest_categories(self, coordinate: Coordinate) -> CategorySuggestions:
        """Fetch proximity and frequency categories concurrently; wait for both."""
        nearby, frequent = await asyncio.gather(
            self._nearby(coordinate),
            self._frequent(coordinate),
            return_exceptions=True,
        )
        return CategorySuggestions(
            proximity=_or_empty(nearby, "GeoCategorySource"),
            frequency=_or_empty(frequent, "GeoFileFrequencySource"),
        )

    async def suggest_subjects(self, coordinate: Coordinate) -> list[SubjectMatch]:
        """Fetch nearby Wikidata subjects."""
        try:
            return await self.subject_source.fetch_nearby_subjects(
                coordinate,
                radius_km=self.config.subject_radius_km,
                limit=self.config.subject_limit,
            )
        except Exception as e:
            return _or_empty(e, "GeoSubjectSource")

    async def suggest(self, coordinate: Coordinate) -> SuggestionResult:
        """Fetch categories and subjects for a point, all sources concurrently."""
        categories, subjects = await asyncio.gather(
            self.suggest_categories(coordinate),
            self.suggest_subjects(coordinate),
        )
        result = SuggestionResult(
            categories_by_proximity=categories.proximity,
            categories_by_frequency=categories.frequency,
            subjects=subjects,
        )
        logger.info(
            f"Suggestions for {coordinate.geosearch}: "
            f"{len(result.categories_by_proximity)} nearby, "
            f"{len(result.categories_by_frequency)} frequent, "
            f"{len(result.subjects)} subjects"
        )
        return result
