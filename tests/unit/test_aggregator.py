"""Tests for SuggestionAggregator."""

import asyncio
from unittest.mock import AsyncMock

import httpx
import pytest

from geo_suggest.aggregator import SuggestionAggregator
from geo_suggest.commons import CommonsClient, GeoCategorySource, GeoFileFrequencySource
from geo_suggest.config import SuggestConfig
from geo_suggest.models import (
    CategoryFrequency,
    CategoryMatch,
    CategorySuggestions,
    SubjectMatch,
)
from geo_suggest.wikidata import GeoSubjectSource

NEARBY = [CategoryMatch("Museumplein", 85.0), CategoryMatch("Rijksmuseum", 140.0)]
FREQUENT = [CategoryFrequency("Amsterdam", 12), CategoryFrequency("Museumplein", 4)]
SUBJECTS = [SubjectMatch(id="Q190804", label="Rijksmuseum", distance_km=0.088)]


@pytest.fixture
def sources():
    """Mock sources returning canned results."""
    category = AsyncMock(spec=GeoCategorySource)
    category.fetch_nearby_categories.return_value = NEARBY
    frequency = AsyncMock(spec=GeoFileFrequencySource)
    frequency.fetch_frequent_categories.return_value = FREQUENT
    subject = AsyncMock(spec=GeoSubjectSource)
    subject.fetch_nearby_subjects.return_value = SUBJECTS
    return category, frequency, subject


@pytest.fixture
def aggregator(sources):
    category, frequency, subject = sources
    return SuggestionAggregator(
        SuggestConfig(),
        category_source=category,
        frequency_source=frequency,
        subject_source=subject,
    )


class TestSuggestCategories:
    @pytest.mark.asyncio
    async def test_both_lists_present(self, aggregator, coordinate):
        result = await aggregator.suggest_categories(coordinate)

        assert result == CategorySuggestions(proximity=NEARBY, frequency=FREQUENT)

    @pytest.mark.asyncio
    async def test_passes_configured_parameters(self, aggregator, sources, coordinate):
        category, frequency, _ = sources

        await aggregator.suggest_categories(coordinate)

        category.fetch_nearby_categories.assert_awaited_once_with(
            coordinate, radius_meters=10000, limit=50
        )
        frequency.fetch_frequent_categories.assert_awaited_once_with(
            coordinate, radius_meters=5000, file_limit=50, category_limit=25
        )

    @pytest.mark.asyncio
    async def test_runs_sources_concurrently(self, aggregator, sources, coordinate):
        """Both category sources are in flight at the same time."""
        category, frequency, _ = sources
        both_started = asyncio.Event()
        started = []

        async def wait_for_sibling(result):
            started.append(result)
            if len(started) == 2:
                both_started.set()
            await asyncio.wait_for(both_started.wait(), timeout=1)
            return result

        async def nearby(*args, **kwargs):
            return await wait_for_sibling(NEARBY)

        async def frequent(*args, **kwargs):
            return await wait_for_sibling(FREQUENT)

        category.fetch_nearby_categories.side_effect = nearby
        frequency.fetch_frequent_categories.side_effect = frequent

        result = await aggregator.suggest_categories(coordinate)

        assert result.proximity == NEARBY
        assert result.frequency == FREQUENT

    @pytest.mark.asyncio
    async def test_one_source_failing_keeps_sibling(self, aggregator, sources, coordinate):
        """An exception from one branch leaves the other's result intact."""
        _, frequency, _ = sources
        frequency.fetch_frequent_categories.side_effect = RuntimeError("boom")

        result = await aggregator.suggest_categories(coordinate)

        assert result.proximity == NEARBY
        assert result.frequency == []

    @pytest.mark.asyncio
    async def test_degraded_upstream_keeps_sibling(self, mock_http, make_response, coordinate):
        """Real sources: frequency lookup times out, proximity still returned."""
        geosearch_categories = make_response(
            {"query": {"geosearch": [{"pageid": 1, "title": "Category:Museumplein", "dist": 85}]}}
        )

        async def fake_get(url, params=None, **kwargs):
            if params["list"] == "geosearch" and params["gsnamespace"] == 14:
                return geosearch_categories
            raise httpx.ReadTimeout("timed out")

        mock_http.get.side_effect = fake_get
        commons = CommonsClient()
        aggregator = SuggestionAggregator(
            category_source=GeoCategorySource(commons),
            frequency_source=GeoFileFrequencySource(commons),
            subject_source=AsyncMock(spec=GeoSubjectSource),
        )

        result = await aggregator.suggest_categories(coordinate)

        assert result.proximity == [CategoryMatch("Museumplein", 85.0)]
        assert result.frequency == []


class TestSuggestSubjects:
    @pytest.mark.asyncio
    async def test_returns_subjects(self, aggregator, sources, coordinate):
        _, _, subject = sources

        result = await aggregator.suggest_subjects(coordinate)

        assert result == SUBJECTS
        subject.fetch_nearby_subjects.assert_awaited_once_with(
            coordinate, radius_km=10.0, limit=50
        )

    @pytest.mark.asyncio
    async def test_does_not_touch_category_sources(self, aggregator, sources, coordinate):
        category, frequency, _ = sources

        await aggregator.suggest_subjects(coordinate)

        category.fetch_nearby_categories.assert_not_awaited()
        frequency.fetch_frequent_categories.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failure_is_empty(self, aggregator, sources, coordinate):
        _, _, subject = sources
        subject.fetch_nearby_subjects.side_effect = RuntimeError("boom")

        assert await aggregator.suggest_subjects(coordinate) == []


class TestSuggest:
    @pytest.mark.asyncio
    async def test_combines_all_sources(self, aggregator, coordinate):
        result = await aggregator.suggest(coordinate)

        assert result.categories_by_proximity == NEARBY
        assert result.categories_by_frequency == FREQUENT
        assert result.subjects == SUBJECTS

    @pytest.mark.asyncio
    async def test_nothing_found_is_empty(self, aggregator, sources, coordinate):
        category, frequency, subject = sources
        category.fetch_nearby_categories.return_value = []
        frequency.fetch_frequent_categories.return_value = []
        subject.fetch_nearby_subjects.return_value = []

        result = await aggregator.suggest(coordinate)

        assert result.is_empty()


class TestDefaults:
    def test_builds_default_sources(self):
        """Without injected sources the public endpoints are used."""
        aggregator = SuggestionAggregator(SuggestConfig(api_timeout_seconds=4))

        assert isinstance(aggregator.category_source, GeoCategorySource)
        assert isinstance(aggregator.frequency_source, GeoFileFrequencySource)
        assert aggregator.category_source.client is aggregator.frequency_source.client
        assert aggregator.category_source.client.timeout == 4
        assert aggregator.subject_source.client.timeout == 4
