"""
Wikimedia Commons sources for geo-suggest.

Category suggestions come from two MediaWiki Action API lookups:
- category pages geotagged near the point (direct proximity)
- categories attached to files geotagged near the point (frequency)

API Documentation: https://www.mediawiki.org/wiki/API:Geosearch
"""

import asyncio
import logging
from collections import Counter
from typing import Any

import httpx

from . import USER_AGENT
from .models import CategoryFrequency, CategoryMatch, Coordinate, strip_category_prefix

logger = logging.getLogger(__name__)

COMMONS_API_URL = "https://commons.wikimedia.org/w/api.php"

# MediaWiki namespace numbers
NS_FILE = 6
NS_CATEGORY = 14

# Upper bound on pageids per prop=categories request
MAX_PAGEIDS_PER_REQUEST = 50


class CommonsClient:
    """
    Client for the Commons MediaWiki Action API.

    Methods raise on transport errors, non-success statuses and malformed
    payloads; the sources below turn those into empty results.
    """

    def __init__(self, timeout_seconds: float = 10.0, api_url: str = COMMONS_API_URL):
        """
        Initialize the Commons client.

        Args:
            timeout_seconds: Request timeout in seconds
            api_url: Action API endpoint
        """
        self.timeout = timeout_seconds
        self.api_url = api_url

    async def _query(self, params: dict[str, Any]) -> dict[str, Any]:
        """Run one action=query request and return its "query" object."""
        params = {"action": "query", "format": "json", **params}

        async with httpx.AsyncClient(
            timeout=self.timeout, headers={"User-Agent": USER_AGENT}
        ) as client:
            async with asyncio.timeout(self.timeout):
                response = await client.get(
                    self.api_url, params=params, follow_redirects=True
                )
            response.raise_for_status()
            data = response.json()

        if "error" in data:
            raise ValueError(f"API error: {data['error'].get('info', data['error'])}")
        return data.get("query", {})

    async def geosearch(
        self,
        coordinate: Coordinate,
        namespace: int,
        radius_meters: int,
        limit: int,
    ) -> list[dict[str, Any]]:
        """
        Find pages geotagged near a point.

        Args:
            coordinate: Search center
            namespace: MediaWiki namespace to search
            radius_meters: Search radius in meters
            limit: Maximum pages to return

        Returns:
            Geosearch records ({title, pageid, dist, ...}), nearest first
        """
        logger.debug(
            f"Geosearch ns={namespace} at {coordinate.geosearch} "
            f"radius={radius_meters}m limit={limit}"
        )
        query = await self._query(
            {
                "list": "geosearch",
                "gsnamespace": namespace,
                "gscoord": coordinate.geosearch,
                "gsradius": radius_meters,
                "gslimit": limit,
            }
        )
        return query.get("geosearch", [])

    async def page_categories(self, page_ids: list[int]) -> dict[str, list[str]]:
        """
        Look up visible categories for several pages in one request.

        Hidden (maintenance) categories are excluded server-side.

        Args:
            page_ids: Page IDs to look up

        Returns:
            Mapping of page ID to category titles
        """
        if len(page_ids) > MAX_PAGEIDS_PER_REQUEST:
            raise ValueError(
                f"At most {MAX_PAGEIDS_PER_REQUEST} page IDs per request, got {len(page_ids)}"
            )

        query = await self._query(
            {
                "prop": "categories",
                "pageids": "|".join(str(p) for p in page_ids),
                "clshow": "!hidden",
                "cllimit": "max",
            }
        )

        return {
            str(page_id): [cat["title"] for cat in page.get("categories", [])]
            for page_id, page in query.get("pages", {}).items()
        }


def parse_category_matches(records: list[dict[str, Any]]) -> list[CategoryMatch]:
    """Convert geosearch records into CategoryMatch, keeping upstream order."""
    return [
        CategoryMatch(
            name=strip_category_prefix(record["title"]),
            distance_meters=float(record["dist"]),
        )
        for record in records
    ]


def count_categories(
    categories_by_page: dict[str, list[str]],
    limit: int,
) -> list[CategoryFrequency]:
    """
    Rank categories by the number of pages carrying them.

    Each page counts at most once per category. Ties keep the order in which
    categories were first seen.
    """
    counts: Counter[str] = Counter()
    for titles in categories_by_page.values():
        names = dict.fromkeys(strip_category_prefix(t) for t in titles)
        counts.update(names.keys())

    return [CategoryFrequency(name=name, count=count) for name, count in counts.most_common(limit)]


class GeoCategorySource:
    """Category pages near a point, nearest first."""

    def __init__(self, client: CommonsClient):
        self.client = client

    async def fetch_nearby_categories(
        self,
        coordinate: Coordinate,
        radius_meters: int,
        limit: int,
    ) -> list[CategoryMatch]:
        """
        Fetch category pages within radius_meters of the point.

        Returns an empty list on any upstream failure.
        """
        try:
            records = await self.client.geosearch(coordinate, NS_CATEGORY, radius_meters, limit)
            matches = parse_category_matches(records)
        except Exception:
            logger.exception(f"Failed to fetch nearby categories for {coordinate.geosearch}")
            return []

        logger.info(f"Found {len(matches)} nearby categories at {coordinate.geosearch}")
        return matches


class GeoFileFrequencySource:
    """
    Categories ranked by how many nearby files carry them.

    Two round-trips regardless of file count: one geosearch over the File
    namespace, then one batched category lookup for every file found.
    """

    def __init__(self, client: CommonsClient):
        self.client = client

    async def fetch_frequent_categories(
        self,
        coordinate: Coordinate,
        radius_meters: int,
        file_limit: int,
        category_limit: int,
    ) -> list[CategoryFrequency]:
        """
        Fetch the most common categories among nearby files.

        All or nothing: if either request fails the result is empty, never a
        partial count.

        Args:
            coordinate: Search center
            radius_meters: File search radius in meters
            file_limit: Maximum files to analyze
            category_limit: Maximum categories to return

        Returns:
            Categories sorted by count, descending
        """
        try:
            files = await self.client.geosearch(coordinate, NS_FILE, radius_meters, file_limit)
            page_ids = list(dict.fromkeys(f["pageid"] for f in files))
            if not page_ids:
                logger.info(f"No nearby files at {coordinate.geosearch}")
                return []

            categories_by_page = await self.client.page_categories(page_ids)
            ranked = count_categories(categories_by_page, category_limit)
        except Exception:
            logger.exception(f"Failed to fetch frequent categories for {coordinate.geosearch}")
            return []

        logger.info(
            f"Counted {len(ranked)} categories over {len(page_ids)} files "
            f"at {coordinate.geosearch}"
        )
        return ranked
