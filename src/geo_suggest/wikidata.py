"""
Wikidata subject source for geo-suggest.

Finds entities with a coordinate location (P625) near a point using the
Wikidata Query Service's wikibase:around geospatial service.

API Documentation: https://www.mediawiki.org/wiki/Wikidata_Query_Service/User_Manual
"""

import asyncio
import logging
from typing import Any

import httpx

from . import USER_AGENT
from .models import Coordinate, SubjectMatch

logger = logging.getLogger(__name__)

SPARQL_URL = "https://query.wikidata.org/sparql"
ENTITY_PREFIX = "http://www.wikidata.org/entity/"
LABEL_LANGUAGE = "en"

NEARBY_QUERY = """
SELECT ?item ?itemLabel ?itemDescription ?distance WHERE {{
  SERVICE wikibase:around {{
    ?item wdt:P625 ?location .
    bd:serviceParam wikibase:center "{center}"^^geo:wktLiteral .
    bd:serviceParam wikibase:radius "{radius_km}" .
    bd:serviceParam wikibase:distance ?distance .
  }}
  SERVICE wikibase:label {{ bd:serviceParam wikibase:language "{language}". }}
}}
ORDER BY ?distance
LIMIT {limit}
"""


def build_nearby_query(
    coordinate: Coordinate,
    radius_km: float,
    limit: int,
    language: str = LABEL_LANGUAGE,
) -> str:
    """Render the proximity query for a point. Radius is in kilometers."""
    return NEARBY_QUERY.format(
        center=coordinate.wkt,
        radius_km=radius_km,
        language=language,
        limit=int(limit),
    )


def extract_qid(uri: str) -> str:
    """Strip the entity URI prefix, e.g. ".../entity/Q727" -> "Q727"."""
    return uri.removeprefix(ENTITY_PREFIX)


def parse_bindings(bindings: list[dict[str, Any]]) -> list[SubjectMatch]:
    """Convert SPARQL result bindings into SubjectMatch, keeping their order."""
    subjects = []
    for binding in bindings:
        subjects.append(
            SubjectMatch(
                id=extract_qid(binding["item"]["value"]),
                label=binding.get("itemLabel", {}).get("value", ""),
                description=binding.get("itemDescription", {}).get("value", ""),
                # The service already reports kilometers
                distance_km=float(binding["distance"]["value"]),
            )
        )
    return subjects


class WikidataClient:
    """Client for the Wikidata SPARQL endpoint."""

    def __init__(self, timeout_seconds: float = 10.0, endpoint: str = SPARQL_URL):
        self.timeout = timeout_seconds
        self.endpoint = endpoint

    async def query(self, sparql: str) -> list[dict[str, Any]]:
        """
        Run a SELECT query and return its result bindings.

        Raises on transport errors, non-success statuses and payloads that
        are not SPARQL JSON results.
        """
        async with httpx.AsyncClient(
            timeout=self.timeout,
            headers={
                "Accept": "application/sparql-results+json",
                "User-Agent": USER_AGENT,
            },
        ) as client:
            async with asyncio.timeout(self.timeout):
                response = await client.get(
                    self.endpoint, params={"query": sparql}, follow_redirects=True
                )
            response.raise_for_status()
            data = response.json()

        return data["results"]["bindings"]


class GeoSubjectSource:
    """Wikidata entities near a point, nearest first."""

    def __init__(self, client: WikidataClient, language: str = LABEL_LANGUAGE):
        self.client = client
        self.language = language

    async def fetch_nearby_subjects(
        self,
        coordinate: Coordinate,
        radius_km: float,
        limit: int,
    ) -> list[SubjectMatch]:
        """
        Fetch entities within radius_km of the point.

        Returns an empty list on any upstream failure.
        """
        sparql = build_nearby_query(coordinate, radius_km, limit, self.language)
        logger.debug(f"Fetching nearby Wikidata items at {coordinate.wkt} radius={radius_km}km")

        try:
            bindings = await self.client.query(sparql)
            subjects = parse_bindings(bindings)
        except Exception:
            logger.exception(f"Failed to fetch nearby subjects for {coordinate.wkt}")
            return []

        logger.info(f"Found {len(subjects)} nearby subjects at {coordinate.wkt}")
        return subjects
