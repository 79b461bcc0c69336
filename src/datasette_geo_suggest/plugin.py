"""
Datasette plugin exposing geo-suggest to the upload UI.

JSON endpoints only; rendering and applying suggestions is the caller's job.
- GET /-/geo-suggest/categories?lat=..&lon=..&file=..&existing=..
- GET /-/geo-suggest/subjects?lat=..&lon=..&file=..&existing=..

Each (endpoint, file) pair is one trigger: it is refused while its previous
request is running and during the retry cooldown after it started.
"""

import logging
import weakref
from dataclasses import dataclass
from typing import Any

from datasette import Response, hookimpl
from datasette.utils.asgi import Request

from geo_suggest.aggregator import SuggestionAggregator
from geo_suggest.config import PLUGIN_NAME, SuggestConfig
from geo_suggest.coordinates import validate
from geo_suggest.dedupe import filter_new
from geo_suggest.throttle import RequestGate, RequestRefused

logger = logging.getLogger(__name__)

MISSING_COORDINATES = "Please enter both latitude and longitude to get suggestions."
NO_CATEGORIES = "No categories found nearby. Try adjusting the coordinates."
NO_SUBJECTS = "No subjects found nearby. Try adjusting the coordinates."
IN_FLIGHT = "Suggestions for this file are already being fetched."
COOLDOWN = "Please wait a moment before trying again."

# -----------------------------------------------------------------------------
# Plugin Configuration
# -----------------------------------------------------------------------------


def get_plugin_config(datasette) -> SuggestConfig:
    """Get plugin configuration from datasette.yaml."""
    return SuggestConfig.from_dict(datasette.plugin_config(PLUGIN_NAME) or {})


@dataclass
class PluginState:
    """Per-Datasette engine and request gate."""

    config: SuggestConfig
    aggregator: SuggestionAggregator
    gate: RequestGate


_states: "weakref.WeakKeyDictionary[Any, PluginState]" = weakref.WeakKeyDictionary()


def get_state(datasette) -> PluginState:
    """Get or create the engine state for a Datasette instance."""
    state = _states.get(datasette)
    if state is None:
        config = get_plugin_config(datasette)
        state = PluginState(
            config=config,
            aggregator=SuggestionAggregator(config),
            gate=RequestGate(config.retry_cooldown_seconds),
        )
        _states[datasette] = state
    return state


# -----------------------------------------------------------------------------
# Request helpers
# -----------------------------------------------------------------------------


def trigger_key(kind: str, request: Request, fallback: str) -> str:
    """Identify the trigger (suggestion button) a request came from."""
    file_key = (request.args.get("file") or "").strip()
    return f"{kind}:{file_key or fallback}"


def refused_response(error: RequestRefused) -> Response:
    """429 for a gated trigger."""
    in_flight = error.reason == "in_flight"
    return Response.json(
        {
            "ok": False,
            "error": error.reason,
            "message": IN_FLIGHT if in_flight else COOLDOWN,
            "retry_after": round(error.retry_after, 2),
        },
        status=429,
    )


def invalid_coordinates_response() -> Response:
    return Response.json(
        {"ok": False, "error": "invalid_coordinates", "message": MISSING_COORDINATES},
        status=400,
    )


# -----------------------------------------------------------------------------
# Routes
# -----------------------------------------------------------------------------


async def suggest_categories(request: Request, datasette) -> Response:
    """Nearby and frequent categories for a point."""
    coordinate = validate(request.args.get("lat"), request.args.get("lon"))
    if coordinate is None:
        return invalid_coordinates_response()

    state = get_state(datasette)
    key = trigger_key("categories", request, coordinate.geosearch)
    existing = set(request.args.getlist("existing"))

    try:
        async with state.gate.hold(key):
            suggestions = await state.aggregator.suggest_categories(coordinate)
    except RequestRefused as e:
        logger.info(str(e))
        return refused_response(e)

    proximity = filter_new(suggestions.proximity, existing)
    frequency = filter_new(suggestions.frequency, existing)

    body: dict[str, Any] = {
        "ok": True,
        "coordinate": coordinate.to_dict(),
        "proximity": [c.to_dict() for c in proximity],
        "frequency": [c.to_dict() for c in frequency],
    }
    if not proximity and not frequency:
        body["notice"] = NO_CATEGORIES
    return Response.json(body)


async def suggest_subjects(request: Request, datasette) -> Response:
    """Nearby Wikidata subjects for a point."""
    coordinate = validate(request.args.get("lat"), request.args.get("lon"))
    if coordinate is None:
        return invalid_coordinates_response()

    state = get_state(datasette)
    key = trigger_key("subjects", request, coordinate.geosearch)
    existing = set(request.args.getlist("existing"))

    try:
        async with state.gate.hold(key):
            subjects = await state.aggregator.suggest_subjects(coordinate)
    except RequestRefused as e:
        logger.info(str(e))
        return refused_response(e)

    subjects = filter_new(subjects, existing)

    body: dict[str, Any] = {
        "ok": True,
        "coordinate": coordinate.to_dict(),
        "subjects": [s.to_dict() for s in subjects],
    }
    if not subjects:
        body["notice"] = NO_SUBJECTS
    return Response.json(body)


@hookimpl
def register_routes():
    """Register plugin routes with Datasette."""
    return [
        (r"^/-/geo-suggest/categories$", suggest_categories),
        (r"^/-/geo-suggest/subjects$", suggest_subjects),
    ]


@hookimpl
def startup(datasette):
    """Build the engine on startup; invalid configuration raises here."""
    config = get_state(datasette).config
    logger.info(f"geo-suggest configured: {config.to_dict()}")
