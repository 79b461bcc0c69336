"""
CLI runner for geo-suggest.

Usage:
    python -m geo_suggest.run --lat LAT --lon LON [OPTIONS]

    # Categories and subjects near the Rijksmuseum
    python -m geo_suggest.run --lat 52.36 --lon 4.8852

    # Categories only, skipping ones the file already has
    python -m geo_suggest.run --lat 52.36 --lon 4.8852 --categories --existing Amsterdam
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

from .aggregator import SuggestionAggregator
from .config import SuggestConfig
from .coordinates import validate
from .dedupe import filter_new
from .models import Coordinate

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("geo-suggest")


async def lookup(
    aggregator: SuggestionAggregator,
    coordinate: Coordinate,
    categories: bool = True,
    subjects: bool = True,
    existing: set[str] | None = None,
) -> dict[str, Any]:
    """
    Fetch the requested suggestions and filter out existing tags.

    Returns a JSON-serializable dictionary.
    """
    existing = existing or set()
    output: dict[str, Any] = {"coordinate": coordinate.to_dict()}

    if categories and subjects:
        result = await aggregator.suggest(coordinate)
        proximity = result.categories_by_proximity
        frequency = result.categories_by_frequency
        found_subjects = result.subjects
    elif categories:
        category_suggestions = await aggregator.suggest_categories(coordinate)
        proximity = category_suggestions.proximity
        frequency = category_suggestions.frequency
        found_subjects = []
    else:
        proximity, frequency = [], []
        found_subjects = await aggregator.suggest_subjects(coordinate)

    if categories:
        output["categories_by_proximity"] = [
            c.to_dict() for c in filter_new(proximity, existing)
        ]
        output["categories_by_frequency"] = [
            c.to_dict() for c in filter_new(frequency, existing)
        ]
    if subjects:
        output["subjects"] = [s.to_dict() for s in filter_new(found_subjects, existing)]

    return output


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="geo-suggest: Category and subject suggestions from coordinates",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Everything near a point
    python -m geo_suggest.run --lat 52.36 --lon 4.8852

    # Subjects only
    python -m geo_suggest.run --lat 52.36 --lon 4.8852 --subjects

    # Use parameters from a config file
    python -m geo_suggest.run --config datasette.yaml --lat 52.36 --lon 4.8852
        """,
    )

    parser.add_argument("--lat", required=True, help="Latitude in decimal degrees")
    parser.add_argument("--lon", required=True, help="Longitude in decimal degrees")
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("datasette.yaml"),
        help="Path to config file (default: datasette.yaml)",
    )
    parser.add_argument(
        "--categories",
        action="store_true",
        help="Only suggest categories",
    )
    parser.add_argument(
        "--subjects",
        action="store_true",
        help="Only suggest subjects",
    )
    parser.add_argument(
        "--existing",
        nargs="*",
        default=[],
        metavar="TAG",
        help="Category names or entity IDs already applied to the file",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    coordinate = validate(args.lat, args.lon)
    if coordinate is None:
        logger.error("Please enter both latitude and longitude within range.")
        return 1

    try:
        config = SuggestConfig.from_yaml(args.config)
    except ValueError as e:
        logger.error(f"Invalid config in {args.config}: {e}")
        return 1

    # Neither flag means both
    want_categories = args.categories or not args.subjects
    want_subjects = args.subjects or not args.categories

    output = asyncio.run(
        lookup(
            SuggestionAggregator(config),
            coordinate,
            categories=want_categories,
            subjects=want_subjects,
            existing=set(args.existing),
        )
    )
    print(json.dumps(output, indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
