"""Datasette plugin serving location-based category and subject suggestions."""

from datasette_geo_suggest.plugin import (
    register_routes,
    startup,
)

__all__ = [
    "register_routes",
    "startup",
]
