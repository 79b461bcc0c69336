"""
geo-suggest: Location-based metadata suggestions for uploaded media.

Suggests Wikimedia Commons categories and Wikidata subjects for a file from
the coordinates entered for it, using nearby category pages, the categories
of nearby files, and nearby Wikidata entities.
"""

__version__ = "0.1.0"

# Wikimedia APIs require a descriptive User-Agent
USER_AGENT = f"geo-suggest/{__version__} (https://commons.wikimedia.org/wiki/Commons:Geocoding)"
