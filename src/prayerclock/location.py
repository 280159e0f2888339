"""Location collaborator: address geocoding and timezone lookup."""

import logging
from functools import lru_cache

import httpx
from timezonefinder import TimezoneFinder

from prayerclock.cache import COORDINATE_PRECISION
from prayerclock.errors import LocationUnavailableError
from prayerclock.models import GeoCoordinate

logger = logging.getLogger(__name__)

NOMINATIM_URL = "https://nominatim.openstreetmap.org/search"
USER_AGENT = "prayerclock/0.1 (+https://nominatim.org/release-docs/latest/api/Search/)"

_tf: TimezoneFinder | None = None


def _timezone_finder() -> TimezoneFinder:
    global _tf
    if _tf is None:
        _tf = TimezoneFinder()
    return _tf


def geocode_address(address: str) -> tuple[GeoCoordinate, str]:
    """Resolve a free-form address with Nominatim (OpenStreetMap).

    Args:
        address: Address string in any language.

    Returns:
        (coordinate, display_name) of the best match.

    Raises:
        LocationUnavailableError: On HTTP failure or when nothing matches.
    """
    params = {"q": address, "format": "json", "limit": 1}
    headers = {"User-Agent": USER_AGENT}
    try:
        resp = httpx.get(NOMINATIM_URL, params=params, headers=headers, timeout=10)
        resp.raise_for_status()
    except httpx.HTTPError as exc:
        raise LocationUnavailableError(f"Geocoder request failed: {exc}") from exc
    results = resp.json()
    if not results:
        raise LocationUnavailableError(f"Address not found: {address}")
    r = results[0]
    coordinate = GeoCoordinate(lat=float(r["lat"]), lon=float(r["lon"]))
    logger.debug("Geocoded %r to %s", address, coordinate)
    return coordinate, r["display_name"]


def resolve_timezone(coordinate: GeoCoordinate) -> str:
    """Return the IANA timezone name covering ``coordinate``.

    Lookups are memoized on the coordinate rounded like cache keys.

    Raises:
        LocationUnavailableError: When no zone is found.
    """
    p = COORDINATE_PRECISION
    tz_str = _zone_at(round(coordinate.lat, p), round(coordinate.lon, p))
    if tz_str is None:
        raise LocationUnavailableError(
            f"Timezone not found: lat={coordinate.lat}, lng={coordinate.lon}"
        )
    return tz_str


@lru_cache(maxsize=1024)
def _zone_at(lat: float, lon: float) -> str | None:
    return _timezone_finder().timezone_at(lat=lat, lng=lon)
