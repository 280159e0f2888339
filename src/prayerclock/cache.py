"""Memo table for computed days, keyed on rounded coordinates and calendar date."""

import logging
import threading
from collections import OrderedDict
from datetime import date

from prayerclock.methods import CalculationParameters
from prayerclock.models import DailyPrayerTable, GeoCoordinate

logger = logging.getLogger(__name__)

COORDINATE_PRECISION = 4


def cache_key(
    coordinate: GeoCoordinate,
    day: date,
    params: CalculationParameters,
    timezone: str,
    backend: str = "formula",
) -> str:
    """Build the key ``"lat,lon,YYYY-MM-DD|<params>|<timezone>|<backend>"``.

    Latitude and longitude are rounded to 4 decimals (~11 m), so positions
    that differ only beyond that share one entry.
    """
    p = COORDINATE_PRECISION
    head = f"{coordinate.lat:.{p}f},{coordinate.lon:.{p}f},{day.isoformat()}"
    return "|".join([head, params.fingerprint(), timezone, backend])


class PrayerTimeCache:
    """Insert-if-absent map from cache keys to DailyPrayerTable.

    Args:
        max_entries: Keep at most this many tables, evicting the least
            recently used. None = unbounded.
    """

    def __init__(self, max_entries: int | None = None) -> None:
        if max_entries is not None and max_entries < 1:
            raise ValueError(f"max_entries must be >= 1, got {max_entries}")
        self.max_entries = max_entries
        self.hits = 0
        self.misses = 0
        self._tables: OrderedDict[str, DailyPrayerTable] = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: str) -> DailyPrayerTable | None:
        with self._lock:
            table = self._tables.get(key)
            if table is None:
                self.misses += 1
                return None
            self.hits += 1
            self._tables.move_to_end(key)
            return table

    def put(self, key: str, table: DailyPrayerTable) -> DailyPrayerTable:
        """Store ``table`` unless ``key`` is present; return the stored table."""
        with self._lock:
            existing = self._tables.get(key)
            if existing is not None:
                self._tables.move_to_end(key)
                return existing
            self._tables[key] = table
            if self.max_entries is not None:
                while len(self._tables) > self.max_entries:
                    evicted, _ = self._tables.popitem(last=False)
                    logger.debug("Evicted %s", evicted)
            return table

    def clear(self) -> None:
        with self._lock:
            self._tables.clear()
            self.hits = 0
            self.misses = 0

    def __len__(self) -> int:
        return len(self._tables)

    def __contains__(self, key: object) -> bool:
        return key in self._tables
