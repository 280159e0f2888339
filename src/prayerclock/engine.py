"""Prayer-time engine: cached day tables plus next-event and countdown derivations.

The engine never reads the system clock: every instant is supplied by the
caller, so a UI polling once a minute and a test pinning a fixed instant go
through the same code.
"""

import logging
from collections.abc import Sequence
from datetime import datetime
from pathlib import Path

import pytz

from prayerclock import ephemeris
from prayerclock.cache import PrayerTimeCache, cache_key
from prayerclock.compute import calculate_prayer_times
from prayerclock.errors import InvalidInputError
from prayerclock.i18n import t
from prayerclock.location import resolve_timezone
from prayerclock.methods import CalculationParameters, default_parameters
from prayerclock.models import DailyPrayerTable, GeoCoordinate, PrayerEvent, PrayerKind
from prayerclock.relative_time import relative_time

logger = logging.getLogger(__name__)

BACKENDS = ("formula", "skyfield")


def _require_aware(instant: datetime) -> None:
    if instant.tzinfo is None or instant.utcoffset() is None:
        raise InvalidInputError(
            f"Instant must be timezone-aware, got naive {instant.isoformat()}"
        )


def _zone(name: str) -> pytz.BaseTzInfo:
    try:
        return pytz.timezone(name)
    except pytz.UnknownTimeZoneError as exc:
        raise InvalidInputError(f"Unknown timezone: {name}") from exc


def get_next_event(
    events: Sequence[PrayerEvent], current_instant: datetime
) -> PrayerEvent | None:
    """Return the first event strictly after ``current_instant``.

    After the last event of the day this wraps to the first event of the
    *same* sequence (today's Fajr, already past); tomorrow is not computed.
    An empty sequence gives None.
    """
    _require_aware(current_instant)
    for event in events:
        if event.instant > current_instant:
            return event
    return events[0] if len(events) else None


def format_countdown(
    events: Sequence[PrayerEvent], current_instant: datetime, lang: str = "en"
) -> str:
    """Humanized offset from ``current_instant`` to the next event.

    Future events read "in 42 minutes"; the post-Isha wraparound reads
    "15 hours ago". Without events the "no data" sentinel is returned.
    """
    upcoming = get_next_event(events, current_instant)
    if upcoming is None:
        return t("no_data", lang)
    return relative_time(upcoming.instant, current_instant, lang)


def relative_times(
    events: Sequence[PrayerEvent], current_instant: datetime, lang: str = "en"
) -> list[tuple[PrayerEvent, str]]:
    """Pair every event with its offset from ``current_instant``."""
    _require_aware(current_instant)
    return [(e, relative_time(e.instant, current_instant, lang)) for e in events]


class PrayerTimeEngine:
    """Computes and memoizes DailyPrayerTable values.

    Args:
        params: Default calculation parameters (Muslim World League, Shafi).
        cache: Table cache; a private unbounded one when omitted.
        timezone: IANA zone for day boundaries and display times. When None
            the zone is looked up from each coordinate.
        backend: "formula" (closed-form solar ephemeris) or "skyfield"
            (JPL DE421 search, needs the ephemeris file).
        lang: Default language for countdown strings.
        ephemeris_dir: Directory holding de421.bsp for the skyfield backend.
    """

    def __init__(
        self,
        params: CalculationParameters | None = None,
        cache: PrayerTimeCache | None = None,
        timezone: str | None = None,
        backend: str = "formula",
        lang: str = "en",
        ephemeris_dir: str | Path | None = None,
    ) -> None:
        if backend not in BACKENDS:
            raise InvalidInputError(f"Unknown backend {backend!r}, expected {BACKENDS}")
        if timezone is not None:
            _zone(timezone)
        self.params = params or default_parameters()
        self.cache = cache if cache is not None else PrayerTimeCache()
        self.timezone = timezone
        self.backend = backend
        self.lang = lang
        self.ephemeris_dir = ephemeris_dir

    def compute_daily_table(
        self,
        coordinate: GeoCoordinate,
        reference_instant: datetime,
        params: CalculationParameters | None = None,
    ) -> DailyPrayerTable:
        """Return the six events for the calendar day containing ``reference_instant``.

        Args:
            coordinate: Observer location.
            reference_instant: Any tz-aware instant; only its date in the
                table timezone is used.
            params: Overrides the engine's default parameters for this call.

        Returns:
            The cached table for (rounded coordinate, date, parameters), computed
            on first request.

        Raises:
            InvalidInputError: ``reference_instant`` is naive.
            NoSolutionError: Polar day or night on that date.
            LocationUnavailableError: No timezone could be resolved.
        """
        _require_aware(reference_instant)
        params = params or self.params
        tz_name = self.timezone or resolve_timezone(coordinate)
        tz = _zone(tz_name)
        day = reference_instant.astimezone(tz).date()

        key = cache_key(coordinate, day, params, tz_name, self.backend)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("Cache hit %s", key)
            return cached

        logger.debug("Cache miss %s, computing with %s backend", key, self.backend)
        instants = self._calculate(coordinate, day, params)
        events = tuple(
            PrayerEvent(
                kind=kind,
                instant=instants[kind],
                time=instants[kind].astimezone(tz).strftime("%H:%M"),
            )
            for kind in PrayerKind
        )
        table = DailyPrayerTable(
            coordinate=coordinate,
            day=day,
            timezone=tz_name,
            params=params,
            events=events,
        )
        return self.cache.put(key, table)

    def _calculate(self, coordinate, day, params):
        if self.backend == "skyfield":
            return ephemeris.calculate_prayer_times(
                coordinate, day, params, directory=self.ephemeris_dir
            )
        return calculate_prayer_times(coordinate, day, params)

    def get_next_event(
        self, table: Sequence[PrayerEvent], current_instant: datetime
    ) -> PrayerEvent | None:
        return get_next_event(table, current_instant)

    def format_countdown(
        self,
        table: Sequence[PrayerEvent],
        current_instant: datetime,
        lang: str | None = None,
    ) -> str:
        return format_countdown(table, current_instant, lang or self.lang)

    def relative_times(
        self,
        table: Sequence[PrayerEvent],
        current_instant: datetime,
        lang: str | None = None,
    ) -> list[tuple[PrayerEvent, str]]:
        return relative_times(table, current_instant, lang or self.lang)


_default_engine: PrayerTimeEngine | None = None


def default_engine() -> PrayerTimeEngine:
    """Process-wide engine used by :func:`compute_daily_table`."""
    global _default_engine
    if _default_engine is None:
        _default_engine = PrayerTimeEngine()
    return _default_engine


def compute_daily_table(
    coordinate: GeoCoordinate,
    reference_instant: datetime,
    params: CalculationParameters | None = None,
) -> DailyPrayerTable:
    return default_engine().compute_daily_table(coordinate, reference_instant, params)
