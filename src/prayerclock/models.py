"""Data model definitions. Boundaries between the input, compute and display layers."""

import math
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum

from prayerclock.errors import InvalidInputError
from prayerclock.methods import CalculationParameters


@dataclass(frozen=True)
class QueryInput:
    """Raw CLI input. Not yet validated."""

    address: str | None  # Free-form address, used when no coordinates given
    lat: float | None  # Latitude (decimal degrees)
    lon: float | None  # Longitude (decimal degrees)
    when: str | None  # "YYYY-MM-DD"; None = today in the location's timezone


@dataclass(frozen=True)
class GeoCoordinate:
    """A point on the WGS84 ellipsoid. Validated on construction."""

    lat: float  # Latitude (decimal degrees, south negative)
    lon: float  # Longitude (decimal degrees, east positive)

    def __post_init__(self) -> None:
        if not (math.isfinite(self.lat) and math.isfinite(self.lon)):
            raise InvalidInputError(f"Non-finite coordinate: {self.lat}, {self.lon}")
        if not -90 <= self.lat <= 90:
            raise InvalidInputError(f"Latitude out of range: {self.lat}")
        if not -180 <= self.lon <= 180:
            raise InvalidInputError(f"Longitude out of range: {self.lon}")


class PrayerKind(Enum):
    """The six daily events, declared in the order they occur."""

    FAJR = ("Fajr", "sunrise.fill")
    SUNRISE = ("Sunrise", "sun.max.fill")
    DHUHR = ("Dhuhr", "sun.max.fill")
    ASR = ("Asr", "sun.min.fill")
    MAGHRIB = ("Maghrib", "sunset.fill")
    ISHA = ("Isha", "moon.fill")

    @property
    def display_name(self) -> str:
        return self.value[0]

    @property
    def icon(self) -> str:
        return self.value[1]

    @property
    def key(self) -> str:
        return self.name.lower()


@dataclass(frozen=True)
class PrayerEvent:
    """One event of the day with its absolute instant and display time."""

    kind: PrayerKind
    instant: datetime  # UTC, tz-aware
    time: str  # "HH:MM" in the table's timezone

    @property
    def name(self) -> str:
        return self.kind.display_name

    @property
    def icon(self) -> str:
        return self.kind.icon


@dataclass(frozen=True)
class DailyPrayerTable:
    """Six events for one calendar day at one place. The sole input to display code."""

    coordinate: GeoCoordinate
    day: date  # Calendar date in `timezone`
    timezone: str  # IANA zone name used for the day boundary and `time` strings
    params: CalculationParameters
    events: tuple[PrayerEvent, ...]

    def __post_init__(self) -> None:
        kinds = tuple(e.kind for e in self.events)
        if kinds != tuple(PrayerKind):
            raise InvalidInputError(
                f"Expected the six events in day order, got {kinds}"
            )

    def __iter__(self) -> Iterator[PrayerEvent]:
        return iter(self.events)

    def __len__(self) -> int:
        return len(self.events)

    def __getitem__(self, index: int) -> PrayerEvent:
        return self.events[index]

    def by_kind(self, kind: PrayerKind) -> PrayerEvent:
        return self.events[list(PrayerKind).index(kind)]
