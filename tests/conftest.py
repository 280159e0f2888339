from datetime import date, datetime

import pytest
from pytz import utc

from prayerclock.engine import PrayerTimeEngine
from prayerclock.methods import default_parameters
from prayerclock.models import DailyPrayerTable, GeoCoordinate, PrayerEvent, PrayerKind

# ---------- Shared fixtures ----------


@pytest.fixture
def lahore() -> GeoCoordinate:
    """Badshahi Mosque, Lahore (UTC+5, no DST)."""
    return GeoCoordinate(lat=31.5204, lon=74.3587)


@pytest.fixture
def engine() -> PrayerTimeEngine:
    """Engine pinned to Pakistan time with a private, empty cache."""
    return PrayerTimeEngine(timezone="Asia/Karachi")


@pytest.fixture
def fixed_table() -> DailyPrayerTable:
    """Hand-written table: 05:00 06:15 12:30 15:45 18:20 19:45 UTC on 2024-03-10."""
    clock = ["05:00", "06:15", "12:30", "15:45", "18:20", "19:45"]
    events = []
    for kind, hhmm in zip(PrayerKind, clock):
        hour, minute = map(int, hhmm.split(":"))
        events.append(
            PrayerEvent(
                kind=kind,
                instant=datetime(2024, 3, 10, hour, minute, tzinfo=utc),
                time=hhmm,
            )
        )
    return DailyPrayerTable(
        coordinate=GeoCoordinate(lat=0.0, lon=0.0),
        day=date(2024, 3, 10),
        timezone="UTC",
        params=default_parameters(),
        events=tuple(events),
    )


def at_utc(hhmm: str, day: date = date(2024, 3, 10)) -> datetime:
    hour, minute = map(int, hhmm.split(":"))
    return datetime(day.year, day.month, day.day, hour, minute, tzinfo=utc)
