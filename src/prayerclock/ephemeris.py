"""High-precision backend: the six instants searched from the JPL DE421 ephemeris."""

import math
from datetime import date, datetime, timedelta
from functools import lru_cache
from pathlib import Path

from pytz import utc
from skyfield import almanac
from skyfield.api import Loader, wgs84

from prayerclock.astronomy import SUNRISE_ALTITUDE
from prayerclock.compute import bounded_fajr, bounded_isha, finalize_times
from prayerclock.errors import NoSolutionError
from prayerclock.methods import CalculationParameters
from prayerclock.models import GeoCoordinate, PrayerKind

_ROOT = Path(__file__).parent.parent.parent
DEFAULT_DIRECTORY = _ROOT / "resources"
EPHEMERIS_FILE = "de421.bsp"


def ephemeris_available(directory: str | Path | None = None) -> bool:
    """True when the ephemeris file is already on disk (no download needed)."""
    return (Path(directory or DEFAULT_DIRECTORY) / EPHEMERIS_FILE).exists()


@lru_cache(maxsize=4)
def _load(directory: str):
    loader = Loader(directory)
    eph = loader(EPHEMERIS_FILE)
    return loader.timescale(), eph


def _first(times, flags=None) -> datetime | None:
    if len(times) == 0:
        return None
    if flags is not None and not bool(flags[0]):
        return None
    return times[0].utc_datetime().astimezone(utc)


def calculate_prayer_times(
    coordinate: GeoCoordinate,
    day: date,
    params: CalculationParameters,
    directory: str | Path | None = None,
) -> dict[PrayerKind, datetime]:
    """Compute the six prayer instants by root-finding on the DE421 Sun.

    Args:
        coordinate: Observer location.
        day: Calendar date the events belong to.
        params: Twilight angles, Asr school, high-latitude and rounding rules.
        directory: Where de421.bsp lives (downloaded there on first use).

    Returns:
        Mapping of every PrayerKind to a UTC-aware datetime, in day order.

    Raises:
        NoSolutionError: The Sun does not rise, set or transit on ``day``,
            or the finished times are out of day order.
    """
    ts, eph = _load(str(directory or DEFAULT_DIRECTORY))
    sun = eph["sun"]
    topos = wgs84.latlon(
        latitude_degrees=coordinate.lat, longitude_degrees=coordinate.lon
    )
    observer = eph["earth"] + topos

    # Search windows centred on the mean solar noon of the UT day.
    noon = datetime(day.year, day.month, day.day, tzinfo=utc) + timedelta(
        hours=12 - coordinate.lon / 15
    )
    morning = (ts.from_datetime(noon - timedelta(hours=12)), ts.from_datetime(noon))
    evening = (ts.from_datetime(noon), ts.from_datetime(noon + timedelta(hours=12)))
    next_morning = (
        ts.from_datetime(noon + timedelta(hours=12)),
        ts.from_datetime(noon + timedelta(hours=24)),
    )

    def rising(window, horizon: float) -> datetime | None:
        t, y = almanac.find_risings(observer, sun, *window, horizon_degrees=horizon)
        return _first(t, y)

    def setting(window, horizon: float) -> datetime | None:
        t, y = almanac.find_settings(observer, sun, *window, horizon_degrees=horizon)
        return _first(t, y)

    def required(instant: datetime | None, event: str) -> datetime:
        if instant is None:
            raise NoSolutionError(event, coordinate.lat, day)
        return instant

    transits = almanac.find_transits(observer, sun, morning[0], evening[1])
    dhuhr = required(_first(transits), "dhuhr")
    sunrise = required(rising(morning, SUNRISE_ALTITUDE), "sunrise")
    sunset = required(setting(evening, SUNRISE_ALTITUDE), "sunset")
    tomorrow_sunrise = required(rising(next_morning, SUNRISE_ALTITUDE), "sunrise")

    _, dec, _ = observer.at(ts.from_datetime(dhuhr)).observe(sun).apparent().radec()
    tangent = abs(coordinate.lat - dec.degrees)
    asr_altitude = math.degrees(
        math.atan(1 / (params.madhab.shadow_ratio + math.tan(math.radians(tangent))))
    )
    asr = required(setting(evening, asr_altitude), "asr")

    night = tomorrow_sunrise - sunset
    fajr_portion, isha_portion = params.night_portions()

    fajr = bounded_fajr(
        rising(morning, -params.fajr_angle),
        sunrise - night * fajr_portion,
        params,
        coordinate,
        day,
    )

    if params.isha_interval > 0:
        isha = sunset + timedelta(minutes=params.isha_interval)
    else:
        isha = bounded_isha(
            setting(evening, -params.isha_angle),
            sunset + night * isha_portion,
            params,
            coordinate,
            day,
        )

    maghrib = sunset
    if params.maghrib_angle:
        angle_maghrib = setting(evening, -params.maghrib_angle)
        if angle_maghrib is not None and sunset < angle_maghrib < isha:
            maghrib = angle_maghrib

    raw = {
        PrayerKind.FAJR: fajr,
        PrayerKind.SUNRISE: sunrise,
        PrayerKind.DHUHR: dhuhr,
        PrayerKind.ASR: asr,
        PrayerKind.MAGHRIB: maghrib,
        PrayerKind.ISHA: isha,
    }
    return finalize_times(raw, sunset, params, coordinate, day)
