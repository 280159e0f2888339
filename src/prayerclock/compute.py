"""Prayer-time computation layer. Turns solar geometry into the six daily instants."""

import logging
import math
from datetime import date, datetime, timedelta

from pytz import utc

from prayerclock.astronomy import SolarTime, hours_to_timedelta
from prayerclock.errors import NoSolutionError
from prayerclock.methods import CalculationParameters, PrayerAdjustments, Rounding
from prayerclock.models import GeoCoordinate, PrayerKind

logger = logging.getLogger(__name__)


def _utc_instant(day: date, hours: float) -> datetime | None:
    """Anchor fractional UT hours to ``day``. None when the crossing does not exist."""
    if math.isnan(hours):
        return None
    midnight = datetime(day.year, day.month, day.day, tzinfo=utc)
    return midnight + hours_to_timedelta(hours)


def _require(day: date, hours: float, event: str, coordinate: GeoCoordinate):
    instant = _utc_instant(day, hours)
    if instant is None:
        raise NoSolutionError(event, coordinate.lat, day)
    return instant


def rounded_minute(instant: datetime, rounding: Rounding) -> datetime:
    """Round ``instant`` to a whole minute; sub-second precision is dropped."""
    instant = instant.replace(microsecond=0)
    seconds = instant.second
    if rounding is Rounding.NONE:
        return instant
    if rounding is Rounding.UP:
        offset = 60 - seconds if seconds else 0
    else:
        offset = 60 - seconds if seconds >= 30 else -seconds
    return instant + timedelta(seconds=offset)


def calculate_prayer_times(
    coordinate: GeoCoordinate,
    day: date,
    params: CalculationParameters,
) -> dict[PrayerKind, datetime]:
    """Compute the six prayer instants for a calendar day.

    Args:
        coordinate: Observer location.
        day: Calendar date the events belong to.
        params: Twilight angles, Asr school, high-latitude and rounding rules.

    Returns:
        Mapping of every PrayerKind to a UTC-aware datetime, in day order.

    Raises:
        NoSolutionError: The Sun does not rise, set or transit on ``day``
            (polar day or polar night), or the finished times are out of
            day order.
    """
    solar = SolarTime(day, coordinate)
    tomorrow = day + timedelta(days=1)
    solar_tomorrow = SolarTime(tomorrow, coordinate)

    dhuhr = _require(day, solar.transit, "dhuhr", coordinate)
    sunrise = _require(day, solar.sunrise, "sunrise", coordinate)
    sunset = _require(day, solar.sunset, "sunset", coordinate)
    tomorrow_sunrise = _require(tomorrow, solar_tomorrow.sunrise, "sunrise", coordinate)
    asr = _require(
        day, solar.afternoon(params.madhab.shadow_ratio), "asr", coordinate
    )

    night = tomorrow_sunrise - sunset
    fajr_portion, isha_portion = params.night_portions()

    fajr = _utc_instant(day, solar.hour_angle(-params.fajr_angle, after_transit=False))
    fajr = bounded_fajr(fajr, sunrise - night * fajr_portion, params, coordinate, day)

    if params.isha_interval > 0:
        isha = sunset + timedelta(minutes=params.isha_interval)
    else:
        isha_hours = solar.hour_angle(-params.isha_angle, after_transit=True)
        isha = bounded_isha(
            _utc_instant(day, isha_hours),
            sunset + night * isha_portion,
            params,
            coordinate,
            day,
        )

    maghrib = sunset
    if params.maghrib_angle:
        angle_maghrib = _utc_instant(
            day, solar.hour_angle(-params.maghrib_angle, after_transit=True)
        )
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


def _log_bound(event: str, missing: bool, params, coordinate, day) -> None:
    level = logging.WARNING if missing else logging.DEBUG
    logger.log(
        level,
        "%s at %.4f,%.4f on %s bounded by %s rule%s",
        event,
        coordinate.lat,
        coordinate.lon,
        day,
        params.high_latitude_rule.value,
        " (twilight never ends)" if missing else "",
    )


def bounded_fajr(
    fajr: datetime | None,
    safe_fajr: datetime,
    params: CalculationParameters,
    coordinate: GeoCoordinate,
    day: date,
) -> datetime:
    """Fajr, moved no earlier than ``safe_fajr``."""
    if fajr is None or fajr < safe_fajr:
        _log_bound("Fajr", fajr is None, params, coordinate, day)
        return safe_fajr
    return fajr


def bounded_isha(
    isha: datetime | None,
    safe_isha: datetime,
    params: CalculationParameters,
    coordinate: GeoCoordinate,
    day: date,
) -> datetime:
    """Isha, moved no later than ``safe_isha``."""
    if isha is None or isha > safe_isha:
        _log_bound("Isha", isha is None, params, coordinate, day)
        return safe_isha
    return isha


def apply_adjustments(
    raw: dict[PrayerKind, datetime],
    adjustments: PrayerAdjustments,
    rounding: Rounding,
) -> dict[PrayerKind, datetime]:
    """Shift each instant by its minute offset, then round to the minute."""
    offsets = adjustments.as_dict()
    return {
        kind: rounded_minute(instant + timedelta(minutes=offsets[kind.key]), rounding)
        for kind, instant in raw.items()
    }


def finalize_times(
    raw: dict[PrayerKind, datetime],
    sunset: datetime,
    params: CalculationParameters,
    coordinate: GeoCoordinate,
    day: date,
) -> dict[PrayerKind, datetime]:
    """Apply offsets and rounding, then enforce strict day order.

    An angle-based Maghrib that lands on or after Isha falls back to
    sunset. Any other pair out of order means the day has no usable
    table at this latitude.

    Raises:
        NoSolutionError: Naming the first event not strictly after its
            predecessor.
    """
    adjustments = params.total_adjustments()
    times = apply_adjustments(raw, adjustments, params.rounding)
    if times[PrayerKind.MAGHRIB] >= times[PrayerKind.ISHA] and (
        raw[PrayerKind.MAGHRIB] != sunset
    ):
        times[PrayerKind.MAGHRIB] = apply_adjustments(
            {PrayerKind.MAGHRIB: sunset}, adjustments, params.rounding
        )[PrayerKind.MAGHRIB]

    kinds = list(PrayerKind)
    for previous, current in zip(kinds, kinds[1:]):
        if times[current] <= times[previous]:
            raise NoSolutionError(
                current.key,
                coordinate.lat,
                day,
                reason=(
                    f"{current.display_name} "
                    f"{times[current]:%H:%M} UTC is not after "
                    f"{previous.display_name} {times[previous]:%H:%M} UTC"
                ),
            )
    return times
