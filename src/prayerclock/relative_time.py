"""Humanized signed durations ("in 42 minutes", "3 hours ago") with moment.js thresholds."""

from datetime import datetime

from prayerclock.errors import InvalidInputError
from prayerclock.i18n import t

# Days per month on the 400-year Gregorian cycle.
_DAYS_PER_MONTH = 146097 / 4800


def _round(value: float) -> int:
    # Half away from zero, as JavaScript's Math.round does for positives.
    return int(value + 0.5)


def humanize_duration(seconds_abs: float, lang: str = "en") -> str:
    """Render an unsigned duration with coarse units only."""
    seconds = _round(seconds_abs)
    minutes = _round(seconds_abs / 60)
    hours = _round(seconds_abs / 3600)
    days_exact = seconds_abs / 86400
    days = _round(days_exact)
    months = _round(days_exact / _DAYS_PER_MONTH)
    years = _round(days_exact / _DAYS_PER_MONTH / 12)

    if seconds < 45:
        return t("rt_s", lang)
    if minutes <= 1:
        return t("rt_m", lang)
    if minutes < 45:
        return t("rt_mm", lang) % minutes
    if hours <= 1:
        return t("rt_h", lang)
    if hours < 22:
        return t("rt_hh", lang) % hours
    if days <= 1:
        return t("rt_d", lang)
    if days < 26:
        return t("rt_dd", lang) % days
    if months <= 1:
        return t("rt_M", lang)
    if months < 11:
        return t("rt_MM", lang) % months
    if years <= 1:
        return t("rt_y", lang)
    return t("rt_yy", lang) % years


def relative_time(target: datetime, reference: datetime, lang: str = "en") -> str:
    """Describe ``target`` as seen from ``reference``.

    A target strictly after the reference reads as the future ("in an hour");
    anything else, a zero offset included, reads as the past ("a minute ago").

    Raises:
        InvalidInputError: Either datetime is timezone-naive.
    """
    for value in (target, reference):
        if value.tzinfo is None or value.utcoffset() is None:
            raise InvalidInputError(f"Timezone-naive datetime: {value.isoformat()}")
    delta = (target - reference).total_seconds()
    phrase = humanize_duration(abs(delta), lang)
    return t("rt_future" if delta > 0 else "rt_past", lang) % phrase
