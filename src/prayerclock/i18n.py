"""Simple two-language (en/ko) translation helper."""

_STRINGS: dict[str, dict[str, str]] = {
    "fajr": {
        "ko": "파즈르",
        "en": "Fajr",
    },
    "sunrise": {
        "ko": "일출",
        "en": "Sunrise",
    },
    "dhuhr": {
        "ko": "두흐르",
        "en": "Dhuhr",
    },
    "asr": {
        "ko": "아스르",
        "en": "Asr",
    },
    "maghrib": {
        "ko": "마그립",
        "en": "Maghrib",
    },
    "isha": {
        "ko": "이샤",
        "en": "Isha",
    },
    "title": {
        "ko": "기도 시간",
        "en": "Prayer Times",
    },
    "label_location": {
        "ko": "위치",
        "en": "Location",
    },
    "label_date": {
        "ko": "날짜",
        "en": "Date",
    },
    "label_next": {
        "ko": "다음",
        "en": "Next",
    },
    "no_data": {
        "ko": "기도 시간 정보가 없어요",
        "en": "No prayer times available",
    },
    "error_location": {
        "ko": "위치를 가져올 수 없어요. ({error})",
        "en": "Unable to get location. ({error})",
    },
    # Relative time, moment.js style. %s / %d are filled by relative_time.
    "rt_future": {
        "ko": "%s 후",
        "en": "in %s",
    },
    "rt_past": {
        "ko": "%s 전",
        "en": "%s ago",
    },
    "rt_s": {
        "ko": "몇 초",
        "en": "a few seconds",
    },
    "rt_m": {
        "ko": "1분",
        "en": "a minute",
    },
    "rt_mm": {
        "ko": "%d분",
        "en": "%d minutes",
    },
    "rt_h": {
        "ko": "한 시간",
        "en": "an hour",
    },
    "rt_hh": {
        "ko": "%d시간",
        "en": "%d hours",
    },
    "rt_d": {
        "ko": "하루",
        "en": "a day",
    },
    "rt_dd": {
        "ko": "%d일",
        "en": "%d days",
    },
    "rt_M": {
        "ko": "한 달",
        "en": "a month",
    },
    "rt_MM": {
        "ko": "%d달",
        "en": "%d months",
    },
    "rt_y": {
        "ko": "일 년",
        "en": "a year",
    },
    "rt_yy": {
        "ko": "%d년",
        "en": "%d years",
    },
}

LANGUAGES = ("en", "ko")


def t(key: str, lang: str) -> str:
    """Return the translated string for key in lang.

    Falls back to 'en', then to the key itself if not found.
    """
    entry = _STRINGS.get(key)
    if entry is None:
        return key
    return entry.get(lang) or entry.get("en") or key
