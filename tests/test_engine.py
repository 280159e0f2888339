from datetime import date, datetime, timedelta

import pytest
import pytz
from conftest import at_utc
from hypothesis import given, settings
from hypothesis import strategies as st
from pytz import utc

from prayerclock import engine as engine_module
from prayerclock.cache import PrayerTimeCache
from prayerclock.engine import (
    PrayerTimeEngine,
    format_countdown,
    get_next_event,
    relative_times,
)
from prayerclock.errors import InvalidInputError, NoSolutionError
from prayerclock.methods import CalculationMethod, HighLatitudeRule, Madhab
from prayerclock.models import GeoCoordinate, PrayerKind

KARACHI = pytz.timezone("Asia/Karachi")


def local_hhmm(instant: datetime) -> str:
    return instant.astimezone(KARACHI).strftime("%H:%M")


def _between(instant: datetime, lo: str, hi: str) -> bool:
    return lo <= local_hhmm(instant) <= hi


def test_lahore_midsummer_table_is_plausible(engine, lahore):
    table = engine.compute_daily_table(lahore, KARACHI.localize(datetime(2024, 6, 15, 9)))

    assert table.day == date(2024, 6, 15)
    assert table.timezone == "Asia/Karachi"
    assert [e.name for e in table] == ["Fajr", "Sunrise", "Dhuhr", "Asr", "Maghrib", "Isha"]
    fajr, sunrise, dhuhr, asr, maghrib, isha = (e.instant for e in table)
    assert _between(fajr, "03:05", "03:30")
    assert _between(sunrise, "04:45", "05:10")
    assert _between(dhuhr, "11:55", "12:15")
    assert _between(asr, "15:30", "15:55")
    assert _between(maghrib, "18:55", "19:20")
    assert _between(isha, "20:30", "20:55")


def test_events_are_utc_and_display_time_is_local(engine, lahore):
    table = engine.compute_daily_table(lahore, KARACHI.localize(datetime(2024, 6, 15, 9)))

    for event in table:
        assert event.instant.utcoffset() == timedelta(0)
        assert event.instant.second == 0
        assert event.time == local_hhmm(event.instant)
    assert table.by_kind(PrayerKind.ISHA).icon == "moon.fill"


def test_ordering_invariant(engine, lahore):
    table = engine.compute_daily_table(lahore, KARACHI.localize(datetime(2024, 1, 5, 9)))
    instants = [e.instant for e in table]
    assert instants == sorted(instants)
    assert len(set(instants)) == 6


@settings(max_examples=60, deadline=None)
@given(
    lat=st.floats(min_value=-55, max_value=55),
    lon=st.floats(min_value=-180, max_value=180),
    day=st.dates(min_value=date(1950, 1, 1), max_value=date(2100, 12, 31)),
)
def test_ordering_invariant_holds_outside_polar_regions(lat, lon, day):
    eng = PrayerTimeEngine(timezone="UTC")
    reference = datetime(day.year, day.month, day.day, 12, tzinfo=utc)
    table = eng.compute_daily_table(GeoCoordinate(lat=lat, lon=lon), reference)
    instants = [e.instant for e in table]
    assert all(a < b for a, b in zip(instants, instants[1:]))


@settings(max_examples=200, deadline=None)
@given(
    method=st.sampled_from(CalculationMethod),
    rule=st.sampled_from(HighLatitudeRule),
    madhab=st.sampled_from(Madhab),
    lat=st.floats(min_value=-65, max_value=65),
    lon=st.floats(min_value=-180, max_value=180),
    day=st.dates(min_value=date(2024, 1, 1), max_value=date(2024, 12, 31)),
)
def test_every_convention_is_strictly_ordered_or_refused(
    method, rule, madhab, lat, lon, day
):
    params = method.parameters(madhab=madhab, high_latitude_rule=rule)
    eng = PrayerTimeEngine(timezone="UTC", params=params)
    reference = datetime(day.year, day.month, day.day, 12, tzinfo=utc)
    try:
        table = eng.compute_daily_table(GeoCoordinate(lat=lat, lon=lon), reference)
    except NoSolutionError:
        assert len(eng.cache) == 0
        return
    instants = [e.instant for e in table]
    assert all(a < b for a, b in zip(instants, instants[1:]))


def test_reference_instant_selects_local_calendar_day(engine, lahore):
    # 20:00 UTC on the 14th is already 01:00 on the 15th in Lahore.
    late = datetime(2024, 6, 14, 20, tzinfo=utc)
    table = engine.compute_daily_table(lahore, late)
    assert table.day == date(2024, 6, 15)


def test_naive_reference_instant_is_rejected(engine, lahore):
    with pytest.raises(InvalidInputError):
        engine.compute_daily_table(lahore, datetime(2024, 6, 15, 9))


def test_deterministic_without_cache(lahore):
    reference = KARACHI.localize(datetime(2024, 6, 15, 9))
    first = PrayerTimeEngine(timezone="Asia/Karachi").compute_daily_table(lahore, reference)
    second = PrayerTimeEngine(timezone="Asia/Karachi").compute_daily_table(lahore, reference)
    assert first is not second
    assert first == second


def test_second_call_is_served_from_cache(engine, lahore, monkeypatch):
    calls = []
    real = engine_module.calculate_prayer_times

    def counting(*args, **kwargs):
        calls.append(args)
        return real(*args, **kwargs)

    monkeypatch.setattr(engine_module, "calculate_prayer_times", counting)
    morning = KARACHI.localize(datetime(2024, 6, 15, 6))
    evening = KARACHI.localize(datetime(2024, 6, 15, 22))

    first = engine.compute_daily_table(lahore, morning)
    second = engine.compute_daily_table(lahore, evening)

    assert len(calls) == 1
    assert second is first
    assert engine.cache.hits == 1


def test_coordinates_equal_to_four_decimals_share_an_entry(engine, monkeypatch):
    calls = []
    real = engine_module.calculate_prayer_times
    monkeypatch.setattr(
        engine_module,
        "calculate_prayer_times",
        lambda *a, **kw: calls.append(a) or real(*a, **kw),
    )
    reference = KARACHI.localize(datetime(2024, 6, 15, 9))

    a = engine.compute_daily_table(GeoCoordinate(lat=31.5000, lon=74.3000), reference)
    b = engine.compute_daily_table(GeoCoordinate(lat=31.50004, lon=74.30004), reference)
    c = engine.compute_daily_table(GeoCoordinate(lat=31.5001, lon=74.3000), reference)

    assert a is b
    assert c is not a
    assert len(calls) == 2
    assert len(engine.cache) == 2


def test_next_day_is_a_new_entry(engine, lahore):
    today = engine.compute_daily_table(lahore, KARACHI.localize(datetime(2024, 6, 15, 9)))
    tomorrow = engine.compute_daily_table(lahore, KARACHI.localize(datetime(2024, 6, 16, 9)))
    assert tomorrow.day == today.day + timedelta(days=1)
    assert tomorrow.events[0].instant > today.events[-1].instant


def test_madhab_changes_only_asr(engine, lahore):
    reference = KARACHI.localize(datetime(2024, 6, 15, 9))
    shafi = engine.compute_daily_table(lahore, reference)
    hanafi = engine.compute_daily_table(
        lahore, reference, params=engine.params.with_madhab(Madhab.HANAFI)
    )

    for a, b in zip(shafi, hanafi):
        if a.kind is PrayerKind.ASR:
            assert b.instant > a.instant
        else:
            assert a.instant == b.instant
    assert _between(hanafi.by_kind(PrayerKind.ASR).instant, "16:45", "17:10")


def test_method_adjustment_moves_dhuhr(lahore):
    reference = KARACHI.localize(datetime(2024, 6, 15, 9))
    mwl = PrayerTimeEngine(timezone="Asia/Karachi").compute_daily_table(lahore, reference)
    kuwait = PrayerTimeEngine(
        timezone="Asia/Karachi", params=CalculationMethod.KUWAIT.parameters()
    ).compute_daily_table(lahore, reference)

    # MWL adds one minute to the meridian transit, Kuwait does not.
    delta = mwl.by_kind(PrayerKind.DHUHR).instant - kuwait.by_kind(PrayerKind.DHUHR).instant
    assert delta == timedelta(minutes=1)
    assert mwl.by_kind(PrayerKind.FAJR).instant == kuwait.by_kind(PrayerKind.FAJR).instant


def test_isha_interval_method(engine, lahore):
    reference = KARACHI.localize(datetime(2024, 6, 15, 9))
    table = engine.compute_daily_table(
        lahore, reference, params=CalculationMethod.UMM_AL_QURA.parameters()
    )
    gap = table.by_kind(PrayerKind.ISHA).instant - table.by_kind(PrayerKind.MAGHRIB).instant
    assert timedelta(minutes=89) <= gap <= timedelta(minutes=91)


@pytest.mark.parametrize("month", [6, 12])
def test_polar_day_and_night_raise_no_solution(month):
    tromso = GeoCoordinate(lat=69.6496, lon=18.9560)
    eng = PrayerTimeEngine(timezone="Europe/Oslo")
    reference = datetime(2024, month, 21, 12, tzinfo=utc)
    with pytest.raises(NoSolutionError) as excinfo:
        eng.compute_daily_table(tromso, reference)
    assert excinfo.value.event in ("sunrise", "sunset")
    assert len(eng.cache) == 0


def test_high_latitude_rule_bounds_fajr_and_isha(caplog):
    london = GeoCoordinate(lat=51.5074, lon=-0.1278)
    reference = datetime(2024, 6, 21, 12, tzinfo=utc)
    eng = PrayerTimeEngine(timezone="Europe/London")

    with caplog.at_level("WARNING", logger="prayerclock.compute"):
        middle = eng.compute_daily_table(london, reference)
    seventh = eng.compute_daily_table(
        london,
        reference,
        params=eng.params.with_rule(HighLatitudeRule.SEVENTH_OF_THE_NIGHT),
    )

    assert "bounded" in caplog.text
    gap = seventh.by_kind(PrayerKind.SUNRISE).instant - seventh.by_kind(PrayerKind.FAJR).instant
    assert timedelta(minutes=55) <= gap <= timedelta(minutes=75)
    assert middle.by_kind(PrayerKind.FAJR).instant < seventh.by_kind(PrayerKind.FAJR).instant
    assert middle.by_kind(PrayerKind.ISHA).instant > seventh.by_kind(PrayerKind.ISHA).instant
    for table in (middle, seventh):
        instants = [e.instant for e in table]
        assert instants == sorted(instants)


def test_timezone_is_resolved_from_coordinates(lahore):
    eng = PrayerTimeEngine()
    table = eng.compute_daily_table(lahore, datetime(2024, 6, 15, 4, tzinfo=utc))
    assert table.timezone == "Asia/Karachi"


def test_unknown_timezone_and_backend_are_rejected():
    with pytest.raises(InvalidInputError):
        PrayerTimeEngine(timezone="Mars/Olympus_Mons")
    with pytest.raises(InvalidInputError):
        PrayerTimeEngine(backend="abacus")


def test_engine_uses_bounded_cache(lahore):
    eng = PrayerTimeEngine(timezone="Asia/Karachi", cache=PrayerTimeCache(max_entries=2))
    for day in (14, 15, 16):
        eng.compute_daily_table(lahore, KARACHI.localize(datetime(2024, 6, day, 9)))
    assert len(eng.cache) == 2


# ---------- Next event and countdown ----------


def test_next_event_after_dhuhr_is_asr(fixed_table):
    upcoming = get_next_event(fixed_table, at_utc("12:31"))
    assert upcoming.kind is PrayerKind.ASR
    assert upcoming.time == "15:45"


def test_next_event_after_isha_wraps_to_same_day_fajr(fixed_table):
    upcoming = get_next_event(fixed_table, at_utc("19:46"))
    assert upcoming is fixed_table.events[0]
    assert upcoming.instant == at_utc("05:00")


def test_next_event_is_strictly_after(fixed_table):
    assert get_next_event(fixed_table, at_utc("12:30")).kind is PrayerKind.ASR
    assert get_next_event(fixed_table, at_utc("12:29")).kind is PrayerKind.DHUHR


def test_next_event_compares_absolute_instants(fixed_table):
    # 17:31 in Karachi is 12:31 UTC.
    karachi_clock = KARACHI.localize(datetime(2024, 3, 10, 17, 31))
    assert get_next_event(fixed_table, karachi_clock).kind is PrayerKind.ASR


def test_next_event_of_empty_sequence_is_none():
    assert get_next_event([], at_utc("12:00")) is None


def test_next_event_rejects_naive_instant(fixed_table):
    with pytest.raises(InvalidInputError):
        get_next_event(fixed_table, datetime(2024, 3, 10, 12, 31))


def test_countdown_to_future_event(fixed_table):
    assert format_countdown(fixed_table, at_utc("12:31")) == "in 3 hours"
    assert format_countdown(fixed_table, at_utc("15:03")) == "in 42 minutes"


def test_countdown_after_isha_reads_as_past(fixed_table):
    assert format_countdown(fixed_table, at_utc("19:46")) == "15 hours ago"


def test_countdown_without_events_is_sentinel():
    assert format_countdown([], at_utc("12:00")) == "No prayer times available"
    assert format_countdown([], at_utc("12:00"), lang="ko") == "기도 시간 정보가 없어요"


def test_countdown_in_korean(fixed_table):
    assert format_countdown(fixed_table, at_utc("15:03"), lang="ko") == "42분 후"


def test_engine_countdown_uses_engine_language(fixed_table):
    eng = PrayerTimeEngine(timezone="UTC", lang="ko")
    assert eng.format_countdown(fixed_table, at_utc("12:31")) == "3시간 후"
    assert eng.format_countdown(fixed_table, at_utc("12:31"), lang="en") == "in 3 hours"
    assert eng.get_next_event(fixed_table, at_utc("12:31")).kind is PrayerKind.ASR


def test_relative_times_for_every_event(fixed_table):
    phrases = [p for _, p in relative_times(fixed_table, at_utc("12:31"))]
    assert phrases == [
        "8 hours ago",
        "6 hours ago",
        "a minute ago",
        "in 3 hours",
        "in 6 hours",
        "in 7 hours",
    ]
