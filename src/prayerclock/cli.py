"""CLI entry point for today's prayer times.

    uv run prayerclock --lat 31.5204 --lon 74.3587
    uv run prayerclock --address "Badshahi Mosque, Lahore" --watch
"""

import argparse
import logging
import sys
import time
from dataclasses import replace
from datetime import datetime, timedelta

import pytz
from dotenv import load_dotenv

from prayerclock.config import Settings
from prayerclock.errors import (
    InvalidInputError,
    LocationUnavailableError,
    PrayerTimeError,
)
from prayerclock.i18n import LANGUAGES, t
from prayerclock.location import geocode_address, resolve_timezone
from prayerclock.methods import CalculationMethod, HighLatitudeRule, Madhab
from prayerclock.models import GeoCoordinate, QueryInput
from prayerclock.renderers.text import render_next, render_table

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(pytz.utc)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="prayerclock",
        description="Show the six daily prayer times and the next one for a location.",
    )
    p.add_argument("--lat", type=float, help="Latitude in decimal degrees.")
    p.add_argument("--lon", type=float, help="Longitude in decimal degrees.")
    p.add_argument("--address", help="Geocode this address instead of --lat/--lon.")
    p.add_argument("--date", dest="when", help="Day to show, YYYY-MM-DD.")
    p.add_argument(
        "--method",
        choices=[m.value for m in CalculationMethod],
        help="Calculation convention (default from PRAYERCLOCK_METHOD or MWL).",
    )
    p.add_argument("--madhab", choices=[m.value for m in Madhab])
    p.add_argument(
        "--high-latitude-rule", choices=[r.value for r in HighLatitudeRule]
    )
    p.add_argument("--timezone", help="IANA zone (default: looked up).")
    p.add_argument("--lang", choices=LANGUAGES)
    p.add_argument("--backend", choices=["formula", "skyfield"])
    p.add_argument(
        "--watch",
        action="store_true",
        help="Keep printing the next prayer and countdown.",
    )
    p.add_argument(
        "--interval",
        type=float,
        default=60.0,
        help="Seconds between polls in --watch mode.",
    )
    p.add_argument(
        "--count",
        type=int,
        default=0,
        help="Stop --watch after this many polls (0 = until interrupted).",
    )
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    return p


def _settings(args: argparse.Namespace) -> Settings:
    base = Settings.from_env()
    overrides = {
        "method": CalculationMethod(args.method) if args.method else None,
        "madhab": Madhab(args.madhab) if args.madhab else None,
        "high_latitude_rule": (
            HighLatitudeRule(args.high_latitude_rule)
            if args.high_latitude_rule
            else None
        ),
        "timezone": args.timezone,
        "lang": args.lang,
        "backend": args.backend,
    }
    values = {k: v for k, v in overrides.items() if v is not None}
    return replace(base, **values)


def _locate(query: QueryInput) -> tuple[GeoCoordinate, str | None]:
    if query.lat is not None and query.lon is not None:
        return GeoCoordinate(lat=query.lat, lon=query.lon), None
    if query.address:
        return geocode_address(query.address)
    raise LocationUnavailableError("Give --lat and --lon, or --address")


def _reference_instant(when: str | None, tz_name: str, now: datetime) -> datetime:
    if when is None:
        return now
    try:
        day = datetime.strptime(when, "%Y-%m-%d")
    except ValueError as exc:
        raise InvalidInputError(f"--date must be YYYY-MM-DD, got {when!r}") from exc
    return pytz.timezone(tz_name).localize(day + timedelta(hours=12))


def run(args: argparse.Namespace, settings: Settings | None = None) -> int:
    settings = settings or _settings(args)
    engine = settings.build_engine()
    query = QueryInput(address=args.address, lat=args.lat, lon=args.lon, when=args.when)
    coordinate, place = _locate(query)
    tz_name = settings.timezone or resolve_timezone(coordinate)
    logger.info(
        "Location %.4f,%.4f (%s), method %s, madhab %s",
        coordinate.lat,
        coordinate.lon,
        tz_name,
        settings.method.value,
        settings.madhab.value,
    )

    now = _now()
    reference = _reference_instant(query.when, tz_name, now)
    table = engine.compute_daily_table(coordinate, reference)
    print(render_table(table, now, settings.lang, place))

    polls = 0
    while args.watch and (args.count == 0 or polls < args.count):
        time.sleep(args.interval)
        now = _now()
        if query.when is None:
            # The day table rolls over with the clock; cached until then.
            table = engine.compute_daily_table(coordinate, now)
        print(render_next(table, now, settings.lang))
        polls += 1
    return 0


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    settings = None
    try:
        settings = _settings(args)
        return run(args, settings)
    except LocationUnavailableError as exc:
        lang = settings.lang if settings else "en"
        print(t("error_location", lang).format(error=exc), file=sys.stderr)
        return 1
    except PrayerTimeError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 0


if __name__ == "__main__":
    sys.exit(main())
