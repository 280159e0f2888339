"""Plain-text renderer for terminals."""

from datetime import datetime

from prayerclock.engine import format_countdown, get_next_event, relative_times
from prayerclock.i18n import t
from prayerclock.models import DailyPrayerTable


def render_table(
    table: DailyPrayerTable,
    current_instant: datetime,
    lang: str = "en",
    place: str | None = None,
) -> str:
    """Render a DailyPrayerTable with per-event offsets and the next event.

    Args:
        table: Fully computed day table.
        current_instant: Instant the offsets are measured from.
        lang: Language code ('en' or 'ko').
        place: Display name for the location; coordinates when None.

    Returns:
        Multi-line string, no trailing newline.
    """
    coord = table.coordinate
    place = place or f"{coord.lat:.4f}, {coord.lon:.4f}"
    upcoming = get_next_event(table, current_instant)
    width = max(len(t(e.kind.key, lang)) for e in table)

    lines = [
        t("title", lang),
        f"{t('label_location', lang)}: {place} ({table.timezone})",
        f"{t('label_date', lang)}: {table.day.isoformat()}",
        "",
    ]
    for event, offset in relative_times(table, current_instant, lang):
        marker = ">" if event is upcoming else " "
        name = t(event.kind.key, lang).ljust(width)
        lines.append(f"{marker} {name}  {event.time}  {offset}")
    lines.append("")
    lines.append(render_next(table, current_instant, lang))
    return "\n".join(lines)


def render_next(
    table: DailyPrayerTable, current_instant: datetime, lang: str = "en"
) -> str:
    """One line: next event name, its time, and the countdown."""
    upcoming = get_next_event(table, current_instant)
    if upcoming is None:
        return t("no_data", lang)
    countdown = format_countdown(table, current_instant, lang)
    name = t(upcoming.kind.key, lang)
    return f"{t('label_next', lang)}: {name} {upcoming.time} ({countdown})"
