from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Final, Iterable, Mapping

from locator.models import OpeningHoursGroup

WEEKDAYS: Final = ("Söndag", "Måndag", "Tisdag", "Onsdag", "Torsdag", "Fredag", "Lördag")
CLOSED: Final = "Stängt"

OPEN: Final = "open-time"
CLOSING_SOON: Final = "closing-soon-time"
CLOSED_STATUS: Final = "closed-time"

STATUS_TEXT: Final = {
    OPEN: "Öppet",
    CLOSING_SOON: "Stänger snart",
    CLOSED_STATUS: "Stängt",
}
CLOSING_SOON_MINUTES = 30


@dataclass(frozen=True, slots=True)
class OpeningStatus:
    kind: str
    label: str

    @property
    def text(self) -> str:
        return STATUS_TEXT[self.kind]


def group_weekly_hours(rows: Iterable[Mapping[str, object]] | None) -> list[OpeningHoursGroup]:
    """Group weekday rows by identical hours, keeping first-seen order."""
    grouped: dict[str, list[str]] = {}
    for row in rows or []:
        day = str(row.get("day") or "")
        if row.get("is_closed"):
            key = CLOSED
        else:
            key = f"{row.get('day_opening_time') or ''}-{row.get('day_closing_time') or ''}"
        grouped.setdefault(key, []).append(day)
    return [OpeningHoursGroup(days=days, hours=hours) for hours, days in grouped.items()]


def format_day_range(days: list[str]) -> str:
    if len(days) == 1:
        return days[0]
    return f"{days[0]} - {days[-1]}"


def format_hours(hours: str | None) -> str:
    if not hours or hours == CLOSED:
        return CLOSED
    opening, _, closing = hours.partition("-")
    return f"{opening.strip()} - {closing.strip()}"


def display_rows(groups: Iterable[OpeningHoursGroup]) -> list[tuple[str, str]]:
    """Merge consecutive groups sharing the same hours into display rows."""
    rows: list[tuple[str, str]] = []
    current_hours: str | None = None
    current_days: list[str] = []
    for group in groups:
        if group.hours == current_hours:
            current_days.extend(group.days)
            continue
        if current_days and current_hours is not None:
            rows.append((format_day_range(current_days), format_hours(current_hours)))
        current_hours = group.hours
        current_days = list(group.days)
    if current_days and current_hours is not None:
        rows.append((format_day_range(current_days), format_hours(current_hours)))
    return rows


def _is_valid(group: OpeningHoursGroup) -> bool:
    hours = group.hours.strip()
    return bool(hours) and hours != "-" and any(day.strip() for day in group.days)


def _at(now: datetime, clock: str) -> datetime:
    hour, _, minute = clock.partition(":")
    return now.replace(hour=int(hour), minute=int(minute or 0), second=0, microsecond=0)


def today_status(groups: Iterable[OpeningHoursGroup] | None, now: datetime | None = None) -> OpeningStatus:
    now = now or datetime.now()
    valid = [group for group in groups or [] if _is_valid(group)]
    today_index = (now.weekday() + 1) % 7
    today_row = next((group for group in valid if WEEKDAYS[today_index] in group.days), None)

    if today_row is None or today_row.hours == CLOSED:
        return _next_opening(valid, today_index)

    opening, _, closing = (part.strip() for part in today_row.hours.partition("-"))
    if not opening or not closing:
        return OpeningStatus(CLOSED_STATUS, CLOSED)
    try:
        open_time = _at(now, opening)
        close_time = _at(now, closing)
    except ValueError:
        return OpeningStatus(CLOSED_STATUS, CLOSED)

    minutes_to_close = round((close_time - now).total_seconds() / 60)
    if now < open_time:
        return OpeningStatus(CLOSED_STATUS, f"Öppnar {opening}")
    if minutes_to_close <= 0:
        return OpeningStatus(CLOSED_STATUS, CLOSED)
    if minutes_to_close <= CLOSING_SOON_MINUTES:
        return OpeningStatus(CLOSING_SOON, closing)
    return OpeningStatus(OPEN, f"Stänger {closing}")


def _next_opening(valid: list[OpeningHoursGroup], today_index: int) -> OpeningStatus:
    for offset in range(1, 8):
        day = WEEKDAYS[(today_index + offset) % 7]
        row = next((group for group in valid if day in group.days and group.hours != CLOSED), None)
        if row is not None:
            return OpeningStatus(CLOSED_STATUS, f"Öppnar {row.hours.split('-')[0].strip()}")
    return OpeningStatus(CLOSED_STATUS, CLOSED)
