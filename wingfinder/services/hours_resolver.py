"""
HoursResolver — decides whether a location is open from its per-date hour strings.
No DB calls. Never raises: anything it cannot read counts as closed.

Accepted hour strings (case-insensitive, en-dash or hyphen):
  "11 am–10 pm"      full form, each side has its own meridiem
  "11:30 am - 9 pm"
  "4–10 pm"          elided form, start takes the end's meridiem
  "11–2 pm"          elided form crossing noon, read as 11 am–2 pm
  "Closed"           substring match, anywhere in the text
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Optional, Union

from wingfinder.config import settings

logger = logging.getLogger(__name__)

_TIME = r"(\d{1,2})(?::(\d{2}))?"
_DASH = r"\s*[–-]\s*"

_FULL_RANGE = re.compile(rf"{_TIME}\s*(am|pm){_DASH}{_TIME}\s*(am|pm)", re.IGNORECASE)
_ELIDED_RANGE = re.compile(rf"{_TIME}{_DASH}{_TIME}\s*(am|pm)", re.IGNORECASE)

_MINUTES_PER_DAY = 24 * 60


def _to_minutes(hour: str, minute: Optional[str], meridiem: str) -> int:
    """Convert 12-hour clock parts to minutes since midnight (12 am → 0)."""
    h = int(hour)
    m = int(minute or 0)
    if not 1 <= h <= 12 or m > 59:
        raise ValueError(f"Invalid clock time {hour}:{minute} {meridiem}")

    period = meridiem.lower()
    if period == "pm" and h != 12:
        h += 12
    elif period == "am" and h == 12:
        h = 0
    return h * 60 + m


def parse_hours_range(text: str) -> Optional[tuple[int, int]]:
    """
    Parse an hours string into (start, end) minutes since midnight.
    Returns None when neither the full nor the elided form matches.
    Raises ValueError for out-of-range clock values.
    """
    match = _FULL_RANGE.search(text)
    if match:
        sh, sm, sp, eh, em, ep = match.groups()
        return _to_minutes(sh, sm, sp), _to_minutes(eh, em, ep)

    match = _ELIDED_RANGE.search(text)
    if match:
        sh, sm, eh, em, ep = match.groups()
        start = _to_minutes(sh, sm, ep)
        end = _to_minutes(eh, em, ep)
        # Start takes the end's meridiem, except a pm range whose start would
        # land after its end crosses noon: "11–2 pm" is 11 am–2 pm.
        if start > end and ep.lower() == "pm":
            start = _to_minutes(sh, sm, "am")
        return start, end

    return None


def _entry_value(entry: Any, field: str) -> Any:
    if isinstance(entry, Mapping):
        return entry.get(field)
    return getattr(entry, field, None)


def _find_entry(hour_entries: Iterable[Any], iso_date: str) -> Optional[Any]:
    """Return the hour entry whose full_date equals iso_date, if any."""
    for entry in hour_entries:
        if _entry_value(entry, "full_date") == iso_date:
            return entry
    return None


class HoursResolver:
    """
    Pure open/closed evaluator over a location's hour entries.

    The civil clock is a fixed UTC offset (default UTC-7). It is not
    DST-aware, so it runs an hour ahead of Pacific time during standard time.
    """

    def __init__(
        self,
        utc_offset_hours: Optional[int] = None,
        overnight_cutoff_hour: Optional[int] = None,
    ) -> None:
        if utc_offset_hours is None:
            utc_offset_hours = settings.civil_utc_offset_hours
        if overnight_cutoff_hour is None:
            overnight_cutoff_hour = settings.overnight_cutoff_hour
        self.civil_tz = timezone(timedelta(hours=utc_offset_hours))
        self.overnight_cutoff_minutes = overnight_cutoff_hour * 60

    def to_civil_time(self, instant: Optional[datetime] = None) -> datetime:
        """Convert an instant (naive values are read as UTC) to civil time."""
        if instant is None:
            instant = datetime.now(timezone.utc)
        elif instant.tzinfo is None:
            instant = instant.replace(tzinfo=timezone.utc)
        return instant.astimezone(self.civil_tz)

    def is_open_at(
        self,
        hour_entries: Iterable[Any],
        target_date: Union[str, date],
        target_time: Union[int, time],
    ) -> bool:
        """
        Return True if the location is open on target_date at target_time.

        target_time is minutes since midnight (0–1439) or a datetime.time.
        Both range boundaries are inclusive. When target_date has no entry
        and the time is before the overnight cutoff, the previous date's
        entry is checked for the tail of an overnight range.
        """
        try:
            entries = list(hour_entries or [])
            iso_date = (
                target_date.isoformat() if isinstance(target_date, date) else str(target_date)
            )
            minutes = (
                target_time.hour * 60 + target_time.minute
                if isinstance(target_time, time)
                else int(target_time)
            )
            if not 0 <= minutes < _MINUTES_PER_DAY:
                return False

            entry = _find_entry(entries, iso_date)
            if entry is not None:
                return self._within(_entry_value(entry, "hours") or "", minutes)

            if minutes < self.overnight_cutoff_minutes:
                previous_day = (date.fromisoformat(iso_date) - timedelta(days=1)).isoformat()
                previous = _find_entry(entries, previous_day)
                if previous is not None:
                    return self._within_overnight_tail(
                        _entry_value(previous, "hours") or "", minutes
                    )

            return False
        except (ValueError, TypeError, AttributeError) as exc:
            logger.debug("Unreadable hours for %s: %s", target_date, exc)
            return False

    def is_open_now(
        self,
        hour_entries: Iterable[Any],
        now: Optional[datetime] = None,
    ) -> bool:
        """is_open_at() for `now` (default: current instant) in civil time."""
        civil = self.to_civil_time(now)
        return self.is_open_at(hour_entries, civil.date(), civil.hour * 60 + civil.minute)

    # ── Range checks ───────────────────────────────────────────────────────────

    @staticmethod
    def _within(hours_text: str, minutes: int) -> bool:
        if "closed" in hours_text.lower():
            return False
        parsed = parse_hours_range(hours_text)
        if parsed is None:
            logger.debug("Unrecognised hours string: %r", hours_text)
            return False

        start, end = parsed
        if end < start:
            return minutes >= start or minutes <= end
        return start <= minutes <= end

    @staticmethod
    def _within_overnight_tail(hours_text: str, minutes: int) -> bool:
        """Only the after-midnight part of yesterday's range counts today."""
        if "closed" in hours_text.lower():
            return False
        parsed = parse_hours_range(hours_text)
        if parsed is None:
            return False

        start, end = parsed
        return end < start and minutes <= end


# ── Module-level helpers ───────────────────────────────────────────────────────

_default_resolver: Optional[HoursResolver] = None


def get_resolver() -> HoursResolver:
    """Return the shared resolver configured from settings."""
    global _default_resolver
    if _default_resolver is None:
        _default_resolver = HoursResolver()
    return _default_resolver


def is_open_at(
    hour_entries: Iterable[Any],
    target_date: Union[str, date],
    target_time: Union[int, time],
) -> bool:
    """Shortcut for get_resolver().is_open_at()."""
    return get_resolver().is_open_at(hour_entries, target_date, target_time)


def is_open_now(hour_entries: Iterable[Any], now: Optional[datetime] = None) -> bool:
    """Shortcut for get_resolver().is_open_now()."""
    return get_resolver().is_open_now(hour_entries, now)
