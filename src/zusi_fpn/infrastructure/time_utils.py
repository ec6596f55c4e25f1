from __future__ import annotations

from datetime import datetime, timedelta

DATE_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def parse_zusi_datetime(s: str) -> datetime:
    """Parse a Zusi date-time string such as "2024-06-20 08:39:00".

    Zusi times are naive local times. Raises ValueError on unparseable input.
    """
    try:
        return datetime.strptime(s.strip(), DATE_TIME_FORMAT)
    except ValueError:
        raise ValueError(f"Cannot parse date-time string: {s!r}, expected YYYY-MM-DD HH:MM:SS")


def format_zusi_datetime(dt: datetime) -> str:
    """Return date-time string in YYYY-MM-DD HH:MM:SS format."""
    return dt.strftime(DATE_TIME_FORMAT)


def parse_duration(s: str) -> timedelta:
    """Parse a signed duration in HH:MM:SS format, e.g. "00:03:20" or "-01:00:00".

    Components are not range checked: "33:92:76" is 33h + 92min + 76s.
    Raises ValueError when the string does not have exactly three numeric parts.
    """
    text = s.strip()
    negative = text.startswith("-")
    parts = text.lstrip("-").split(":")
    if len(parts) != 3 or not all(p.isdigit() for p in parts):
        raise ValueError(f"Cannot parse duration string: {s!r}, expected HH:MM:SS")
    hours, minutes, seconds = (int(p) for p in parts)
    duration = timedelta(hours=hours, minutes=minutes, seconds=seconds)
    return -duration if negative else duration


def format_duration(duration: timedelta) -> str:
    """Return duration as HH:MM:SS, prefixed with "-" when negative."""
    total_seconds = int(duration.total_seconds())
    sign = "-" if total_seconds < 0 else ""
    total_seconds = abs(total_seconds)
    hours, rest = divmod(total_seconds, 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{sign}{hours:02d}:{minutes:02d}:{seconds:02d}"
