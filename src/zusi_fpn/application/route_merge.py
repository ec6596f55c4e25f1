from __future__ import annotations

import logging
from dataclasses import replace

from zusi_fpn.application.ptt_updater import update_ptt_lines
from zusi_fpn.application.resolved_route import ResolvedRoute, ResolvedRoutePart
from zusi_fpn.domain.exceptions import (
    MultipleTimeFixesError,
    NonConsecutiveError,
    NonConsecutivePTTError,
)
from zusi_fpn.infrastructure.zusi_xml import Entry, PTTLine

logger = logging.getLogger(__name__)


def can_merge(a: Entry, b: Entry) -> bool:
    """Whether a (last entry of a route) and b (first entry of the next) describe one stop."""
    return (
        a.station == b.station
        and a.signal_entries == b.signal_entries
        and a.departure is not None
        and b.departure is not None
        and (a.arrival is None) == (b.arrival is None)
    )


def merge_route_parts(current: ResolvedRoute, new: ResolvedRoutePart) -> ResolvedRoute:
    """Append new to current, joining both at their shared entry.

    The side without a time-fix moves so the join entry's times agree. The
    join entry is kept from new. Printed timetable lines are concatenated at
    the join station and re-synchronised with the merged entries when both
    parts have them; otherwise the lines of the part that has them are kept.

    Raises MultipleTimeFixesError, NonConsecutiveError and the errors of
    concat_ptt_lines and update_ptt_lines.
    """
    if current.has_time_fix and new.has_time_fix:
        raise MultipleTimeFixesError("Only one route part of a train may carry a time-fix")

    a = current.entries[-1]
    b = new.entries[0]
    if not can_merge(a, b):
        raise NonConsecutiveError(
            f"Route parts cannot be joined: '{a.station}' ({a.arrival} / {a.departure}) "
            f"is not followed by a matching '{b.station}' ({b.arrival} / {b.departure})"
        )

    if a.arrival is not None and b.arrival is not None:
        delta = a.arrival - b.arrival
    else:
        delta = a.departure - b.departure

    if new.has_time_fix:
        current.shift_entries(-delta)
        current.has_time_fix = True
    else:
        new.shift_entries(delta)
    logger.debug("Joining route parts at '%s', shifted by %s", a.station, delta)

    join_station = a.station
    current.entries = current.entries[:-1] + new.entries

    if current.lines and new.lines:
        current.lines = concat_ptt_lines(current.lines, new.lines, join_station)
        update_ptt_lines(current.entries, current.lines)
    elif new.lines:
        current.lines = new.lines

    if new.start_data.gnt_column:
        current.start_data = replace(current.start_data, gnt_column=True)

    brakings = [m for m in (current.min_braking, new.min_braking) if m is not None]
    current.min_braking = max(brakings) if brakings else None
    return current


def can_concat(a: PTTLine, b: PTTLine, station: str) -> bool:
    return (
        a.name == station
        and b.name == station
        and a.km == b.km
        and (a.departure is not None or b.departure is not None)
    )


def concat_ptt_lines(lines: list[PTTLine], new_lines: list[PTTLine], station: str) -> list[PTTLine]:
    """Join two printed timetable line lists at the line named station.

    lines is cut after its last line named station, new_lines before its
    first. The join line is taken from new_lines, completed with the times of
    the old one, and new_lines' cumulative distances continue from lines.

    Raises NonConsecutivePTTError.
    """
    last = max((i for i, line in enumerate(lines) if line.name == station), default=None)
    first = next((i for i, line in enumerate(new_lines) if line.name == station), None)
    if last is None or first is None:
        raise NonConsecutivePTTError(
            f"Both printed timetables need a line for the join station '{station}'"
        )

    head = lines[: last + 1]
    tail = new_lines[first:]
    a, b = head[-1], tail[0]
    if not can_concat(a, b, station):
        raise NonConsecutivePTTError(
            f"Printed timetables cannot be joined at '{station}': km {a.km} / {b.km}"
        )

    if (a.distance is None) != (b.distance is None):
        raise NonConsecutivePTTError(
            f"Printed timetables cannot be joined at '{station}': "
            f"running distance {a.distance} / {b.distance}"
        )
    distance_delta = (a.distance or 0.0) - (b.distance or 0.0)
    if b.arrival is None and a.arrival is not None:
        b.arrival = a.arrival
    if b.departure is None and a.departure is not None:
        b.departure = a.departure
    for line in tail:
        if line.distance is not None:
            line.distance = line.distance + distance_delta

    return head[:-1] + tail
