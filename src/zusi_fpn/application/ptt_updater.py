from __future__ import annotations

import logging

from zusi_fpn.domain.exceptions import LengthMismatchError, RelatedEntriesInconsistentError
from zusi_fpn.infrastructure.zusi_xml import Entry, PTTLine

logger = logging.getLogger(__name__)


def _group_track_side_duplicates(lines: list[PTTLine]) -> list[list[PTTLine]]:
    """Group consecutive timed lines that repeat one stop on another track side.

    Some printed timetables list a station once per FplRglGgl value with
    identical times; each such run relates to a single timetable entry.
    """
    groups: list[list[PTTLine]] = []
    for line in lines:
        if groups:
            head = groups[-1][0]
            if (
                line.name is not None
                and line.name == head.name
                and line.arrival == head.arrival
                and line.departure == head.departure
                and line.track_side not in {g.track_side for g in groups[-1]}
            ):
                groups[-1].append(line)
                continue
        groups.append([line])
    return groups


def update_ptt_lines(entries: list[Entry], lines: list[PTTLine]) -> None:
    """Copy arrival and departure times from timetable entries into PTT lines.

    Entries with a departure (auxiliary ones excluded) relate one-to-one, in
    order, to the lines carrying an arrival or departure.

    Raises LengthMismatchError, RelatedEntriesInconsistentError.
    """
    timed_entries = [e for e in entries if e.departure is not None and not e.is_auxiliary]
    groups = _group_track_side_duplicates([line for line in lines if line.is_timed])
    if len(timed_entries) != len(groups):
        raise LengthMismatchError(len(timed_entries), len(groups))

    for entry, group in zip(timed_entries, groups):
        for line in group:
            _update_line(entry, line)
    logger.debug("Updated %d printed timetable stops", len(groups))


def _update_line(entry: Entry, line: PTTLine) -> None:
    if line.name != entry.station:
        raise RelatedEntriesInconsistentError(
            f"Printed timetable line '{line.name}' does not match timetable entry '{entry.station}'"
        )
    if line.arrival is not None:
        if entry.arrival is None:
            raise RelatedEntriesInconsistentError(
                f"Printed timetable line '{line.name}' has an arrival, its timetable entry has none"
            )
        line.arrival = entry.arrival
    if line.departure is not None:
        if entry.departure is None:
            raise RelatedEntriesInconsistentError(
                f"Printed timetable line '{line.name}' has a departure, its timetable entry has none"
            )
        line.departure = entry.departure
