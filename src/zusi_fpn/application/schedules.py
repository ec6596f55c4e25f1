from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timedelta

from zusi_fpn.domain.entities import Schedule, ScheduleEntry
from zusi_fpn.domain.exceptions import MultipleTimeFixesError, StopTimeNotApplicableError
from zusi_fpn.domain.services import longest_common_contiguous_subsequence
from zusi_fpn.domain.value_objects import ScheduleTimeFix
from zusi_fpn.infrastructure.zusi_xml import Entry

logger = logging.getLogger(__name__)


def apply_schedule(entries: list[Entry], schedule: Schedule) -> None:
    """Re-time entries in place so the matching window follows the schedule.

    Steps:
    1. Keep the entries with a departure (the driving entries).
    2. Align their stations with the schedule's stations via LCCS.
    3. Walk the driving entries: matched ones are re-timed from the previous
       departure plus driving time; the first entry after the window moves
       by the departure delta of the last matched entry, later ones stay.
    4. If a scheduled entry carries a time-fix, shift the whole list so the
       anchored time equals its value before the schedule was applied.

    Raises StopTimeNotApplicableError, MultipleTimeFixesError.
    """
    driving = [e for e in entries if e.departure is not None]
    start, schedule_start, length = longest_common_contiguous_subsequence(
        [e.station for e in driving], [s.station for s in schedule.entries]
    )
    if length == 0:
        logger.warning("Schedule does not match any station of the timetable; nothing applied")
        return
    logger.debug(
        "Applying schedule entries %d..%d to driving entries %d..%d",
        schedule_start, schedule_start + length - 1, start, start + length - 1,
    )

    window: list[ScheduleEntry | None] = (
        [None] * start
        + list(schedule.entries[schedule_start : schedule_start + length])
        + [None] * (len(driving) - start - length)
    )

    previous_departure: datetime | None = None
    previous_shift = timedelta(0)
    time_fix_diff: timedelta | None = None

    for entry, scheduled in zip(driving, window):
        if scheduled is None:
            entry.shift(previous_shift)
            previous_departure = None
            previous_shift = timedelta(0)
            continue

        old_departure = entry.departure
        is_stop = entry.arrival is not None
        old_arrival = entry.arrival if is_stop else old_departure

        if scheduled.stop_time is not None:
            if not is_stop:
                raise StopTimeNotApplicableError(
                    f"Stop time for '{entry.station}' needs an entry with both arrival and departure"
                )
            stop_time = scheduled.stop_time
        else:
            stop_time = old_departure - old_arrival

        if previous_departure is None:
            new_arrival = old_arrival
        else:
            new_arrival = previous_departure + scheduled.driving_time
        new_departure = new_arrival + stop_time

        if is_stop:
            entry.arrival = new_arrival
        entry.departure = new_departure

        if scheduled.time_fix is not None:
            if time_fix_diff is not None:
                raise MultipleTimeFixesError(
                    f"Schedule holds a second time-fix at '{scheduled.station}'"
                )
            if scheduled.time_fix is ScheduleTimeFix.ANK:
                time_fix_diff = old_arrival - new_arrival
            else:
                time_fix_diff = old_departure - new_departure

        previous_departure = new_departure
        previous_shift = new_departure - old_departure

    if time_fix_diff:
        for entry in entries:
            entry.shift(time_fix_diff)


def generate_schedule(entries: list[Entry]) -> Schedule:
    """Derive a schedule from existing times; the inverse of apply_schedule."""
    schedule_entries = []
    previous_departure: datetime | None = None
    for entry in entries:
        if entry.departure is None:
            continue
        reached = entry.arrival if entry.arrival is not None else entry.departure
        schedule_entries.append(
            ScheduleEntry(
                station=entry.station or "",
                driving_time=(
                    reached - previous_departure if previous_departure is not None else timedelta(0)
                ),
                stop_time=(
                    entry.departure - entry.arrival if entry.arrival is not None else None
                ),
            )
        )
        previous_departure = entry.departure
    return Schedule(entries=schedule_entries)


def with_stop_times(
    schedule: Schedule, first: timedelta | None, last: timedelta | None
) -> Schedule:
    """Return a schedule whose first and/or last stop time is overridden."""
    entries = list(schedule.entries)
    if entries and first is not None:
        entries[0] = replace(entries[0], stop_time=first)
    if entries and last is not None:
        entries[-1] = replace(entries[-1], stop_time=last)
    return Schedule(entries=entries)
