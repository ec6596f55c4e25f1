from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import replace

from zusi_fpn.application.ptt_updater import update_ptt_lines
from zusi_fpn.application.resolved_route import ResolvedRoute, ResolvedRoutePart, RouteStartData
from zusi_fpn.application.schedules import apply_schedule, with_stop_times
from zusi_fpn.domain.entities import (
    RoutePartConfig,
    RouteTimeFix,
    StartAction,
    TrainConfigByNummer,
    TrainFileByPath,
)
from zusi_fpn.domain.exceptions import EmptyRoutePartError, TimeFixNotApplicableError
from zusi_fpn.domain.value_objects import RouteTimeFixType
from zusi_fpn.infrastructure.config_reader import read_schedule
from zusi_fpn.infrastructure.environment import ZusiEnvironment
from zusi_fpn.infrastructure.zusi_xml import Entry, PttDocument, TrainDocument

logger = logging.getLogger(__name__)

RouteLookup = Callable[[str], ResolvedRoute]


def resolve_route_part(
    env: ZusiEnvironment, config: RoutePartConfig, lookup: RouteLookup
) -> ResolvedRoutePart:
    """Load one route part and apply its schedule, time-fix and start action.

    lookup returns the resolved route of another configured train and serves
    TrainConfigByNummer sources.

    Raises EmptyRoutePartError, TimeFixNotApplicableError and everything the
    schedule and PTT updates raise.
    """
    if isinstance(config.source, TrainFileByPath):
        part = _read_train_file(env, config.source)
    elif isinstance(config.source, TrainConfigByNummer):
        part = lookup(config.source.nummer).copy()
        part.has_time_fix = False
    else:
        raise TypeError(f"Unsupported route part source: {config.source!r}")

    if not part.entries:
        raise EmptyRoutePartError(f"Route part {config.source} has no timetable entries")

    if config.apply_schedule is not None:
        schedule_path = env.resolve_config_path(config.apply_schedule.path)
        schedule = with_stop_times(
            read_schedule(schedule_path),
            config.apply_schedule.first_stop_time,
            config.apply_schedule.last_stop_time,
        )
        apply_schedule(part.entries, schedule)

    if config.time_fix is not None:
        _apply_time_fix(part, config.time_fix)

    if part.lines:
        update_ptt_lines(part.entries, part.lines)

    if config.start_action is not None:
        _apply_start_action(part.entries[0], config.start_action)
        part.start_data = replace(part.start_data, start_action=config.start_action)

    logger.debug(
        "Resolved route part %s: %d entries, %d printed timetable lines",
        config.source, len(part.entries), len(part.lines),
    )
    return part


def _read_train_file(env: ZusiEnvironment, source: TrainFileByPath) -> ResolvedRoutePart:
    train = TrainDocument.read(env.resolve_config_path(source.path))
    ptt = None
    if train.ptt_file is not None:
        ptt = PttDocument.read(env.resolve_zusi_path(train.ptt_file))

    min_braking = train.min_braking
    if ptt is not None and ptt.min_braking is not None:
        min_braking = ptt.min_braking

    return ResolvedRoutePart(
        start_data=RouteStartData(
            fahrstr_name=train.fahrstr_name,
            start_mode=train.start_mode,
            vorschubweg=train.start_vorschubweg,
            start_speed=train.start_speed,
            km_start=ptt.km_start if ptt is not None else None,
            gnt_column=ptt.gnt_column if ptt is not None else None,
        ),
        entries=[e.copy() for e in train.entries],
        lines=[line.copy() for line in ptt.lines] if ptt is not None else [],
        min_braking=min_braking,
    )


def _apply_time_fix(part: ResolvedRoutePart, time_fix: RouteTimeFix) -> None:
    if time_fix.type is RouteTimeFixType.START_ABF:
        anchor = part.entries[0].departure
        label = "departure of the first entry"
    else:
        anchor = part.entries[-1].arrival
        label = "arrival of the last entry"
    if anchor is None:
        raise TimeFixNotApplicableError(f"Time-fix {time_fix.type.value} needs the {label}")
    part.shift_entries(time_fix.value - anchor)
    part.has_time_fix = True


def _apply_start_action(entry: Entry, action: StartAction) -> None:
    entry.vehicle_action = action.action.value
    entry.turn_signal = action.turn_signal
    entry.turn_signal_distance = action.turn_signal_distance
