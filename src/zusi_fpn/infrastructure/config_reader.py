"""Readers for the generator's own XML files: Fahrplan configuration and schedules."""
from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import timedelta
from enum import Enum
from pathlib import Path, PurePath
from typing import TypeVar

from lxml import etree

from zusi_fpn.domain.entities import (
    ApplyScheduleConfig,
    CopyDelayConfig,
    CopyDelayTask,
    FahrplanConfig,
    MetaDataConfig,
    RollingStockConfig,
    RoutePartConfig,
    RouteTimeFix,
    Schedule,
    ScheduleEntry,
    StartAction,
    TrainConfig,
    TrainConfigByNummer,
    TrainFileByPath,
)
from zusi_fpn.domain.exceptions import ConfigError
from zusi_fpn.domain.value_objects import RouteTimeFixType, ScheduleTimeFix, VehicleAction
from zusi_fpn.infrastructure.environment import ZusiEnvironment
from zusi_fpn.infrastructure.time_utils import (
    format_duration,
    parse_duration,
    parse_zusi_datetime,
)
from zusi_fpn.infrastructure.zusi_xml import read_xml, write_xml

logger = logging.getLogger(__name__)

T = TypeVar("T")
E = TypeVar("E", bound=Enum)

TRAIN_TAGS = ("Zug", "Train")


class _ElementReader:
    """Attribute access on one element, raising ConfigError with the file path."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def required(self, element: etree._Element, name: str) -> str:
        value = element.get(name)
        if value is None:
            raise ConfigError(self.path, f"<{element.tag}> requires attribute '{name}' (line {element.sourceline})")
        return value

    def optional(self, element: etree._Element, name: str) -> str | None:
        value = element.get(name)
        return value if value else None

    def convert(self, element: etree._Element, name: str, raw: str, parse: Callable[[str], T]) -> T:
        try:
            return parse(raw)
        except ValueError as exc:
            raise ConfigError(self.path, f"<{element.tag} {name}={raw!r}>: {exc}") from exc

    def enum(self, element: etree._Element, name: str, raw: str, enum_type: type[E]) -> E:
        try:
            return enum_type(raw)
        except ValueError:
            allowed = ", ".join(m.value for m in enum_type)
            raise ConfigError(self.path, f"<{element.tag} {name}={raw!r}>: expected one of {allowed}")

    def child(self, element: etree._Element, tag: str) -> etree._Element:
        child = element.find(tag)
        if child is None:
            raise ConfigError(self.path, f"<{element.tag}> requires a <{tag}> child (line {element.sourceline})")
        return child


def read_fahrplan_config(path: Path) -> tuple[ZusiEnvironment, FahrplanConfig]:
    """Read a <ZusiEnvironment dataDir> file wrapping a <Fahrplan> configuration."""
    root = read_xml(path)
    reader = _ElementReader(path)
    if root.tag != "ZusiEnvironment":
        raise ConfigError(path, f"expected <ZusiEnvironment> root element, found <{root.tag}>")
    env = ZusiEnvironment.from_config_file(path, reader.required(root, "dataDir"))
    fahrplan = reader.child(root, "Fahrplan")
    config = FahrplanConfig(
        generate_at=PurePath(reader.required(fahrplan, "generateAt")),
        generate_from=PurePath(reader.required(fahrplan, "generateFrom")),
        trains=[_read_train(reader, e) for e in fahrplan if e.tag in TRAIN_TAGS],
    )
    logger.debug("Read configuration of %d trains from %s", len(config.trains), path)
    return env, config


def _read_train(reader: _ElementReader, element: etree._Element) -> TrainConfig:
    route = reader.child(element, "Route")
    meta_data = element.find("MetaData")
    copy_delay = element.find("CopyDelay")
    return TrainConfig(
        nummer=reader.required(element, "nummer"),
        gattung=reader.required(element, "gattung"),
        zuglauf=reader.optional(element, "zuglauf"),
        fahrplan_gruppe=reader.optional(element, "fahrplanGruppe"),
        route=[_read_route_part(reader, p) for p in route.iterfind("RoutePart")],
        rolling_stock=_read_rolling_stock(reader, reader.child(element, "RollingStock")),
        meta_data=(
            MetaDataConfig(PurePath(reader.required(meta_data, "path")))
            if meta_data is not None
            else None
        ),
        copy_delay=_read_copy_delay(reader, copy_delay) if copy_delay is not None else None,
    )


def _read_rolling_stock(reader: _ElementReader, element: etree._Element) -> RollingStockConfig:
    return RollingStockConfig(PurePath(reader.required(element, "path")))


def _read_route_part(reader: _ElementReader, element: etree._Element) -> RoutePartConfig:
    by_path = element.find("TrainFileByPath")
    by_nummer = element.find("TrainConfigByNummer")
    if (by_path is None) == (by_nummer is None):
        raise ConfigError(
            reader.path,
            f"<RoutePart> needs exactly one of <TrainFileByPath> or <TrainConfigByNummer> (line {element.sourceline})",
        )
    source: TrainFileByPath | TrainConfigByNummer
    if by_path is not None:
        source = TrainFileByPath(PurePath(reader.required(by_path, "path")))
    else:
        source = TrainConfigByNummer(reader.required(by_nummer, "nummer"))

    start_action = None
    action_element = element.find("StartFahrzeugVerbandAktion")
    if action_element is not None:
        distance = reader.optional(action_element, "wendeSignalAbstand")
        start_action = StartAction(
            action=reader.enum(
                action_element, "aktion", reader.required(action_element, "aktion"), VehicleAction
            ),
            turn_signal=reader.optional(action_element, "wendeSignal") == "1",
            turn_signal_distance=(
                reader.convert(action_element, "wendeSignalAbstand", distance, float)
                if distance is not None
                else None
            ),
        )

    time_fix = None
    time_fix_element = element.find("TimeFix")
    if time_fix_element is not None:
        time_fix = RouteTimeFix(
            type=reader.enum(
                time_fix_element, "type", reader.required(time_fix_element, "type"), RouteTimeFixType
            ),
            value=reader.convert(
                time_fix_element,
                "value",
                reader.required(time_fix_element, "value"),
                parse_zusi_datetime,
            ),
        )

    apply_schedule = None
    schedule_element = element.find("ApplySchedule")
    if schedule_element is not None:
        apply_schedule = ApplyScheduleConfig(
            path=PurePath(reader.required(schedule_element, "path")),
            first_stop_time=_optional_duration(reader, schedule_element, "firstStopTime"),
            last_stop_time=_optional_duration(reader, schedule_element, "lastStopTime"),
        )

    return RoutePartConfig(
        source=source,
        start_action=start_action,
        time_fix=time_fix,
        apply_schedule=apply_schedule,
    )


def _optional_duration(
    reader: _ElementReader, element: etree._Element, name: str
) -> timedelta | None:
    raw = reader.optional(element, name)
    return reader.convert(element, name, raw, parse_duration) if raw is not None else None


def _optional_int(reader: _ElementReader, element: etree._Element, name: str) -> int | None:
    raw = reader.optional(element, name)
    return reader.convert(element, name, raw, int) if raw is not None else None


def _read_copy_delay(reader: _ElementReader, element: etree._Element) -> CopyDelayConfig:
    tasks = []
    for task in element.iterfind("CopyDelayTask"):
        count = reader.convert(task, "count", reader.required(task, "count"), int)
        if count < 0:
            raise ConfigError(reader.path, f"<CopyDelayTask count={count}> must not be negative")
        rolling_stock = task.find("RollingStock")
        tasks.append(
            CopyDelayTask(
                delay=reader.convert(task, "delay", reader.required(task, "delay"), parse_duration),
                count=count,
                increment=reader.convert(task, "increment", reader.required(task, "increment"), int),
                first_delay=_optional_duration(reader, task, "firstDelay"),
                first_increment=_optional_int(reader, task, "firstIncrement"),
                rolling_stock=(
                    _read_rolling_stock(reader, rolling_stock) if rolling_stock is not None else None
                ),
            )
        )
    return CopyDelayConfig(tasks=tasks)


def _attribute(element: etree._Element, name: str) -> str | None:
    # Schedules exist with both lowerCamel and UpperCamel attribute names.
    value = element.get(name)
    if value is None:
        value = element.get(name[0].upper() + name[1:])
    return value or None


def read_schedule(path: Path) -> Schedule:
    """Read a <Schedule> file of <ScheduleEntry> elements."""
    root = read_xml(path)
    reader = _ElementReader(path)
    if root.tag != "Schedule":
        raise ConfigError(path, f"expected <Schedule> root element, found <{root.tag}>")
    entries = []
    for element in root.iterfind("ScheduleEntry"):
        station = _attribute(element, "betriebsstelle")
        driving_time = _attribute(element, "drivingTime")
        if station is None or driving_time is None:
            raise ConfigError(
                path,
                f"<ScheduleEntry> requires 'betriebsstelle' and 'drivingTime' (line {element.sourceline})",
            )
        stop_time = _attribute(element, "stopTime")
        time_fix = _attribute(element, "timeFix")
        entries.append(
            ScheduleEntry(
                station=station,
                driving_time=reader.convert(element, "drivingTime", driving_time, parse_duration),
                stop_time=(
                    reader.convert(element, "stopTime", stop_time, parse_duration)
                    if stop_time is not None
                    else None
                ),
                time_fix=(
                    reader.enum(element, "timeFix", time_fix, ScheduleTimeFix)
                    if time_fix is not None
                    else None
                ),
            )
        )
    return Schedule(entries=entries)


def write_schedule(path: Path, schedule: Schedule) -> None:
    root = etree.Element("Schedule")
    for entry in schedule.entries:
        element = etree.SubElement(root, "ScheduleEntry")
        element.set("betriebsstelle", entry.station)
        element.set("drivingTime", format_duration(entry.driving_time))
        if entry.stop_time is not None:
            element.set("stopTime", format_duration(entry.stop_time))
        if entry.time_fix is not None:
            element.set("timeFix", entry.time_fix.value)
    write_xml(path, root)
