from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from pathlib import PurePath
from typing import Union

from zusi_fpn.domain.value_objects import RouteTimeFixType, ScheduleTimeFix, VehicleAction


@dataclass(frozen=True)
class ScheduleEntry:
    """One scheduled station: time to drive there and optionally how long to stop."""

    station: str  # Betriebsstelle
    driving_time: timedelta  # from the previous scheduled departure
    stop_time: timedelta | None = None  # None keeps the entry's own stop time
    time_fix: ScheduleTimeFix | None = None


@dataclass
class Schedule:
    entries: list[ScheduleEntry] = field(default_factory=list)


@dataclass(frozen=True)
class StartAction:
    """Vehicle action executed at the first entry of a route part."""

    action: VehicleAction
    turn_signal: bool = False  # wendeSignal
    turn_signal_distance: float | None = None  # wendeSignalAbstand in m


@dataclass(frozen=True)
class RouteTimeFix:
    type: RouteTimeFixType
    value: datetime


@dataclass(frozen=True)
class ApplyScheduleConfig:
    path: PurePath
    first_stop_time: timedelta | None = None
    last_stop_time: timedelta | None = None


@dataclass(frozen=True)
class TrainFileByPath:
    path: PurePath


@dataclass(frozen=True)
class TrainConfigByNummer:
    nummer: str


RoutePartSource = Union[TrainFileByPath, TrainConfigByNummer]


@dataclass(frozen=True)
class RoutePartConfig:
    source: RoutePartSource
    start_action: StartAction | None = None
    time_fix: RouteTimeFix | None = None
    apply_schedule: ApplyScheduleConfig | None = None


@dataclass(frozen=True)
class RollingStockConfig:
    path: PurePath


@dataclass(frozen=True)
class MetaDataConfig:
    path: PurePath


@dataclass(frozen=True)
class CopyDelayTask:
    """Produce `count` copies, each `delay` later and renumbered by `increment`."""

    delay: timedelta
    count: int
    increment: int
    first_delay: timedelta | None = None  # offset of copy 1, defaults to delay
    first_increment: int | None = None  # number offset of copy 1, defaults to increment
    rolling_stock: RollingStockConfig | None = None

    def delay_of(self, n: int) -> timedelta:
        first = self.first_delay if self.first_delay is not None else self.delay
        return first + (n - 1) * self.delay

    def increment_of(self, n: int) -> int:
        first = self.first_increment if self.first_increment is not None else self.increment
        return first + (n - 1) * self.increment


@dataclass(frozen=True)
class CopyDelayConfig:
    tasks: list[CopyDelayTask] = field(default_factory=list)


@dataclass(frozen=True)
class TrainConfig:
    """One <Zug> element of the Fahrplan configuration."""

    nummer: str
    gattung: str
    route: list[RoutePartConfig]
    rolling_stock: RollingStockConfig
    zuglauf: str | None = None
    fahrplan_gruppe: str | None = None
    meta_data: MetaDataConfig | None = None
    copy_delay: CopyDelayConfig | None = None


@dataclass(frozen=True)
class FahrplanConfig:
    generate_at: PurePath  # where the .fpn is written
    generate_from: PurePath  # .fpn template providing StrModul and UTM data
    trains: list[TrainConfig] = field(default_factory=list)
