from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from zusi_fpn.application.schedules import apply_schedule, generate_schedule
from zusi_fpn.application.timetable_builder import GenerationResult, generate_fahrplan
from zusi_fpn.domain.entities import Schedule
from zusi_fpn.domain.exceptions import FileError, InvalidAttributeError, ZusiFpnError
from zusi_fpn.infrastructure.config_reader import read_fahrplan_config, read_schedule, write_schedule
from zusi_fpn.infrastructure.zusi_xml import TrainDocument

logger = logging.getLogger(__name__)


@dataclass
class ScheduleApplication:
    """Outcome of applying a schedule to one train file."""

    path: Path
    error: ZusiFpnError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class FahrplanService:
    """Entry point for the commands offered by the CLI and the MCP tools."""

    def generate_fahrplan(self, config_path: Path) -> GenerationResult:
        logger.info("Generate Fahrplan using config file at %s", config_path)
        env, config = read_fahrplan_config(config_path)
        logger.info("Zusi data dir: %s", env.data_dir)
        logger.info("Config dir: %s", env.config_dir)
        return generate_fahrplan(env, config)

    def apply_schedule(self, schedule_path: Path, trn_paths: list[Path]) -> list[ScheduleApplication]:
        """Apply one schedule to each train file in place.

        A failure is recorded for its file and does not stop the others. An
        unreadable schedule raises since no file could be processed.
        """
        schedule = read_schedule(schedule_path)
        return [self._apply_to_file(schedule, path) for path in trn_paths]

    def generate_schedule(self, trn_path: Path, schedule_path: Path) -> Schedule:
        train = TrainDocument.read(trn_path)
        try:
            schedule = generate_schedule(train.entries)
        except InvalidAttributeError as exc:
            raise FileError(trn_path, str(exc)) from exc
        write_schedule(schedule_path, schedule)
        logger.info("Wrote schedule with %d entries to %s", len(schedule.entries), schedule_path)
        return schedule

    def _apply_to_file(self, schedule: Schedule, path: Path) -> ScheduleApplication:
        try:
            train = TrainDocument.read(path)
            apply_schedule(train.entries, schedule)
            train.write(path)
        except ZusiFpnError as exc:
            logger.debug("Schedule not applied to %s: %s", path, exc)
            return ScheduleApplication(path=path, error=exc)
        logger.info("Applied schedule to %s", path)
        return ScheduleApplication(path=path)
