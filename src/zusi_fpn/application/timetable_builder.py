from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from zusi_fpn.application.generated_train import GeneratedTrain, sort_key
from zusi_fpn.application.train_builder import RouteResolver, build_train
from zusi_fpn.domain.entities import FahrplanConfig
from zusi_fpn.infrastructure.environment import ZusiEnvironment
from zusi_fpn.infrastructure.zusi_xml import PTT_VERSION, FahrplanDocument

logger = logging.getLogger(__name__)


@dataclass
class GenerationResult:
    fahrplan_path: Path
    train_paths: list[Path] = field(default_factory=list)
    ptt_paths: list[Path] = field(default_factory=list)


def train_file_path(fahrplan_path: Path, train: GeneratedTrain) -> Path:
    """<dir>/<name>.fpn -> <dir>/<name>/<Gattung><Nummer>.trn"""
    return fahrplan_path.parent / fahrplan_path.stem / f"{train.label}.trn"


def ptt_file_path(fahrplan_path: Path, train: GeneratedTrain) -> Path:
    """<dir>/<name>.fpn -> <dir>/<name>/<Gattung><Nummer>.timetable.xml"""
    return fahrplan_path.parent / fahrplan_path.stem / f"{train.label}.timetable.xml"


def generate_fahrplan(env: ZusiEnvironment, config: FahrplanConfig) -> GenerationResult:
    """Generate all configured trains and the .fpn referencing them.

    Printed timetables are written before their train, trains before the
    .fpn. Files written before a failure are left in place.
    """
    fahrplan_path = env.resolve_config_path(config.generate_at)
    fahrplan_zusi_path = env.to_zusi_path(fahrplan_path)

    fahrplan = FahrplanDocument.read(env.resolve_config_path(config.generate_from))
    fahrplan.trn_files = True
    dropped = fahrplan.clear_trains()
    if dropped:
        logger.debug("Dropped %d trains of the template timetable", dropped)

    routes = RouteResolver(env, config.trains)
    trains: list[GeneratedTrain] = []
    for train_config in config.trains:
        trains.extend(build_train(env, fahrplan_zusi_path, train_config, routes))
    trains.sort(key=sort_key)

    result = GenerationResult(fahrplan_path=fahrplan_path)
    for train in trains:
        train_path = train_file_path(fahrplan_path, train)
        if train.ptt is not None:
            ptt_path = ptt_file_path(fahrplan_path, train)
            train.ptt.set_version(PTT_VERSION)
            train.ptt.set_fahrplan_file(fahrplan_zusi_path, nur_info=True)
            train.ptt.set_train_file(env.to_zusi_path(train_path), nur_info=True)
            train.ptt.set_utm(fahrplan.utm)
            train.train.ptt_file = env.to_zusi_path(ptt_path)
            train.ptt.write(ptt_path)
            result.ptt_paths.append(ptt_path)
            logger.info("Wrote printed timetable %s", ptt_path)

        fahrplan.add_train_file(env.to_zusi_path(train_path))
        train.train.write(train_path)
        result.train_paths.append(train_path)
        logger.info("Wrote train %s", train_path)

    fahrplan.write(fahrplan_path)
    logger.info("Wrote timetable %s with %d trains", fahrplan_path, len(trains))
    return result
