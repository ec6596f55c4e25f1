from __future__ import annotations

import logging

from zusi_fpn.application.copy_delay import copy_delay
from zusi_fpn.application.generated_train import GeneratedTrain
from zusi_fpn.application.meta_data import add_meta_data
from zusi_fpn.application.resolved_route import ResolvedRoute
from zusi_fpn.application.rolling_stock import replace_rolling_stock
from zusi_fpn.application.route_merge import merge_route_parts
from zusi_fpn.application.route_parts import RouteLookup, resolve_route_part
from zusi_fpn.domain.entities import RoutePartConfig, TrainConfig
from zusi_fpn.domain.exceptions import (
    NoRoutePartsError,
    RouteReferenceError,
    TrainGenerationError,
    ZusiFpnError,
)
from zusi_fpn.infrastructure.environment import ZusiEnvironment
from zusi_fpn.infrastructure.zusi_xml import PTT_VERSION, TRAIN_VERSION, PttDocument, TrainDocument

logger = logging.getLogger(__name__)


class RouteResolver:
    """Builds and caches the merged route of every configured train.

    Each train resolves its own route parts. Train numbers are only used to
    serve TrainConfigByNummer parts, which must name exactly one configured
    train. Routes are built on first request and callers get the cached
    route, so they must copy it before mutating.
    """

    def __init__(self, env: ZusiEnvironment, trains: list[TrainConfig]) -> None:
        self._env = env
        self._trains = list(trains)
        # id(config) -> (config, route); holding config keeps its id unique.
        self._routes: dict[int, tuple[TrainConfig, ResolvedRoute]] = {}
        self._building: list[TrainConfig] = []

    def route_for(self, nummer: str) -> ResolvedRoute:
        """The route of the single configured train numbered nummer."""
        matches = [t for t in self._trains if t.nummer == nummer]
        if not matches:
            raise RouteReferenceError(f"No train with number '{nummer}' is configured")
        if len(matches) > 1:
            raise RouteReferenceError(
                f"Train number '{nummer}' is configured {len(matches)} times, "
                "a route reference to it is ambiguous"
            )
        return self.route_of(matches[0])

    def route_of(self, config: TrainConfig) -> ResolvedRoute:
        key = id(config)
        if key in self._routes:
            return self._routes[key][1]
        for index, building in enumerate(self._building):
            if building is config:
                chain = [t.nummer for t in self._building[index:]] + [config.nummer]
                raise RouteReferenceError(f"Route references form a cycle: {' -> '.join(chain)}")

        self._building.append(config)
        try:
            route = generate_route(self._env, config.route, self.route_for)
        finally:
            self._building.pop()
        self._routes[key] = (config, route)
        return route


def generate_route(
    env: ZusiEnvironment, parts: list[RoutePartConfig], lookup: RouteLookup
) -> ResolvedRoute:
    """Resolve every route part and merge them left to right."""
    if not parts:
        raise NoRoutePartsError("The route has no parts")
    route = resolve_route_part(env, parts[0], lookup)
    for part in parts[1:]:
        route = merge_route_parts(route, resolve_route_part(env, part, lookup))
    return route


def build_train(
    env: ZusiEnvironment, fahrplan_path: str, config: TrainConfig, routes: RouteResolver
) -> list[GeneratedTrain]:
    """Generate one configured train followed by its copy-delay copies.

    fahrplan_path is the data-root-relative path of the .fpn being generated.
    Every failure is raised as TrainGenerationError carrying the train number.
    """
    try:
        return _build_train(env, fahrplan_path, config, routes)
    except ZusiFpnError as exc:
        raise TrainGenerationError(config.nummer, exc) from exc


def _build_train(
    env: ZusiEnvironment, fahrplan_path: str, config: TrainConfig, routes: RouteResolver
) -> list[GeneratedTrain]:
    train = TrainDocument.create(TRAIN_VERSION)
    train.gattung = config.gattung
    train.number = config.nummer
    train.zuglauf = config.zuglauf
    train.fahrplan_gruppe = config.fahrplan_gruppe
    train.set_fahrplan_file(fahrplan_path, nur_info=True)

    # The cached route may be referenced by other trains.
    route = routes.route_of(config).copy()

    if route.min_braking is not None:
        train.min_braking = route.min_braking

    ptt = None
    if route.lines:
        ptt = PttDocument.create(PTT_VERSION)
        ptt.gattung = config.gattung
        ptt.number = config.nummer
        ptt.km_start = route.start_data.km_start
        ptt.gnt_column = route.start_data.gnt_column
        ptt.min_braking = route.min_braking
        ptt.set_lines(route.lines)

    start = route.start_data
    train.fahrstr_name = start.fahrstr_name
    train.start_mode = start.start_mode
    train.start_vorschubweg = start.vorschubweg
    train.start_speed = start.start_speed
    train.set_entries(route.entries)

    seed = GeneratedTrain(train=train, ptt=ptt)
    replace_rolling_stock(env, config.rolling_stock, seed)
    if config.meta_data is not None:
        add_meta_data(env, config.meta_data, seed)

    trains = [seed]
    if config.copy_delay is not None:
        trains.extend(copy_delay(env, config.copy_delay, seed))
    logger.info("Generated %s with %d copies", seed.label, len(trains) - 1)
    return trains
