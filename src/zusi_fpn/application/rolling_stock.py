from __future__ import annotations

import logging

from zusi_fpn.application.generated_train import GeneratedTrain
from zusi_fpn.domain.entities import RollingStockConfig
from zusi_fpn.infrastructure.environment import ZusiEnvironment
from zusi_fpn.infrastructure.zusi_xml import PttDocument, TrainDocument, copy_attribute_if_unset

logger = logging.getLogger(__name__)

# Zug attributes taken from the rolling stock template when the train has none.
TRAIN_ATTRIBUTES = (
    "FplZuglaenge",
    "BR",
    "BremsstellungZug",
    "FplBremsstellungTextvorgabe",
    "FplMasse",
    "Grenzlast",
    "spZugNiedriger",
    "TuerSystemBezeichner",
)

# Buchfahrplan attribute -> Zug attribute it feeds (None: printed timetable only).
PTT_ATTRIBUTES: tuple[tuple[str, str | None], ...] = (
    ("MBrh", "MBrh"),
    ("Laenge", "FplZuglaenge"),
    ("LaengeLoks", None),
    ("Wagenzuglaenge", None),
    ("FzgInfo", None),
    ("BR", "BR"),
    ("BremsstellungZug", "BremsstellungZug"),
    ("FplBremsstellungTextvorgabe", "FplBremsstellungTextvorgabe"),
    ("Masse", "FplMasse"),
    ("Grenzlast", "Grenzlast"),
    ("spMax", None),
)


def replace_rolling_stock(
    env: ZusiEnvironment, config: RollingStockConfig, target: GeneratedTrain
) -> None:
    """Install the template's vehicle composition and dependent fields into target.

    Scalar fields are only filled where target has no value of its own. When
    both target and template have a printed timetable, the template's values
    cascade into the target's printed timetable and from there into the
    train. A target printed timetable is dropped if the template has none.
    """
    template = TrainDocument.read(env.resolve_config_path(config.path))
    train = target.train

    train.replace_vehicles(template.vehicles)
    for name in TRAIN_ATTRIBUTES:
        copy_attribute_if_unset(train.element, template.element, name)

    if target.ptt is None:
        return
    if template.ptt_file is None:
        logger.debug("Rolling stock %s has no printed timetable, dropping %s's", config.path, target.label)
        target.drop_ptt()
        return

    template_ptt = PttDocument.read(env.resolve_zusi_path(template.ptt_file))
    ptt = target.ptt
    for ptt_name, train_name in PTT_ATTRIBUTES:
        copy_attribute_if_unset(ptt.element, template_ptt.element, ptt_name)
        if train_name is not None:
            copy_attribute_if_unset(train.element, ptt.element, train_name, ptt_name)

    cap = train.lower_speed_cap
    if cap is not None and ptt.speed_max is not None and cap < ptt.speed_max:
        ptt.speed_max = cap
