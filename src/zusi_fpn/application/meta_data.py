from __future__ import annotations

from zusi_fpn.application.generated_train import GeneratedTrain
from zusi_fpn.domain.entities import MetaDataConfig
from zusi_fpn.infrastructure.environment import ZusiEnvironment
from zusi_fpn.infrastructure.zusi_xml import TrainDocument, copy_attribute_if_unset

META_ATTRIBUTES = (
    "Zuglauf",
    "Prio",
    "EnergieVorgabe",
    "MBrh",
    "Verkehrstage",
    "spZugNiedriger",
    "Autopilotbeschleunigung",
    "KeineVorplanKorrektur",
    "Dekozug",
    "LODzug",
    "Reisendendichte",
    "FahrplanGruppe",
    "Rekursionstiefe",
    "ZugsicherungStartmodus",
    "ColdMovement",
    "Zugtyp",
    "Ueberschrift",
    "BuchfahrplanEinfach",
    "BuchfahrplanDLL",
    "TuerSystemBezeichner",
)

# Header fields a printed timetable repeats from its train.
PTT_SYNCED_ATTRIBUTES = ("Gattung", "Nummer", "Zuglauf", "Verkehrstage")

# Buchfahrplan attribute -> Zug attribute filling it when the printed timetable has none.
PTT_BACKFILLED_ATTRIBUTES = (
    ("MBrh", "MBrh"),
    ("Laenge", "FplZuglaenge"),
    ("BR", "BR"),
    ("BremsstellungZug", "BremsstellungZug"),
    ("FplBremsstellungTextvorgabe", "FplBremsstellungTextvorgabe"),
    ("Masse", "FplMasse"),
    ("Grenzlast", "Grenzlast"),
    ("spMax", "spZugNiedriger"),
)


def add_meta_data(env: ZusiEnvironment, config: MetaDataConfig, target: GeneratedTrain) -> None:
    """Fill informational train attributes the target leaves unset from a meta template.

    A printed timetable takes the identity header of its train and, where it
    has no value of its own, the train's braking, length and mass fields.
    """
    template = TrainDocument.read(env.resolve_config_path(config.path))
    for name in META_ATTRIBUTES:
        copy_attribute_if_unset(target.train.element, template.element, name)

    if target.ptt is not None:
        for name in PTT_SYNCED_ATTRIBUTES:
            value = target.train.element.get(name)
            if value:
                target.ptt.element.set(name, value)
            else:
                target.ptt.element.attrib.pop(name, None)
        for ptt_name, train_name in PTT_BACKFILLED_ATTRIBUTES:
            copy_attribute_if_unset(target.ptt.element, target.train.element, ptt_name, train_name)
