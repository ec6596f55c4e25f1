from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from zusi_fpn.domain.exceptions import InvalidTrainNumberError, TrainNumberNegativeError


class DocumentKind(str, Enum):
    """Zusi document kinds, as written to /Zusi/Info/@DateiTyp."""

    FAHRPLAN = "Fahrplan"
    ZUG = "Zug"
    BUCHFAHRPLAN = "Buchfahrplan"


class RouteTimeFixType(str, Enum):
    """Anchor of a route part time-fix."""

    START_ABF = "StartAbf"  # departure of the first entry
    END_ANK = "EndAnk"  # arrival of the last entry


class ScheduleTimeFix(str, Enum):
    """Which time of a scheduled entry keeps its original value."""

    ANK = "Ank"
    ABF = "Abf"


class VehicleAction(str, Enum):
    """Non-default FzgVerbandAktion values usable as a start action."""

    ZUG_DREHEN = "1"
    FUEHRERSTANDSWECHSEL = "2"


@dataclass(frozen=True, order=True)
class TrainNumber:
    """A train number such as "20000" or "342_702".

    Components are non-negative integers joined by "_". The canonical string
    form drops leading zeros, so "0042" formats as "42".
    """

    parts: tuple[int, ...]

    @classmethod
    def parse(cls, value: str) -> TrainNumber:
        raw_parts = value.split("_")
        if not all(part.isdigit() and part.isascii() for part in raw_parts):
            raise InvalidTrainNumberError(f"Invalid train number: {value!r}")
        return cls(tuple(int(part) for part in raw_parts))

    def increment(self, by: int) -> TrainNumber:
        """Add `by` to every component; fails when a component would drop below zero."""
        parts = tuple(part + by for part in self.parts)
        if any(part < 0 for part in parts):
            raise TrainNumberNegativeError(
                f"Train number {self} cannot be incremented by {by}: components must stay non-negative"
            )
        return TrainNumber(parts)

    def __str__(self) -> str:
        return "_".join(str(part) for part in self.parts)
