from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from zusi_fpn.domain.exceptions import InvalidTrainNumberError
from zusi_fpn.domain.value_objects import TrainNumber
from zusi_fpn.infrastructure.zusi_xml import PttDocument, TrainDocument


@dataclass
class GeneratedTrain:
    """A generated train file and its optional printed timetable."""

    train: TrainDocument
    ptt: PttDocument | None = None

    def copy(self) -> GeneratedTrain:
        return GeneratedTrain(
            train=self.train.copy(),
            ptt=self.ptt.copy() if self.ptt is not None else None,
        )

    def shift(self, delta: timedelta) -> None:
        """Move every arrival and departure of train and printed timetable by delta."""
        for entry in self.train.entries:
            entry.shift(delta)
        if self.ptt is not None:
            for line in self.ptt.lines:
                line.shift(delta)

    def drop_ptt(self) -> None:
        self.ptt = None
        self.train.ptt_file = None

    @property
    def label(self) -> str:
        return f"{self.train.gattung or ''}{self.train.number or ''}"


def sort_key(train: GeneratedTrain) -> tuple[int, tuple[int, ...]]:
    """Order by train number; unparsable numbers sort first."""
    try:
        return (1, TrainNumber.parse(train.train.number or "").parts)
    except InvalidTrainNumberError:
        return (0, ())
