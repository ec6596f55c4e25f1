from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import timedelta

from zusi_fpn.domain.entities import StartAction
from zusi_fpn.infrastructure.zusi_xml import Entry, PTTLine


@dataclass(frozen=True)
class RouteStartData:
    """Start fields harvested from the first route part template."""

    fahrstr_name: str | None = None  # Aufgleis-Fahrstrasse
    start_mode: str | None = None  # Standortmodus
    vorschubweg: float | None = None  # StartVorschubweg
    start_speed: float | None = None  # spAnfang
    km_start: float | None = None  # from the printed timetable
    gnt_column: bool | None = None  # from the printed timetable
    start_action: StartAction | None = None


@dataclass
class ResolvedRoute:
    start_data: RouteStartData
    entries: list[Entry] = field(default_factory=list)
    lines: list[PTTLine] = field(default_factory=list)
    min_braking: float | None = None  # Mindest-Bremshundertstel
    has_time_fix: bool = False

    def copy(self) -> ResolvedRoute:
        return replace(
            self,
            entries=[e.copy() for e in self.entries],
            lines=[line.copy() for line in self.lines],
        )

    def shift_entries(self, delta: timedelta) -> None:
        for entry in self.entries:
            entry.shift(delta)


# A part is a route that has not been merged yet; both carry the same fields.
ResolvedRoutePart = ResolvedRoute
