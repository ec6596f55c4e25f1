"""Shared pytest fixtures for the Zusi Fahrplan generator test suite.

The templates follow a short section of the Elze - Voldagsen line: route part 1
runs Elze - Mehle Hp - Osterwald Hp, route part 2 continues from Osterwald Hp to
Voldagsen. All files live in a temporary Zusi data directory whose "dev"
subdirectory holds the configuration and the templates.
"""
from __future__ import annotations

import textwrap
from datetime import datetime
from pathlib import Path

import pytest
from lxml import etree

from zusi_fpn.infrastructure.environment import ZusiEnvironment
from zusi_fpn.infrastructure.zusi_xml import Entry, PTTLine

DATE = "2024-06-20"


class DataDir:
    """A temporary Zusi data directory with helpers to place files in it."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def path(self, relative: str) -> Path:
        return self.root / relative

    def write(self, relative: str, text: str) -> Path:
        path = self.root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(text).strip() + "\n", encoding="utf-8")
        return path

    def parse(self, relative: str) -> etree._Element:
        return etree.parse(str(self.root / relative)).getroot()

    @property
    def env(self) -> ZusiEnvironment:
        return ZusiEnvironment(data_dir=self.root, config_dir=self.root / "dev")


# ---------------------------------------------------------------------------
# Template texts
# ---------------------------------------------------------------------------

FAHRPLAN_TEMPLATE = """
    <?xml version="1.0" encoding="UTF-8"?>
    <Zusi>
      <Info DateiTyp="Fahrplan" Version="A.1" MinVersion="A.1"/>
      <Fahrplan AnfangsZeit="2024-06-20 08:00:00" ChaosVorschlagen="1">
        <BefehlsKonfiguration Dateiname="Signals\\Deutschland\\Befehle\\408_2015.authority.xml"/>
        <Zug>
          <Datei Dateiname="Timetables\\Deutschland\\Elze\\old\\RB99.trn"/>
        </Zug>
        <StrModul>
          <Datei Dateiname="Routes\\Deutschland\\32U_0004_0057\\000442_005692_Elze\\Elze_2017.st3"/>
          <p/>
          <phi/>
        </StrModul>
        <UTM UTM_WE="566" UTM_NS="5793" UTM_Zone="32" UTM_Zone2="U"/>
      </Fahrplan>
    </Zusi>
"""

ROUTE_1_ENTRIES = """
        <FahrplanEintrag Ank="2024-06-20 08:39:00" Abf="2024-06-20 08:41:40" Signalvorlauf="180" Betrst="Elze">
          <FahrplanSignalEintrag FahrplanSignal="N1"/>
        </FahrplanEintrag>
        <FahrplanEintrag Abf="2024-06-20 08:45:00" Betrst="Mehle Hp"/>
        <FahrplanEintrag Ank="2024-06-20 08:48:00" Abf="2024-06-20 08:48:40" Signalvorlauf="160" Betrst="Osterwald Hp"/>
"""

ROUTE_2_ENTRIES = """
        <FahrplanEintrag Ank="2024-06-20 08:48:00" Abf="2024-06-20 08:48:40" Signalvorlauf="160" Betrst="Osterwald Hp"/>
        <FahrplanEintrag FplEintrag="1" Betrst="Voldagsen">
          <FahrplanSignalEintrag FahrplanSignal="A"/>
        </FahrplanEintrag>
        <FahrplanEintrag Ank="2024-06-20 08:52:10" Abf="2024-06-20 08:52:50" Betrst="Voldagsen">
          <FahrplanSignalEintrag FahrplanSignal="N2"/>
        </FahrplanEintrag>
"""


def train_template(entries: str, attributes: str = "", ptt: str | None = None) -> str:
    ptt_reference = f'<BuchfahrplanRohDatei Dateiname="{ptt}"/>' if ptt else ""
    return f"""
    <?xml version="1.0" encoding="UTF-8"?>
    <Zusi>
      <Info DateiTyp="Zug" Version="A.1" MinVersion="A.1"/>
      <Zug Gattung="RB" Nummer="1" FahrstrName="Aufgleispunkt -&gt; Hildesheim Hbf F" Standortmodus="2" spAnfang="0" {attributes}>
        <Datei/>
        {ptt_reference}
        {entries}
        <FahrzeugVarianten/>
      </Zug>
    </Zusi>
    """


ROUTE_1_LINES = """
        <FplZeile FplLaufweg="20092.018">
          <Fplkm km="32.8757"/>
          <FplName FplNameText="Elze"/>
          <FplAnk Ank="2024-06-20 08:39:00"/>
          <FplAbf Abf="2024-06-20 08:41:40"/>
        </FplZeile>
        <FplZeile FplRglGgl="1" FplLaufweg="21799.445">
          <FplvMax vMax="33.3333"/>
          <Fplkm km="1.7792"/>
        </FplZeile>
        <FplZeile FplLaufweg="24631.027">
          <Fplkm km="4.5357"/>
          <FplName FplNameText="Mehle Hp"/>
          <FplAbf Abf="2024-06-20 08:45:00"/>
        </FplZeile>
        <FplZeile FplLaufweg="29134.139">
          <Fplkm km="9.0405"/>
          <FplName FplNameText="Osterwald Hp"/>
          <FplAnk Ank="2024-06-20 08:48:00"/>
          <FplAbf Abf="2024-06-20 08:48:40"/>
        </FplZeile>
"""

ROUTE_2_LINES = """
        <FplZeile FplLaufweg="1000">
          <Fplkm km="9.0405"/>
          <FplName FplNameText="Osterwald Hp"/>
          <FplAnk Ank="2024-06-20 08:48:00"/>
          <FplAbf Abf="2024-06-20 08:48:40"/>
        </FplZeile>
        <FplZeile FplLaufweg="3000">
          <FplvMax vMax="22.2222"/>
          <Fplkm km="11"/>
        </FplZeile>
        <FplZeile FplLaufweg="5500">
          <Fplkm km="13.5"/>
          <FplName FplNameText="Voldagsen"/>
          <FplAnk Ank="2024-06-20 08:52:10"/>
          <FplAbf Abf="2024-06-20 08:52:50"/>
        </FplZeile>
"""


def ptt_template(lines: str = "", attributes: str = "") -> str:
    return f"""
    <?xml version="1.0" encoding="UTF-8"?>
    <Zusi>
      <Info DateiTyp="Buchfahrplan" Version="A.1" MinVersion="A.1"/>
      <Buchfahrplan Gattung="RB" Nummer="1" {attributes}>
        <Datei_fpn/>
        <Datei_trn/>
        <UTM UTM_WE="1" UTM_NS="1" UTM_Zone="32" UTM_Zone2="U"/>
        {lines}
      </Buchfahrplan>
    </Zusi>
    """


def rolling_stock_template(name: str, attributes: str = "", ptt: str | None = None) -> str:
    ptt_reference = f'<BuchfahrplanRohDatei Dateiname="{ptt}"/>' if ptt else ""
    return f"""
    <?xml version="1.0" encoding="UTF-8"?>
    <Zusi>
      <Info DateiTyp="Zug" Version="A.1" MinVersion="A.1"/>
      <Zug Gattung="X" Nummer="0" {attributes}>
        <Datei/>
        {ptt_reference}
        <FahrzeugVarianten Bezeichnung="{name}" ZufallsWert="1">
          <FahrzeugInfo IDHaupt="1" IDNeben="1">
            <Datei Dateiname="RollingStock\\Deutschland\\Epoche5\\{name}.rv.fzg"/>
          </FahrzeugInfo>
        </FahrzeugVarianten>
      </Zug>
    </Zusi>
    """


META_DATA_TEMPLATE = """
    <?xml version="1.0" encoding="UTF-8"?>
    <Zusi>
      <Info DateiTyp="Zug" Version="A.1" MinVersion="A.1"/>
      <Zug Gattung="X" Nummer="0" Zuglauf="Elze - Voldagsen" Prio="3" Verkehrstage="Mo-Fr" Dekozug="1" MBrh="0.5">
        <Datei/>
        <FahrzeugVarianten/>
      </Zug>
    </Zusi>
"""


def config_template(trains: str, generate_at: str = "out/test.fpn") -> str:
    return f"""
    <?xml version="1.0" encoding="UTF-8"?>
    <ZusiEnvironment dataDir="..">
      <Fahrplan generateAt="{generate_at}" generateFrom="fahrplan-template.fpn">
        {trains}
      </Fahrplan>
    </ZusiEnvironment>
    """


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def data_dir(tmp_path: Path) -> DataDir:
    root = tmp_path / "data_dir"
    (root / "dev").mkdir(parents=True)
    return DataDir(root)


@pytest.fixture
def templates(data_dir: DataDir) -> DataDir:
    """A data directory holding the full set of route, rolling stock and meta templates."""
    data_dir.write("dev/fahrplan-template.fpn", FAHRPLAN_TEMPLATE)
    data_dir.write("dev/route-part-1.trn", train_template(ROUTE_1_ENTRIES))
    data_dir.write("dev/route-part-2.trn", train_template(ROUTE_2_ENTRIES))
    data_dir.write(
        "dev/route-part-1-ptt.trn",
        train_template(ROUTE_1_ENTRIES, 'MBrh="1.7"', ptt="dev\\route-part-1.timetable.xml"),
    )
    data_dir.write("dev/route-part-1.timetable.xml", ptt_template(ROUTE_1_LINES, 'kmStart="32.8757"'))
    data_dir.write(
        "dev/route-part-2-ptt.trn",
        train_template(ROUTE_2_ENTRIES, ptt="dev/route-part-2.timetable.xml"),
    )
    data_dir.write("dev/route-part-2.timetable.xml", ptt_template(ROUTE_2_LINES, 'GNTSpalte="1"'))
    data_dir.write("dev/rolling-stock-a.trn", rolling_stock_template("TriebwagenA", 'BR="642"'))
    data_dir.write("dev/rolling-stock-b.trn", rolling_stock_template("TriebwagenB", 'BR="643"'))
    data_dir.write(
        "dev/rolling-stock-a-ptt.trn",
        rolling_stock_template("TriebwagenA", 'BR="642"', ptt="dev/rolling-stock-a.timetable.xml"),
    )
    data_dir.write(
        "dev/rolling-stock-a.timetable.xml",
        """
        <?xml version="1.0" encoding="UTF-8"?>
        <Zusi>
          <Info DateiTyp="Buchfahrplan" Version="A.1" MinVersion="A.1"/>
          <Buchfahrplan Gattung="RE" Nummer="99999" spMax="20" MBrh="1.4" BremsstellungZug="3">
            <Datei_fpn/>
            <Datei_trn/>
          </Buchfahrplan>
        </Zusi>
        """,
    )
    data_dir.write("dev/meta-data.trn", META_DATA_TEMPLATE)
    return data_dir


def at(clock: str, date: str = DATE) -> datetime:
    """A Zusi date-time on the fixture date, from "HH:MM[:SS]"."""
    if clock.count(":") == 1:
        clock += ":00"
    return datetime.strptime(f"{date} {clock}", "%Y-%m-%d %H:%M:%S")


def _make_entry(
    station: str,
    ank: str | None = None,
    abf: str | None = None,
    auxiliary: bool = False,
    signals: tuple[str, ...] = (),
) -> Entry:
    element = etree.Element("FahrplanEintrag", Betrst=station)
    entry = Entry(element)
    entry.arrival = at(ank) if ank else None
    entry.departure = at(abf) if abf else None
    if auxiliary:
        element.set("FplEintrag", "1")
    for signal in signals:
        etree.SubElement(element, "FahrplanSignalEintrag", FahrplanSignal=signal)
    return entry


def _make_line(
    name: str | None = None,
    ank: str | None = None,
    abf: str | None = None,
    km: float | None = None,
    distance: float | None = None,
    track_side: str | None = None,
) -> PTTLine:
    line = PTTLine(etree.Element("FplZeile"))
    line.distance = distance
    line.track_side = track_side
    line.km = km
    line.name = name
    line.arrival = at(ank) if ank else None
    line.departure = at(abf) if abf else None
    return line


@pytest.fixture
def make_entry():  # type: ignore[no-untyped-def]
    """Factory for in-memory FahrplanEintrag elements; times are "HH:MM[:SS]" on the fixture date."""
    return _make_entry


@pytest.fixture
def make_line():  # type: ignore[no-untyped-def]
    """Factory for in-memory FplZeile elements; times are "HH:MM[:SS]" on the fixture date."""
    return _make_line


@pytest.fixture
def write_train(data_dir: DataDir):  # type: ignore[no-untyped-def]
    """Write a train template with the given FahrplanEintrag XML under the data directory."""

    def write(relative: str, entries: str, attributes: str = "", ptt: str | None = None) -> Path:
        return data_dir.write(relative, train_template(entries, attributes, ptt))

    return write


@pytest.fixture
def write_config(data_dir: DataDir):  # type: ignore[no-untyped-def]
    """Write dev/config.xml around the given <Zug> elements."""

    def write(trains: str, generate_at: str = "out/test.fpn") -> Path:
        return data_dir.write("dev/config.xml", config_template(trains, generate_at))

    return write
