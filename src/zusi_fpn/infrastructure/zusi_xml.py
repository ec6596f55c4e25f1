"""lxml-backed views on the Zusi 3 XML file family.

The wrappers never re-model a document. They expose typed, nullable accessors
for the fields the generator transforms and leave every other attribute and
element untouched, so a read-modify-write cycle preserves the rest verbatim.
An absent or empty attribute reads as None; assigning None removes it.
"""
from __future__ import annotations

import copy
import logging
from collections.abc import Callable, Iterable
from datetime import timedelta
from pathlib import Path
from typing import Any, ClassVar, TypeVar

from lxml import etree

from zusi_fpn.domain.exceptions import FileError, InvalidAttributeError, WrongFileTypeError
from zusi_fpn.domain.value_objects import DocumentKind
from zusi_fpn.infrastructure.time_utils import format_zusi_datetime, parse_zusi_datetime

logger = logging.getLogger(__name__)

_PARSER = etree.XMLParser(remove_blank_text=True)

TRAIN_VERSION = ("A.6", "A.6")
PTT_VERSION = ("A.4", "A.4")


def format_float(value: float) -> str:
    """Format a float the way Zusi writes it: no trailing ".0", no float noise."""
    text = repr(round(float(value), 6))
    return text[:-2] if text.endswith(".0") else text


def parse_bool(raw: str) -> bool:
    return raw == "1"


def dump_bool(value: bool) -> str | None:
    return "1" if value else None


def read_xml(path: Path) -> etree._Element:
    """Parse an XML file and return its root element; raises FileError."""
    try:
        return etree.parse(str(path), _PARSER).getroot()
    except OSError as exc:
        raise FileError(path, f"cannot read file: {exc}") from exc
    except etree.XMLSyntaxError as exc:
        raise FileError(path, f"invalid XML: {exc}") from exc


def write_xml(path: Path, root: etree._Element) -> None:
    """Write root as pretty-printed UTF-8 XML, creating parent directories."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        etree.ElementTree(root).write(
            str(path), xml_declaration=True, encoding="UTF-8", pretty_print=True
        )
    except OSError as exc:
        raise FileError(path, f"cannot write file: {exc}") from exc
    logger.debug("Wrote %s", path)


def _insert_in_order(parent: etree._Element, child: etree._Element, order: tuple[str, ...]) -> None:
    # Insert before the first known sibling ranked after child; unknown siblings keep their place.
    rank = order.index(child.tag)
    for index, sibling in enumerate(parent):
        if isinstance(sibling.tag, str) and sibling.tag in order and order.index(sibling.tag) > rank:
            parent.insert(index, child)
            return
    parent.append(child)


def _ensure_child(parent: etree._Element, tag: str, order: tuple[str, ...]) -> etree._Element:
    child = parent.find(tag)
    if child is None:
        child = etree.Element(tag)
        _insert_in_order(parent, child, order)
    return child


def _element_key(element: etree._Element) -> tuple[Any, ...]:
    return (
        element.tag,
        tuple(sorted(element.attrib.items())),
        (element.text or "").strip(),
        tuple(_element_key(child) for child in element if isinstance(child.tag, str)),
    )


def _remove_children(parent: etree._Element, tag: str) -> None:
    for child in parent.findall(tag):
        parent.remove(child)


def copy_attribute_if_unset(
    target: etree._Element, source: etree._Element, name: str, source_name: str | None = None
) -> bool:
    """Copy source's attribute onto target unless target already has a value.

    Returns True when a value was copied.
    """
    if target.get(name):
        return False
    value = source.get(source_name or name)
    if not value:
        return False
    target.set(name, value)
    return True


class XmlAttribute:
    """Nullable typed view on one attribute of the owner's `element`."""

    def __init__(
        self,
        name: str,
        parse: Callable[[str], Any] = str,
        dump: Callable[[Any], str | None] = str,
    ) -> None:
        self.name = name
        self.parse = parse
        self.dump = dump

    def __get__(self, obj: Any, objtype: type | None = None) -> Any:
        if obj is None:
            return self
        raw = obj.element.get(self.name)
        if raw is None or raw == "":
            return None
        return self._parse(obj.element, raw)

    def _parse(self, element: etree._Element, raw: str) -> Any:
        try:
            return self.parse(raw)
        except ValueError as exc:
            raise InvalidAttributeError(element.tag, self.name, raw, str(exc)) from exc

    def __set__(self, obj: Any, value: Any) -> None:
        dumped = None if value is None else self.dump(value)
        if dumped is None:
            obj.element.attrib.pop(self.name, None)
        else:
            obj.element.set(self.name, dumped)


class XmlChildAttribute(XmlAttribute):
    """Nullable typed view on an attribute of a single child element.

    Assigning a value creates the child at its canonical position; assigning
    None removes the whole child.
    """

    def __init__(
        self,
        tag: str,
        name: str,
        order: tuple[str, ...],
        parse: Callable[[str], Any] = str,
        dump: Callable[[Any], str | None] = str,
    ) -> None:
        super().__init__(name, parse, dump)
        self.tag = tag
        self.order = order

    def __get__(self, obj: Any, objtype: type | None = None) -> Any:
        if obj is None:
            return self
        child = obj.element.find(self.tag)
        if child is None:
            return None
        raw = child.get(self.name)
        if raw is None or raw == "":
            return None
        return self._parse(child, raw)

    def __set__(self, obj: Any, value: Any) -> None:
        dumped = None if value is None else self.dump(value)
        if dumped is None:
            _remove_children(obj.element, self.tag)
        else:
            _ensure_child(obj.element, self.tag, self.order).set(self.name, dumped)


class Entry:
    """A FahrplanEintrag: one row of a train's arrival/departure list."""

    station = XmlAttribute("Betrst")
    arrival = XmlAttribute("Ank", parse_zusi_datetime, format_zusi_datetime)
    departure = XmlAttribute("Abf", parse_zusi_datetime, format_zusi_datetime)
    signal_vorlauf = XmlAttribute("Signalvorlauf", float, format_float)
    vehicle_action = XmlAttribute("FzgVerbandAktion")
    turn_signal = XmlAttribute("FzgVerbandWendeSignal", parse_bool, dump_bool)
    turn_signal_distance = XmlAttribute("FzgVerbandWendeSignalAbstand", float, format_float)

    def __init__(self, element: etree._Element) -> None:
        self.element = element

    @property
    def is_auxiliary(self) -> bool:
        """Hilfseintrag: carries signal annotations only, never a stop."""
        return self.element.get("FplEintrag") == "1"

    @property
    def signals(self) -> list[str]:
        return [s.get("FahrplanSignal", "") for s in self.element.iterfind("FahrplanSignalEintrag")]

    @property
    def signal_entries(self) -> list[tuple[Any, ...]]:
        """Every FahrplanSignalEintrag as a comparable key of its whole content."""
        return [_element_key(s) for s in self.element.iterfind("FahrplanSignalEintrag")]

    def shift(self, delta: timedelta) -> None:
        if self.arrival is not None:
            self.arrival = self.arrival + delta
        if self.departure is not None:
            self.departure = self.departure + delta

    def copy(self) -> Entry:
        return Entry(copy.deepcopy(self.element))

    def __repr__(self) -> str:
        return f"Entry({self.station!r}, arrival={self.arrival}, departure={self.departure})"


LINE_CHILD_ORDER = (
    "FplvMax",
    "Fplkm",
    "FplName",
    "FplSignaltyp",
    "FplAnk",
    "FplAbf",
    "FplNameRechts",
    "FplIcon",
)


class PTTLine:
    """A FplZeile: one row of a printed timetable (Buchfahrplan)."""

    distance = XmlAttribute("FplLaufweg", float, format_float)  # cumulative, in m
    track_side = XmlAttribute("FplRglGgl")
    speed = XmlChildAttribute("FplvMax", "vMax", LINE_CHILD_ORDER, float, format_float)
    km = XmlChildAttribute("Fplkm", "km", LINE_CHILD_ORDER, float, format_float)
    name = XmlChildAttribute("FplName", "FplNameText", LINE_CHILD_ORDER)
    signal_type = XmlChildAttribute("FplSignaltyp", "FplSignaltypNr", LINE_CHILD_ORDER)
    arrival = XmlChildAttribute(
        "FplAnk", "Ank", LINE_CHILD_ORDER, parse_zusi_datetime, format_zusi_datetime
    )
    departure = XmlChildAttribute(
        "FplAbf", "Abf", LINE_CHILD_ORDER, parse_zusi_datetime, format_zusi_datetime
    )
    name_right = XmlChildAttribute("FplNameRechts", "FplNameText", LINE_CHILD_ORDER)

    def __init__(self, element: etree._Element) -> None:
        self.element = element

    @property
    def is_timed(self) -> bool:
        return self.arrival is not None or self.departure is not None

    def shift(self, delta: timedelta) -> None:
        if self.arrival is not None:
            self.arrival = self.arrival + delta
        if self.departure is not None:
            self.departure = self.departure + delta

    def copy(self) -> PTTLine:
        return PTTLine(copy.deepcopy(self.element))

    def __repr__(self) -> str:
        return f"PTTLine({self.name!r}, km={self.km}, distance={self.distance})"


D = TypeVar("D", bound="ZusiDocument")


class ZusiDocument:
    """A <Zusi> root holding an <Info> header and one typed body element."""

    kind: ClassVar[DocumentKind]
    child_order: ClassVar[tuple[str, ...]] = ()
    skeleton: ClassVar[tuple[str, ...]] = ()  # children of a freshly created body

    def __init__(self, root: etree._Element) -> None:
        self.root = root

    @property
    def info(self) -> etree._Element:
        return self.root.find("Info")

    @property
    def element(self) -> etree._Element:
        return self.root.find(self.kind.value)

    @classmethod
    def read(cls: type[D], path: Path) -> D:
        root = read_xml(path)
        info = root.find("Info") if root.tag == "Zusi" else None
        actual = info.get("DateiTyp") if info is not None else None
        if actual != cls.kind.value or root.find(cls.kind.value) is None:
            raise WrongFileTypeError(path, cls.kind.value, actual)
        return cls(root)

    @classmethod
    def create(cls: type[D], version: tuple[str, str]) -> D:
        root = etree.Element("Zusi")
        etree.SubElement(
            root, "Info", DateiTyp=cls.kind.value, Version=version[0], MinVersion=version[1]
        )
        body = etree.SubElement(root, cls.kind.value)
        for tag in cls.skeleton:
            etree.SubElement(body, tag)
        return cls(root)

    def set_version(self, version: tuple[str, str]) -> None:
        self.info.set("Version", version[0])
        self.info.set("MinVersion", version[1])

    def write(self, path: Path) -> None:
        write_xml(path, self.root)

    def copy(self: D) -> D:
        return type(self)(copy.deepcopy(self.root))

    def _file_reference(self, tag: str) -> str | None:
        child = self.element.find(tag)
        if child is None:
            return None
        return child.get("Dateiname") or None

    def _set_file_reference(self, tag: str, path: str | None, nur_info: bool) -> None:
        child = _ensure_child(self.element, tag, self.child_order)
        child.attrib.clear()
        if path:
            child.set("Dateiname", path)
        if nur_info:
            child.set("NurInfo", "1")


class TrainDocument(ZusiDocument):
    """A .trn train file."""

    kind = DocumentKind.ZUG
    child_order = ("Datei", "BuchfahrplanRohDatei", "FahrplanEintrag", "FahrzeugVarianten")
    skeleton = ("Datei", "FahrzeugVarianten")

    gattung = XmlAttribute("Gattung")
    number = XmlAttribute("Nummer")
    zuglauf = XmlAttribute("Zuglauf")
    fahrplan_gruppe = XmlAttribute("FahrplanGruppe")
    min_braking = XmlAttribute("MBrh", float, format_float)
    lower_speed_cap = XmlAttribute("spZugNiedriger", float, format_float)
    fahrstr_name = XmlAttribute("FahrstrName")
    start_mode = XmlAttribute("Standortmodus")
    start_vorschubweg = XmlAttribute("StartVorschubweg", float, format_float)
    start_speed = XmlAttribute("spAnfang", float, format_float)

    @property
    def fahrplan_file(self) -> str | None:
        return self._file_reference("Datei")

    def set_fahrplan_file(self, path: str | None, nur_info: bool = True) -> None:
        self._set_file_reference("Datei", path, nur_info)

    @property
    def ptt_file(self) -> str | None:
        return self._file_reference("BuchfahrplanRohDatei")

    @ptt_file.setter
    def ptt_file(self, path: str | None) -> None:
        if path is None:
            _remove_children(self.element, "BuchfahrplanRohDatei")
        else:
            self._set_file_reference("BuchfahrplanRohDatei", path, nur_info=False)

    @property
    def entries(self) -> list[Entry]:
        return [Entry(e) for e in self.element.iterfind("FahrplanEintrag")]

    def set_entries(self, entries: Iterable[Entry]) -> None:
        _remove_children(self.element, "FahrplanEintrag")
        for entry in entries:
            _insert_in_order(self.element, entry.element, self.child_order)

    @property
    def vehicles(self) -> etree._Element | None:
        return self.element.find("FahrzeugVarianten")

    def replace_vehicles(self, vehicles: etree._Element | None) -> None:
        _remove_children(self.element, "FahrzeugVarianten")
        if vehicles is not None:
            _insert_in_order(self.element, copy.deepcopy(vehicles), self.child_order)


class PttDocument(ZusiDocument):
    """A .timetable.xml printed timetable (Buchfahrplan)."""

    kind = DocumentKind.BUCHFAHRPLAN
    child_order = ("Datei_fpn", "Datei_trn", "UTM", "FplZeile")
    skeleton = ("Datei_fpn", "Datei_trn")

    gattung = XmlAttribute("Gattung")
    number = XmlAttribute("Nummer")
    zuglauf = XmlAttribute("Zuglauf")
    verkehrstage = XmlAttribute("Verkehrstage")
    min_braking = XmlAttribute("MBrh", float, format_float)
    speed_max = XmlAttribute("spMax", float, format_float)
    km_start = XmlAttribute("kmStart", float, format_float)
    gnt_column = XmlAttribute("GNTSpalte", parse_bool, dump_bool)

    @property
    def fahrplan_file(self) -> str | None:
        return self._file_reference("Datei_fpn")

    def set_fahrplan_file(self, path: str | None, nur_info: bool = True) -> None:
        self._set_file_reference("Datei_fpn", path, nur_info)

    @property
    def train_file(self) -> str | None:
        return self._file_reference("Datei_trn")

    def set_train_file(self, path: str | None, nur_info: bool = True) -> None:
        self._set_file_reference("Datei_trn", path, nur_info)

    def set_utm(self, utm: etree._Element | None) -> None:
        _remove_children(self.element, "UTM")
        if utm is not None:
            _insert_in_order(self.element, copy.deepcopy(utm), self.child_order)

    @property
    def lines(self) -> list[PTTLine]:
        return [PTTLine(e) for e in self.element.iterfind("FplZeile")]

    def set_lines(self, lines: Iterable[PTTLine]) -> None:
        _remove_children(self.element, "FplZeile")
        for line in lines:
            _insert_in_order(self.element, line.element, self.child_order)


class FahrplanDocument(ZusiDocument):
    """A .fpn network timetable."""

    kind = DocumentKind.FAHRPLAN

    trn_files = XmlAttribute("trnDateien", parse_bool, dump_bool)

    @property
    def utm(self) -> etree._Element | None:
        return self.element.find("UTM")

    @property
    def train_files(self) -> list[str]:
        return [
            datei.get("Dateiname", "")
            for datei in self.element.iterfind("Zug/Datei")
        ]

    def clear_trains(self) -> int:
        """Drop every train reference and every embedded train; returns how many."""
        trains = self.element.findall("Zug")
        for zug in trains:
            self.element.remove(zug)
        return len(trains)

    def add_train_file(self, path: str) -> None:
        zug = etree.Element("Zug")
        etree.SubElement(zug, "Datei", Dateiname=path)
        anchor = self.element.find("StrModul")
        if anchor is None:
            anchor = self.element.find("UTM")
        if anchor is None:
            self.element.append(zug)
        else:
            anchor.addprevious(zug)
