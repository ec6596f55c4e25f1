from __future__ import annotations

from pathlib import Path


class ZusiFpnError(Exception):
    """Base exception for all Zusi Fahrplan generator errors."""


class FileError(ZusiFpnError):
    """Raised when a file cannot be read, parsed or written."""

    def __init__(self, path: Path | str, message: str) -> None:
        self.path = Path(path)
        super().__init__(f"{self.path}: {message}")


class WrongFileTypeError(ZusiFpnError):
    """Raised when a Zusi file holds another document kind than the call site requires."""

    def __init__(self, path: Path | str, expected: str, actual: str | None) -> None:
        self.path = Path(path)
        self.expected = expected
        self.actual = actual
        super().__init__(f"{self.path}: expected a '{expected}' file, found '{actual or 'unknown'}'")


class InvalidAttributeError(ZusiFpnError):
    """Raised when an attribute of a Zusi file holds a value that cannot be parsed."""

    def __init__(self, element: str, attribute: str, value: str, reason: str) -> None:
        self.element = element
        self.attribute = attribute
        self.value = value
        super().__init__(f"<{element}> attribute '{attribute}' has invalid value {value!r}: {reason}")


class ConfigError(ZusiFpnError):
    """Raised when a configuration or schedule file is structurally invalid."""

    def __init__(self, path: Path | str, message: str) -> None:
        self.path = Path(path)
        super().__init__(f"{self.path}: {message}")


class InvalidPathError(ZusiFpnError):
    """Raised when a path escapes the data directory."""


class InvalidTrainNumberError(ZusiFpnError):
    """Raised when a train number is not a '_'-joined list of non-negative integers."""


class TrainNumberNegativeError(ZusiFpnError):
    """Raised when incrementing a train number would make a component negative."""


class EmptyRoutePartError(ZusiFpnError):
    """Raised when a route part template has no timetable entries."""


class NoRoutePartsError(ZusiFpnError):
    """Raised when a route is configured without any part."""


class NonConsecutiveError(ZusiFpnError):
    """Raised when two route parts do not share a compatible join entry."""


class NonConsecutivePTTError(ZusiFpnError):
    """Raised when two printed timetables cannot be joined at the shared station."""


class MultipleTimeFixesError(ZusiFpnError):
    """Raised when more than one time-fix would apply to the same route or schedule."""


class TimeFixNotApplicableError(ZusiFpnError):
    """Raised when the entry anchoring a time-fix lacks the anchored time."""


class StopTimeNotApplicableError(ZusiFpnError):
    """Raised when a schedule stop time targets an entry without an arrival."""


class LengthMismatchError(ZusiFpnError):
    """Raised when timed entries and timed printed timetable lines differ in count."""

    def __init__(self, entries: int, lines: int) -> None:
        self.entries = entries
        self.lines = lines
        super().__init__(
            f"{entries} timed timetable entries cannot be related to {lines} printed timetable lines"
        )


class RelatedEntriesInconsistentError(ZusiFpnError):
    """Raised when a timetable entry and its printed timetable line disagree."""


class RouteReferenceError(ZusiFpnError):
    """Raised when a route part references an unknown or ambiguous train number, or a cycle."""


class TrainGenerationError(ZusiFpnError):
    """Wraps any failure while generating one train, tagged with its number."""

    def __init__(self, train_number: str, cause: Exception) -> None:
        self.train_number = train_number
        self.cause = cause
        super().__init__(f"Couldn't generate train '{train_number}': {cause}")
