"""Issue model shared by every detector."""

from dataclasses import dataclass, replace
from enum import Enum


class Category(str, Enum):
    """Bug categories reported by cscan."""
    UNINITIALIZED = "Uninitialized"
    NULL_POINTER = "NullPointer"
    WILD_POINTER = "WildPointer"
    HEADER = "Header"
    HEADER_SPELLING = "HeaderSpelling"
    INFINITE_LOOP = "InfiniteLoop"
    FORMAT = "Format"


class Severity:
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


DEFAULT_SEVERITY = {
    Category.UNINITIALIZED: Severity.WARNING,
    Category.NULL_POINTER: Severity.ERROR,
    Category.WILD_POINTER: Severity.ERROR,
    Category.HEADER: Severity.WARNING,
    Category.HEADER_SPELLING: Severity.INFO,
    Category.INFINITE_LOOP: Severity.WARNING,
    Category.FORMAT: Severity.WARNING,
}


class DetectorError(Exception):
    """A detector cannot run on the input it was given."""


@dataclass(frozen=True)
class Issue:
    """A single reported defect. ``line`` is 1-based."""
    file: str
    line: int
    category: Category
    message: str
    severity: str = Severity.WARNING
    code_line: str = ""

    def with_code_line(self, code_line: str) -> "Issue":
        return replace(self, code_line=code_line)


def make_issue(file: str, row: int, category: Category, message: str) -> Issue:
    """Build an issue from a 0-based row."""
    return Issue(
        file=file,
        line=row + 1,
        category=category,
        message=message,
        severity=DEFAULT_SEVERITY[category],
    )
