"""Bug detectors that run over parsed C files."""

from .base import Category, Severity, Issue, DetectorError, make_issue
from .variables import VariableDetector
from .library import LibraryDetector, STANDARD_LIBRARY_FUNCTIONS, STANDARD_HEADERS
from .advanced import AdvancedDetector

__all__ = [
    "Category",
    "Severity",
    "Issue",
    "DetectorError",
    "make_issue",
    "VariableDetector",
    "LibraryDetector",
    "AdvancedDetector",
    "STANDARD_LIBRARY_FUNCTIONS",
    "STANDARD_HEADERS",
]
