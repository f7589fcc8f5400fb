"""Text-only fallbacks used when the AST path cannot run.

Two tiers exist. ``minimal_file_analysis`` is used per file when the
structured parser could not be built for it: a couple of bare regexes, the
least precise tier. ``DirectoryFallback`` is used when the directory scan
itself failed: it re-reads every file and runs a richer line-state scan.
"""

import logging
import re
from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Tuple

from ..detectors.base import Category, Issue, make_issue
from ..detectors.library import STANDARD_LIBRARY_FUNCTIONS, check_missing_headers
from ..utils.file_utils import FileReadError, SourceUnit, find_source_files, load_source
from .checks import calls_on_line, includes_in
from .scanner import ScannedLine, scan_lines
from .scope import parse_declaration

logger = logging.getLogger(__name__)

_MINIMAL_DECL_RE = re.compile(r"\b(?:int|char|float|double|long|short)\s+\w+\s*;")
_MINIMAL_HEADER_CHECKS = (
    (re.compile(r"\bmalloc\s*\("), "malloc", "stdlib.h"),
    (re.compile(r"\bprintf\s*\("), "printf", "stdio.h"),
)


def minimal_file_analysis(file_path: str, text: str, lines: Sequence[str]) -> List[Issue]:
    """Per-file fallback: bare declarations and malloc/printf headers."""
    issues = []

    for row, line in enumerate(lines):
        if _MINIMAL_DECL_RE.search(line) and "=" not in line:
            issues.append(make_issue(
                file_path, row, Category.UNINITIALIZED,
                "Variable declared without being initialized",
            ))

        for pattern, function, header in _MINIMAL_HEADER_CHECKS:
            if pattern.search(line) and f"#include <{header}>" not in text:
                issues.append(make_issue(
                    file_path, row, Category.HEADER,
                    f"'{function}' used without including <{header}>",
                ))

    return issues


DECLARATION_KEYWORDS = ("int", "char", "float", "double", "long", "short", "unsigned", "signed")
_DECL_KEYWORD_RE = re.compile(r"^\s*(?:(?:static|const|volatile|register)\s+)*(?:%s)\b" % "|".join(DECLARATION_KEYWORDS))
_SIGNATURE_RE = re.compile(r"\)\s*\{?\s*$")
_STRUCT_RE = re.compile(r"\b(?:struct|union)\b[^;()=]*$")

FALLBACK_HEADER_FUNCTIONS = (
    "malloc", "calloc", "realloc", "free",
    "printf", "fprintf", "sprintf",
    "scanf", "fscanf", "sscanf",
    "sqrt", "pow", "sin", "cos", "tan", "fabs", "floor", "ceil", "log", "exp",
)
FALLBACK_HEADER_TABLE = {name: STANDARD_LIBRARY_FUNCTIONS[name] for name in FALLBACK_HEADER_FUNCTIONS}


class BlockKind:
    FUNCTION = "function"
    STRUCT = "struct"
    BLOCK = "block"


def is_declaration_line(line: ScannedLine) -> bool:
    code = line.code
    if ";" not in code or "=" in code or "(" in code or "return" in code:
        return False
    return bool(_DECL_KEYWORD_RE.match(code))


class LineStateScanner:
    """Tracks which kind of block each line sits in.

    States are pushed on ``{`` as function, struct or plain block bodies,
    decided from the text leading up to the brace, and popped on ``}``.
    """

    def __init__(self):
        self.stack: List[str] = []
        self.header = ""

    @property
    def in_struct(self) -> bool:
        return BlockKind.STRUCT in self.stack

    @property
    def in_function(self) -> bool:
        return BlockKind.FUNCTION in self.stack

    @property
    def at_file_scope(self) -> bool:
        return not self.stack

    def _kind_for_brace(self, prefix: str) -> str:
        text = (self.header + " " + prefix).strip()
        if _STRUCT_RE.search(text):
            return BlockKind.STRUCT
        if not self.stack and _SIGNATURE_RE.search(text + "{"):
            return BlockKind.FUNCTION
        return BlockKind.BLOCK

    def feed(self, line: ScannedLine) -> None:
        if line.is_directive:
            self.header = ""
            return
        start = 0
        for index, ch in enumerate(line.code):
            if ch == "{":
                self.stack.append(self._kind_for_brace(line.code[start:index]))
                self.header = ""
                start = index + 1
            elif ch == "}":
                if self.stack:
                    self.stack.pop()
                self.header = ""
                start = index + 1
            elif ch == ";":
                self.header = ""
                start = index + 1

        remainder = line.code[start:].strip()
        if remainder:
            self.header = (self.header + " " + remainder).strip()


class DirectoryFallback:
    """Whole-directory text scan, used when the AST pass over a directory fails."""

    def scan_directory(self, directory: Path) -> Iterator[Tuple[SourceUnit, List[Issue]]]:
        """Yield each readable source file with its issues.

        Raises DirectoryError when the directory cannot be listed.
        """
        for file_path in find_source_files(directory):
            try:
                source = load_source(file_path)
            except FileReadError as e:
                logger.error(f"Skipping {file_path}: {e}")
                continue
            yield source, self.analyze_file(source.file_path, list(source.lines))

    def analyze_file(self, file_path: str, lines: List[str]) -> List[Issue]:
        issues = []
        state = LineStateScanner()
        scanned = scan_lines(lines)
        calls = []

        for line in scanned:
            if not line.is_directive:
                calls.extend(calls_on_line(line))

            # Classify with the state in force before this line's braces
            candidate = is_declaration_line(line) and not state.in_struct
            if candidate and (state.in_function or state.at_file_scope):
                names = [info.name for info in parse_declaration(line.code)]
                issue = self._uninitialized(file_path, line.row, names)
                if issue:
                    issues.append(issue)
            state.feed(line)

        issues.extend(check_missing_headers(file_path, calls, includes_in(scanned), FALLBACK_HEADER_TABLE))
        return issues

    def _uninitialized(self, file_path: str, row: int, names: List[str]) -> Optional[Issue]:
        if not names:
            return None
        quoted = ", ".join(f"'{name}'" for name in names)
        return make_issue(
            file_path, row, Category.UNINITIALIZED,
            f"Variable {quoted} declared without an initializer",
        )
