"""Finite-state line scanner for the text-based engines.

Produces, for every source line, a "code" view in which comment text and the
contents of string and character literals are replaced by spaces. Quotes are
kept so column positions and literal boundaries still line up with the raw
line. Brace counting and identifier matching work on the code view, so braces
or names inside literals and comments are never mistaken for code.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List


class State(Enum):
    CODE = "code"
    LINE_COMMENT = "line_comment"
    BLOCK_COMMENT = "block_comment"
    STRING = "string"
    CHAR = "char"


@dataclass(frozen=True)
class ScannedLine:
    row: int
    raw: str
    code: str

    @property
    def is_directive(self) -> bool:
        return self.code.lstrip().startswith("#")

    @property
    def is_blank(self) -> bool:
        return not self.code.strip()


def scan_lines(lines: List[str]) -> List[ScannedLine]:
    """Run the scanner over a file's lines, carrying state across lines."""
    state = State.CODE
    scanned = []

    for row, raw in enumerate(lines):
        out = []
        i = 0
        while i < len(raw):
            ch = raw[i]
            nxt = raw[i + 1] if i + 1 < len(raw) else ""

            if state is State.CODE:
                if ch == "/" and nxt == "/":
                    state = State.LINE_COMMENT
                    out.append("  ")
                    i += 2
                    continue
                if ch == "/" and nxt == "*":
                    state = State.BLOCK_COMMENT
                    out.append("  ")
                    i += 2
                    continue
                if ch == '"':
                    state = State.STRING
                elif ch == "'":
                    state = State.CHAR
                out.append(ch)
            elif state is State.BLOCK_COMMENT:
                if ch == "*" and nxt == "/":
                    state = State.CODE
                    out.append("  ")
                    i += 2
                    continue
                out.append(" ")
            elif state is State.LINE_COMMENT:
                out.append(" ")
            else:
                quote = '"' if state is State.STRING else "'"
                if ch == "\\":
                    out.append("  "[:len(raw[i:i + 2])])
                    i += 2
                    continue
                if ch == quote:
                    state = State.CODE
                    out.append(ch)
                else:
                    out.append(" ")
            i += 1

        if state is State.LINE_COMMENT:
            state = State.CODE
        elif state in (State.STRING, State.CHAR) and not raw.endswith("\\"):
            # Unterminated literal; C does not continue it on the next line
            state = State.CODE

        scanned.append(ScannedLine(row=row, raw=raw, code="".join(out)))

    return scanned
