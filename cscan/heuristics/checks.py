"""Line-level extraction shared by the text-based engines."""

import re
from typing import List, Optional, Tuple

from ..parsers.base import FormatCall, FunctionCall, IncludeDirective, Position
from .scanner import ScannedLine

INFINITE_LOOP_RE = re.compile(r"\bfor\s*\(\s*;\s*;\s*\)|\bwhile\s*\(\s*(?:1|true)\s*\)")
LOOP_EXIT_RE = re.compile(r"\b(?:break|return)\b|\bexit\s*\(")
FORMAT_CALL_RE = re.compile(r"\b(printf|scanf)\s*\(")
CALL_RE = re.compile(r"\b([A-Za-z_]\w*)\s*\(")
INCLUDE_RE = re.compile(r'^\s*#\s*include\s*([<"])([^>"]+)[>"]')
FORMAT_LITERAL_RE = re.compile(r'^[\s(]*"(.*)"[\s)]*$', re.DOTALL)

NOT_CALLS = {"if", "while", "for", "switch", "return", "sizeof", "do", "else", "case"}


def split_arguments(text: str, open_index: int) -> Tuple[List[str], int]:
    """Split the argument list whose ``(`` is at ``open_index``.

    Commas only separate arguments at nesting depth zero and outside string
    and character literals. Returns the stripped arguments and the index of
    the closing parenthesis (or len(text) when the call is not closed on
    this line).
    """
    parts = []
    buf = []
    depth = 0
    quote: Optional[str] = None
    i = open_index + 1

    while i < len(text):
        ch = text[i]
        if quote:
            buf.append(ch)
            if ch == "\\" and i + 1 < len(text):
                buf.append(text[i + 1])
                i += 2
                continue
            if ch == quote:
                quote = None
        elif ch in ('"', "'"):
            quote = ch
            buf.append(ch)
        elif ch in "([{":
            depth += 1
            buf.append(ch)
        elif ch in ")]}":
            if depth == 0 and ch == ")":
                break
            depth = max(0, depth - 1)
            buf.append(ch)
        elif ch == "," and depth == 0:
            parts.append("".join(buf).strip())
            buf = []
        else:
            buf.append(ch)
        i += 1

    last = "".join(buf).strip()
    if last:
        parts.append(last)
    return parts, i


def is_infinite_loop(line: ScannedLine) -> bool:
    """``for(;;)`` or ``while(1|true)`` with no break/return/exit on the same line."""
    return bool(INFINITE_LOOP_RE.search(line.code)) and not LOOP_EXIT_RE.search(line.code)


def format_calls_on_line(line: ScannedLine) -> List[FormatCall]:
    calls = []
    for match in FORMAT_CALL_RE.finditer(line.code):
        arguments, _ = split_arguments(line.raw, match.end() - 1)
        format_string = None
        if arguments:
            literal = FORMAT_LITERAL_RE.match(arguments[0])
            if literal:
                format_string = literal.group(1)
        calls.append(FormatCall(
            callee_name=match.group(1),
            position=Position(row=line.row, column=match.start()),
            format_string=format_string,
            arguments=arguments,
        ))
    return calls


def calls_on_line(line: ScannedLine) -> List[FunctionCall]:
    if line.is_directive:
        return []
    return [
        FunctionCall(callee_name=match.group(1), position=Position(row=line.row, column=match.start()))
        for match in CALL_RE.finditer(line.code)
        if match.group(1) not in NOT_CALLS
    ]


def includes_in(lines: List[ScannedLine]) -> List[IncludeDirective]:
    includes = []
    for line in lines:
        match = INCLUDE_RE.match(line.raw)
        if match:
            includes.append(IncludeDirective(
                header_name=match.group(2).strip(),
                is_system_header=match.group(1) == "<",
                position=Position(row=line.row, column=0),
            ))
    return includes


def split_top_level(text: str) -> List[str]:
    """Split on commas that are not nested in brackets or literals."""
    parts, _ = split_arguments(f"({text})", 0)
    return parts
