"""Infinite loop and printf/scanf format checks."""

from typing import Callable, Iterable, List, Optional

from ..parsers.base import FormatCall, LoopSite, ParseResult, VariableDeclaration
from .base import Category, Issue, make_issue


def count_conversions(format_string: str) -> int:
    """Number of ``%`` conversions, ``%%`` being a literal percent sign."""
    count = 0
    i = 0
    while i < len(format_string):
        if format_string[i] == "%":
            if format_string[i + 1:i + 2] == "%":
                i += 2
                continue
            count += 1
        i += 1
    return count


def argument_name(expression: str) -> str:
    """Leading identifier of an argument expression, ignoring a leading ``&``."""
    text = expression.strip().lstrip("&").lstrip("(").strip()
    name = ""
    for ch in text:
        if ch.isalnum() or ch == "_":
            name += ch
        else:
            break
    return name if name and not name[0].isdigit() else ""


def check_infinite_loops(file_path: str, loops: Iterable[LoopSite]) -> List[Issue]:
    return [
        make_issue(
            file_path, loop.position.row, Category.INFINITE_LOOP,
            "Potential infinite loop (no explicit exit)",
        )
        for loop in loops
        if not loop.has_exit
    ]


def check_format_call(
    file_path: str, call: FormatCall, is_char_buffer: Callable[[str], bool]
) -> List[Issue]:
    """Compare conversions with supplied arguments; scanf targets must be addresses."""
    issues = []
    if not call.arguments:
        return issues

    provided = len(call.arguments) - 1
    row = call.position.row
    # Only a literal format string can be counted
    conversions = count_conversions(call.format_string) if call.format_string is not None else provided

    if provided < conversions:
        issues.append(make_issue(
            file_path, row, Category.FORMAT,
            f"{call.callee_name}: too few arguments for format string "
            f"({provided} given, {conversions} expected)",
        ))
    if provided > conversions:
        issues.append(make_issue(
            file_path, row, Category.FORMAT,
            f"{call.callee_name}: too many arguments for format string "
            f"({provided} given, {conversions} expected)",
        ))

    if call.callee_name == "scanf":
        for expression in call.arguments[1:]:
            name = argument_name(expression)
            if not name or expression.strip().startswith("&"):
                continue
            if not is_char_buffer(name):
                issues.append(make_issue(
                    file_path, row, Category.FORMAT,
                    f"scanf argument '{expression.strip()}' should be passed by address (use &{name})",
                ))

    return issues


def declaration_lookup(declarations: List[VariableDeclaration]) -> Callable[[str, int], Optional[VariableDeclaration]]:
    """Resolve a name to the closest declaration at or above a row."""
    def lookup(name: str, row: int) -> Optional[VariableDeclaration]:
        best = None
        for decl in declarations:
            if decl.name == name and decl.position.row <= row:
                if best is None or decl.position.row >= best.position.row:
                    best = decl
        return best
    return lookup


def is_char_type(declared_type: str) -> bool:
    return declared_type.replace("unsigned", "").replace("signed", "").replace("const", "").strip() == "char"


class AdvancedDetector:
    """Infinite loops and format mismatches over a parsed file."""

    def analyze(self, file_path: str, result: ParseResult) -> List[Issue]:
        issues = check_infinite_loops(file_path, result.loops)
        lookup = declaration_lookup(result.declarations)

        for call in result.format_calls:
            def is_char_buffer(name, row=call.position.row):
                decl = lookup(name, row)
                return decl is not None and is_char_type(decl.declared_type) and (decl.is_array or decl.is_pointer)

            issues.extend(check_format_call(file_path, call, is_char_buffer))

        return issues
