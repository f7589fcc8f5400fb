"""Scope-stack heuristic engine.

A text-only reimplementation of the variable, pointer, loop and format
checks. Each file gets its own ``ScopeContext``: a stack of block symbol
tables pushed and popped on ``{`` and ``}`` plus a global table. Lookups walk
the stack from the innermost block outwards and fall back to globals.
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from ..detectors.advanced import check_format_call, is_char_type
from ..detectors.base import Category, Issue, make_issue
from ..detectors.library import check_missing_headers
from .checks import (
    calls_on_line, format_calls_on_line, includes_in, is_infinite_loop, split_arguments, split_top_level
)
from .scanner import ScannedLine, scan_lines

logger = logging.getLogger(__name__)

TYPE_KEYWORDS = (
    "int", "char", "float", "double", "void", "short", "long",
    "signed", "unsigned", "bool", "size_t", "struct",
)
DECLARATION_PREFIXES = ("const", "volatile", "static", "extern", "register", "auto", "union", "enum")
# The first token must start a declaration; a keyword later on (a cast) does not count
_DECLARATION_START_RE = re.compile(
    r"^[\s{}]*(?:%s)(?:\s|\*)" % "|".join(TYPE_KEYWORDS + DECLARATION_PREFIXES)
)
_CALL_STATEMENT_RE = re.compile(r"^\s*[A-Za-z_]\w*\s*\(")
_CONTROL_RE = re.compile(r"^\s*(?:\}\s*)?(?:if|else|for|while|switch|do)\b")
_FIRST_DECLARATOR_RE = re.compile(r"^(.*?)([A-Za-z_]\w*)\s*((?:\[[^\]]*\]\s*)*)$")
_DECLARATOR_RE = re.compile(r"^\s*(\**)\s*([A-Za-z_]\w*)\s*((?:\[[^\]]*\]\s*)*)$")
_QUALIFIERS_RE = re.compile(r"\b(?:const|volatile|static|extern|register|auto)\b")
_PARAMETER_NAME_RE = re.compile(r"([A-Za-z_]\w*)\s*(?:\[[^\]]*\]\s*)*$")
_STRUCT_OPEN_RE = re.compile(r"\b(?:struct|union)\b[^;(]*\{")
_STRUCT_HEAD_RE = re.compile(r"\b(?:struct|union)\b[^;(){}=]*$")


class InitKind(Enum):
    """How a pointer was last given a value."""
    NONE = "none"
    NULL = "null"
    ADDRESS = "address"
    HEAP = "heap"


def pointer_init_kind(expression: str) -> InitKind:
    expression = expression.strip()
    if re.match(r"^(?:\(\s*void\s*\*\s*\)\s*)?(?:NULL|0)\b", expression):
        return InitKind.NULL
    if expression.startswith("&"):
        return InitKind.ADDRESS
    if re.match(r"^(?:\([^)]*\)\s*)?(?:malloc|calloc|realloc)\s*\(", expression):
        return InitKind.HEAP
    return InitKind.NONE


@dataclass
class VariableInfo:
    name: str
    type_name: str
    is_pointer: bool = False
    is_array: bool = False
    is_initialized: bool = False
    init_kind: InitKind = InitKind.NONE
    null_since: Optional[int] = None


@dataclass
class Block:
    is_struct: bool = False
    symbols: Dict[str, VariableInfo] = field(default_factory=dict)


@dataclass
class ScopeContext:
    """Per-file symbol state; never shared between files."""
    globals: Dict[str, VariableInfo] = field(default_factory=dict)
    blocks: List[Block] = field(default_factory=list)
    # "struct Name" seen on a line whose "{" comes later
    pending_struct: bool = False

    def push(self, is_struct: bool = False) -> Block:
        block = Block(is_struct=is_struct)
        self.blocks.append(block)
        return block

    def pop(self) -> None:
        if self.blocks:
            self.blocks.pop()

    @property
    def in_struct(self) -> bool:
        return any(block.is_struct for block in self.blocks)

    def current(self) -> Dict[str, VariableInfo]:
        return self.blocks[-1].symbols if self.blocks else self.globals

    def lookup(self, name: str) -> Optional[VariableInfo]:
        for block in reversed(self.blocks):
            if name in block.symbols:
                return block.symbols[name]
        return self.globals.get(name)

    def visible_names(self) -> List[str]:
        names = dict.fromkeys(self.globals)
        for block in self.blocks:
            names.update(dict.fromkeys(block.symbols))
        return list(names)


def is_likely_declaration(code: str) -> bool:
    if ";" not in code or _CALL_STATEMENT_RE.match(code):
        return False
    return bool(_DECLARATION_START_RE.match(code))


def parse_declaration(code: str) -> List[VariableInfo]:
    """Variables declared by a single-line declaration."""
    head = code.split(";", 1)[0].strip().lstrip("{}").strip()
    items = split_top_level(head)
    if not items:
        return []

    def split_initializer(item):
        declarator, eq, init = item.partition("=")
        return declarator.strip(), (init.strip() if eq else None)

    first, first_init = split_initializer(items[0])
    if "(" in first:
        return []
    match = _FIRST_DECLARATOR_RE.match(first)
    if not match or not match.group(1).strip():
        return []
    type_part = match.group(1)
    base_type = " ".join(_QUALIFIERS_RE.sub("", type_part.replace("*", " ")).split())

    result = []

    def add(name, is_pointer, is_array, init):
        info = VariableInfo(
            name=name,
            type_name=base_type,
            is_pointer=is_pointer,
            is_array=is_array,
            is_initialized=init is not None,
        )
        if is_pointer and init is not None:
            info.init_kind = pointer_init_kind(init)
        result.append(info)

    add(match.group(2), "*" in type_part, bool(match.group(3)), first_init)

    for item in items[1:]:
        declarator, init = split_initializer(item)
        if "(" in declarator:
            continue
        match = _DECLARATOR_RE.match(declarator)
        if match:
            add(match.group(2), bool(match.group(1)), bool(match.group(3)), init)

    return result


def deref_patterns(name: str) -> List[re.Pattern]:
    escaped = re.escape(name)
    return [
        re.compile(r"(?:^|[^\w)\]\s])\s*\*+\s*%s\b" % escaped),
        re.compile(r"\b%s\s*->" % escaped),
        re.compile(r"\b%s\s*\[" % escaped),
    ]


def contains_token(code: str, name: str) -> bool:
    return bool(re.search(r"(?<!\w)%s(?!\w)" % re.escape(name), code))


def assignment_to(code: str, name: str) -> Optional[str]:
    """Right-hand side when ``name`` is assigned on this line, else None."""
    match = re.search(r"(?<![\w.>*])%s\s*(?:[-+*/%%]?=)(?!=)" % re.escape(name), code)
    if not match:
        return None
    return code[match.end():]


class ScopeHeuristicEngine:
    """Runs every text-based check over one file with a fresh ScopeContext."""

    def __init__(self, flow_sensitive: bool = False):
        self.flow_sensitive = flow_sensitive

    def analyze(self, file_path: str, lines: List[str]) -> List[Issue]:
        context = ScopeContext()
        scanned = scan_lines(lines)
        issues = []
        calls = []

        for line in scanned:
            if line.is_blank or line.is_directive:
                continue
            calls.extend(calls_on_line(line))
            issues.extend(self.analyze_line(file_path, context, line))

        issues.extend(check_missing_headers(file_path, calls, includes_in(scanned)))
        logger.debug(f"Scope heuristic: {len(issues)} issue(s) in {file_path}")
        return issues

    def track_braces(self, context: ScopeContext, line: ScannedLine) -> None:
        is_struct_line = context.pending_struct or bool(_STRUCT_OPEN_RE.search(line.code))
        context.pending_struct = False
        for ch in line.code:
            if ch == "{":
                context.push(is_struct=is_struct_line)
                is_struct_line = False
            elif ch == "}":
                context.pop()
        if "{" not in line.code and _STRUCT_HEAD_RE.search(line.code):
            context.pending_struct = True

    def seed_parameters(self, context: ScopeContext, line: ScannedLine) -> None:
        """A line ``type name(params) {`` opens a function; params count as initialized."""
        code = line.code
        if not ("(" in code and ")" in code and code.rstrip().endswith("{")):
            return
        if _CONTROL_RE.match(code) or not context.blocks:
            return

        open_index = code.index("(")
        params, _ = split_arguments(code, open_index)
        if not params or params == ["void"]:
            return

        for param in params:
            match = _PARAMETER_NAME_RE.search(param.strip())
            if not match:
                continue
            name = match.group(1)
            type_part = param[:match.start()]
            type_name = " ".join(_QUALIFIERS_RE.sub("", type_part.replace("*", " ")).split()) or "int"
            context.current()[name] = VariableInfo(
                name=name,
                type_name=type_name,
                is_pointer="*" in type_part,
                is_array="[" in param,
                is_initialized=True,
            )

    def analyze_line(self, file_path: str, context: ScopeContext, line: ScannedLine) -> List[Issue]:
        issues = []
        code = line.code
        row = line.row

        self.track_braces(context, line)
        self.seed_parameters(context, line)

        if is_likely_declaration(code):
            if not context.in_struct:
                table = context.current()
                for info in parse_declaration(code):
                    if info.init_kind is InitKind.NULL:
                        info.null_since = row
                    table[info.name] = info
            return issues

        if is_infinite_loop(line):
            issues.append(make_issue(
                file_path, row, Category.INFINITE_LOOP,
                "Potential infinite loop (no explicit exit)",
            ))

        names = context.visible_names()

        for name in names:
            if not contains_token(code, name):
                continue
            rhs = assignment_to(code, name)
            if rhs is None:
                continue
            info = context.lookup(name)
            info.is_initialized = True
            if info.is_pointer:
                info.init_kind = pointer_init_kind(rhs)
                if info.init_kind is InitKind.NULL:
                    info.null_since = row
                elif self.flow_sensitive:
                    info.null_since = None

        for name in names:
            if not contains_token(code, name):
                continue
            info = context.lookup(name)
            if info.is_array:
                continue
            deref_hit = any(pattern.search(code) for pattern in deref_patterns(name))

            if not info.is_initialized:
                if info.is_pointer and deref_hit:
                    issues.append(make_issue(
                        file_path, row, Category.WILD_POINTER,
                        f"Potential wild pointer dereference: pointer '{name}' is not initialized",
                    ))
                else:
                    issues.append(make_issue(
                        file_path, row, Category.UNINITIALIZED,
                        f"Variable '{name}' is used before being initialized",
                    ))
            elif info.is_pointer and deref_hit and info.null_since is not None and info.null_since < row:
                issues.append(make_issue(
                    file_path, row, Category.NULL_POINTER,
                    f"Potential null pointer dereference: pointer '{name}' may be NULL",
                ))

        for call in format_calls_on_line(line):
            def is_char_buffer(arg_name):
                info = context.lookup(arg_name)
                return info is not None and is_char_type(info.type_name)

            issues.extend(check_format_call(file_path, call, is_char_buffer))

        return issues
