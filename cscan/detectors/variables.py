"""Uninitialized variable, wild pointer and null pointer detection."""

import logging
import re
from typing import Dict, List, Optional

from ..parsers.base import ParseResult, VariableDeclaration
from ..parsers.c import CParser, CSyntaxTree
from .base import Category, DetectorError, Issue, make_issue

logger = logging.getLogger(__name__)

_ASSIGNMENT_RE = re.compile(r"^\s*(?:=(?!=)|[+\-*/%]=)")
_NULL_INITIALIZER_RE = re.compile(r"^(?:\(\s*void\s*\*\s*\)\s*)?(?:NULL|0)$")


def is_assignment_target(line: str, name: str, column: int) -> bool:
    """True when the next token after ``name`` at ``column`` is an assignment operator."""
    index = line.find(name, column)
    if index == -1:
        return False
    return bool(_ASSIGNMENT_RE.match(line[index + len(name):]))


def is_null_initializer(initializer: Optional[str]) -> bool:
    if initializer is None:
        return False
    return bool(_NULL_INITIALIZER_RE.match(initializer.strip()))


class VariableDetector:
    """Flags reads of uninitialized variables and bad pointer dereferences.

    By default the analysis is flow-insensitive: once a declaration is seen,
    every non-write occurrence of the name is reported even if a write came
    earlier, and a pointer initialized to NULL stays null for the rest of
    the file. ``flow_sensitive=True`` switches to the stricter variant that
    respects the first write.
    """

    def __init__(self, parser: CParser, flow_sensitive: bool = False):
        self.parser = parser
        self.flow_sensitive = flow_sensitive

    def analyze(self, file_path: str, result: ParseResult) -> List[Issue]:
        tree: CSyntaxTree = result.tree
        if tree is None:
            raise DetectorError(f"No syntax tree for {file_path}")
        issues = []

        for scope, variables in self.group_by_scope(result.declarations).items():
            logger.debug(f"Checking {len(variables)} declaration(s) in scope {scope}")
            for variable in variables:
                issues.extend(self.check_variable_usage(file_path, tree, variable))

        issues.extend(self.check_null_pointer_dereference(file_path, tree, result.declarations))
        return issues

    @staticmethod
    def group_by_scope(declarations: List[VariableDeclaration]) -> Dict[str, List[VariableDeclaration]]:
        grouped: Dict[str, List[VariableDeclaration]] = {}
        for decl in declarations:
            grouped.setdefault(decl.scope_key, []).append(decl)
        return grouped

    def is_candidate(self, variable: VariableDeclaration) -> bool:
        if variable.is_initialized or variable.is_parameter:
            return False
        # Arrays name storage, extern declarations are defined elsewhere
        if variable.is_array or variable.storage_class == "extern":
            return False
        return True

    def check_variable_usage(
        self, file_path: str, tree: CSyntaxTree, variable: VariableDeclaration
    ) -> List[Issue]:
        issues = []
        if not self.is_candidate(variable):
            return issues

        decl_row = variable.position.row
        first_write_row = None
        dereferences = self.parser.find_dereferences(tree, variable.name)
        # "*p = x" writes through p, it does not initialize p
        deref_positions = {(d.position.row, d.position.column) for d in dereferences}

        for usage in self.parser.find_usages(tree, variable.name):
            row = usage.position.row
            if row <= decl_row:
                continue

            line = tree.lines[row] if row < len(tree.lines) else ""
            is_deref = (row, usage.position.column) in deref_positions
            if not is_deref and is_assignment_target(line, variable.name, usage.position.column):
                variable.is_initialized = True
                if first_write_row is None:
                    first_write_row = row
                continue

            if self.flow_sensitive and variable.is_initialized:
                continue

            issues.append(make_issue(
                file_path, row, Category.UNINITIALIZED,
                f"Variable '{variable.name}' is used before being initialized",
            ))

        if variable.is_pointer and (self.flow_sensitive or not variable.is_initialized):
            state = "is never initialized" if first_write_row is None else "is not initialized yet"
            for deref in dereferences:
                row = deref.position.row
                if row <= decl_row:
                    continue
                if first_write_row is not None and row >= first_write_row:
                    continue
                issues.append(make_issue(
                    file_path, row, Category.WILD_POINTER,
                    f"Potential wild pointer dereference: pointer '{variable.name}' {state}",
                ))

        return issues

    def check_null_pointer_dereference(
        self, file_path: str, tree: CSyntaxTree, declarations: List[VariableDeclaration]
    ) -> List[Issue]:
        issues = []
        null_pointers = [
            decl for decl in declarations
            if decl.is_pointer and is_null_initializer(decl.initializer)
        ]

        for pointer in null_pointers:
            decl_row = pointer.position.row
            reassigned_row = self._first_write_after(tree, pointer) if self.flow_sensitive else None

            for deref in self.parser.find_dereferences(tree, pointer.name):
                row = deref.position.row
                if row <= decl_row:
                    continue
                if reassigned_row is not None and row >= reassigned_row:
                    continue
                issues.append(make_issue(
                    file_path, row, Category.NULL_POINTER,
                    f"Potential null pointer dereference: pointer '{pointer.name}' may be NULL",
                ))

        return issues

    def _first_write_after(self, tree: CSyntaxTree, pointer: VariableDeclaration) -> Optional[int]:
        deref_positions = {
            (d.position.row, d.position.column)
            for d in self.parser.find_dereferences(tree, pointer.name)
        }
        for usage in self.parser.find_usages(tree, pointer.name):
            row = usage.position.row
            if row <= pointer.position.row or (row, usage.position.column) in deref_positions:
                continue
            if is_assignment_target(tree.lines[row], pointer.name, usage.position.column):
                return row
        return None
