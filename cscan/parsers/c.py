"""C parser using tree-sitter."""

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Set

from .base import (
    BaseParser, ParseError, ParseResult, Position, VariableDeclaration, FunctionCall,
    IncludeDirective, UsageSite, DereferenceSite, LoopSite, FormatCall
)

logger = logging.getLogger(__name__)

FORMAT_FUNCTIONS = ("printf", "scanf")

# Wrappers that sit between a declaration and the declared identifier
_DECLARATOR_WRAPPERS = (
    "init_declarator", "pointer_declarator", "array_declarator",
    "parenthesized_declarator", "attributed_declarator",
)


def iter_nodes(root):
    """Yield ``root`` and its descendants in document order.

    Uses an explicit stack, so long ``else if`` chains and deeply nested
    expressions cannot exhaust the interpreter's recursion limit.
    """
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


@dataclass
class CSyntaxTree:
    """Parsed tree plus the source it was built from."""
    root: object
    source: bytes
    lines: List[str]
    has_errors: bool = False
    _declared_names: Optional[Set[int]] = field(default=None, repr=False)

    def text(self, node) -> str:
        return node.text.decode("utf-8", errors="replace")

    def position(self, node) -> Position:
        """Position of a node with the column counted in characters."""
        row, byte_column = node.start_point[0], node.start_point[1]
        line_start = node.start_byte - byte_column
        prefix = self.source[line_start:node.start_byte]
        return Position(row=row, column=len(prefix.decode("utf-8", errors="replace")))


class CParser(BaseParser):
    """Parser for C source files."""

    def __init__(self, strict: bool = True):
        super().__init__("c")
        self.strict = strict
        self.initialize()

    def initialize(self) -> None:
        """Initialize tree-sitter C parser."""
        try:
            from tree_sitter import Language, Parser
            from tree_sitter_c import language
            self.language = Language(language())
            self.parser = Parser(self.language)
        except ImportError as e:
            raise RuntimeError(
                f"Failed to initialize C parser. "
                f"Make sure tree-sitter-c is installed: pip install tree-sitter-c. "
                f"Error: {e}"
            )
        except Exception as e:
            raise RuntimeError(f"Failed to initialize C parser: {e}")

    def parse(self, text: str) -> CSyntaxTree:
        """Parse C source text.

        Raises ParseError when no tree is produced, or when the tree contains
        syntax errors and the parser is strict.
        """
        if not self.parser:
            raise ParseError("Parser not initialized")

        source = text.encode("utf-8")
        try:
            tree = self.parser.parse(source)
        except Exception as e:
            raise ParseError(f"tree-sitter failed: {e}") from e
        if not tree:
            raise ParseError("Failed to parse source code")

        root_node = tree.root_node
        if root_node.has_error:
            if self.strict:
                raise ParseError(f"Syntax error near line {self._first_error_row(root_node) + 1}")
            logger.debug("Continuing with a partial tree despite syntax errors")

        return CSyntaxTree(
            root=root_node,
            source=source,
            lines=re.split(r"\r?\n", text),
            has_errors=root_node.has_error,
        )

    def parse_source(self, file_path: str, text: str) -> ParseResult:
        """Parse a file's text and run every file-level extraction."""
        tree = self.parse(text)
        return ParseResult(
            file_path=file_path,
            declarations=self.extract_declarations(tree),
            function_calls=self.extract_function_calls(tree),
            includes=self.extract_includes(tree),
            loops=self.extract_loops(tree),
            format_calls=self.extract_format_calls(tree),
            tree=tree,
        )

    def _first_error_row(self, node) -> int:
        while node.type != "ERROR" and not node.is_missing:
            child = next((c for c in node.children if c.has_error), None)
            if child is None:
                break
            node = child
        return node.start_point[0]

    def _unwrap_declarator(self, declarator):
        """Follow a declarator down to its identifier.

        Returns (identifier, is_pointer, is_array), or None for function
        declarators and anything that does not name a variable.
        """
        is_pointer = False
        is_array = False
        node = declarator
        while node is not None and node.type != "identifier":
            if node.type == "pointer_declarator":
                is_pointer = True
            elif node.type == "array_declarator":
                is_array = True
            elif node.type not in _DECLARATOR_WRAPPERS:
                return None

            inner = node.child_by_field_name("declarator")
            if inner is None and node.type == "parenthesized_declarator":
                named = [c for c in node.named_children if c.type != "comment"]
                inner = named[0] if named else None
            node = inner

        if node is None:
            return None
        return node, is_pointer, is_array

    def _function_name(self, function_node) -> Optional[str]:
        declarator = function_node.child_by_field_name("declarator")
        while declarator is not None and declarator.type != "function_declarator":
            declarator = declarator.child_by_field_name("declarator")
        if declarator is None:
            return None
        name_node = declarator.child_by_field_name("declarator")
        if name_node is not None and name_node.type == "identifier":
            return name_node.text.decode("utf-8")
        return None

    def _parameter_list(self, function_node):
        declarator = function_node.child_by_field_name("declarator")
        while declarator is not None and declarator.type != "function_declarator":
            declarator = declarator.child_by_field_name("declarator")
        if declarator is None:
            return None
        return declarator.child_by_field_name("parameters")

    def extract_declarations(self, tree: CSyntaxTree) -> List[VariableDeclaration]:
        """Extract variable declarations and function parameters.

        Struct and union members are field_declaration nodes in the grammar,
        so they never show up here.
        """
        declarations = []

        def storage_class_of(decl_node):
            for i in range(decl_node.child_count):
                child = decl_node.child(i)
                if child.type == "storage_class_specifier":
                    return child.text.decode("utf-8")
            return None

        def type_of(decl_node):
            type_node = decl_node.child_by_field_name("type")
            return tree.text(type_node) if type_node is not None else "int"

        def add_declaration(declarator, declared_type, scope_key, storage_class, is_parameter):
            unwrapped = self._unwrap_declarator(declarator)
            if unwrapped is None:
                return
            name_node, is_pointer, is_array = unwrapped

            initializer = None
            if declarator.type == "init_declarator":
                value = declarator.child_by_field_name("value")
                initializer = tree.text(value) if value is not None else ""

            declarations.append(VariableDeclaration(
                name=name_node.text.decode("utf-8"),
                declared_type=declared_type,
                position=tree.position(name_node),
                is_pointer=is_pointer,
                is_initialized=is_parameter or initializer is not None,
                is_parameter=is_parameter,
                is_array=is_array,
                scope_key=scope_key,
                storage_class=storage_class,
                initializer=initializer,
            ))

        # (node, enclosing function name, block depth)
        stack = [(tree.root, None, 0)]
        while stack:
            n, function_name, depth = stack.pop()

            if n.type == "function_definition":
                name = self._function_name(n) or "<anonymous>"
                parameter_list = self._parameter_list(n)
                if parameter_list is not None:
                    for param in parameter_list.children:
                        if param.type != "parameter_declaration":
                            continue
                        declarator = param.child_by_field_name("declarator")
                        if declarator is not None:
                            add_declaration(declarator, type_of(param), f"{name}:1", None, True)
                body = n.child_by_field_name("body")
                if body is not None:
                    stack.append((body, name, 0))
                continue

            if n.type == "compound_statement":
                depth += 1

            if n.type == "declaration":
                scope_key = f"{function_name}:{depth}" if function_name else "global"
                declared_type = type_of(n)
                storage_class = storage_class_of(n)
                for declarator in n.children_by_field_name("declarator"):
                    add_declaration(declarator, declared_type, scope_key, storage_class, False)

            stack.extend((child, function_name, depth) for child in reversed(n.children))

        return declarations

    def extract_function_calls(self, tree: CSyntaxTree) -> List[FunctionCall]:
        """Extract calls whose callee is a plain identifier."""
        function_calls = []

        for n in iter_nodes(tree.root):
            if n.type == "call_expression":
                function_expr = n.child_by_field_name("function")
                if function_expr is not None and function_expr.type == "identifier":
                    function_calls.append(FunctionCall(
                        callee_name=function_expr.text.decode("utf-8"),
                        position=tree.position(n),
                    ))

        return function_calls

    def extract_includes(self, tree: CSyntaxTree) -> List[IncludeDirective]:
        """Extract include directives, system and quoted."""
        includes = []

        def extract_include_info(include_node):
            header_name = None
            is_system_header = False

            path_node = include_node.child_by_field_name("path")
            if path_node is not None and path_node.type == "system_lib_string":
                header_name = path_node.text.decode("utf-8").strip("<>").strip()
                is_system_header = True
            elif path_node is not None and path_node.type == "string_literal":
                header_name = path_node.text.decode("utf-8").strip('"').strip()

            # Fallback: parse from text if tree-sitter didn't find it
            if header_name is None:
                match = re.search(r'#\s*include\s*([<"])([^">]+)[">]', tree.text(include_node))
                if not match:
                    logger.warning(f"Could not extract header from include: {tree.text(include_node).strip()}")
                    return None
                header_name = match.group(2).strip()
                is_system_header = match.group(1) == "<"

            return IncludeDirective(
                header_name=header_name,
                is_system_header=is_system_header,
                position=tree.position(include_node),
            )

        for n in iter_nodes(tree.root):
            if n.type == "preproc_include":
                include = extract_include_info(n)
                if include:
                    includes.append(include)

        return includes

    def _declared_name_starts(self, tree: CSyntaxTree) -> Set[int]:
        """Start bytes of identifiers that are the name being declared."""
        if tree._declared_names is not None:
            return tree._declared_names

        starts = set()

        def mark(declarator):
            unwrapped = self._unwrap_declarator(declarator)
            if unwrapped is not None:
                starts.add(unwrapped[0].start_byte)

        for n in iter_nodes(tree.root):
            if n.type == "declaration":
                for declarator in n.children_by_field_name("declarator"):
                    mark(declarator)
            elif n.type == "parameter_declaration":
                declarator = n.child_by_field_name("declarator")
                if declarator is not None:
                    mark(declarator)

        tree._declared_names = starts
        return starts

    def find_usages(self, tree: CSyntaxTree, name: str) -> List[UsageSite]:
        """Find every occurrence of ``name`` that is not a declared name."""
        usages = []
        declared = self._declared_name_starts(tree)
        encoded = name.encode("utf-8")

        for n in iter_nodes(tree.root):
            if n.type == "identifier" and n.text == encoded and n.start_byte not in declared:
                usages.append(UsageSite(variable_name=name, position=tree.position(n)))

        return usages

    def find_dereferences(self, tree: CSyntaxTree, name: str) -> List[DereferenceSite]:
        """Find ``*name``, ``name->field`` and ``name[...]`` occurrences."""
        dereferences = []
        encoded = name.encode("utf-8")

        def operator_of(n):
            operator = n.child_by_field_name("operator")
            return operator.type if operator is not None else None

        for n in iter_nodes(tree.root):
            argument = None
            if n.type == "pointer_expression" and operator_of(n) == "*":
                argument = n.child_by_field_name("argument")
            elif n.type == "field_expression" and operator_of(n) == "->":
                argument = n.child_by_field_name("argument")
            elif n.type == "subscript_expression":
                argument = n.child_by_field_name("argument")

            if argument is not None and argument.type == "identifier" and argument.text == encoded:
                dereferences.append(DereferenceSite(variable_name=name, position=tree.position(argument)))

        return dereferences

    def extract_loops(self, tree: CSyntaxTree) -> List[LoopSite]:
        """Extract loops with an absent or constant-true condition."""
        loops = []

        def is_constant_true(condition):
            if condition is None:
                return True
            while condition.type == "parenthesized_expression" and condition.named_child_count == 1:
                condition = condition.named_children[0]
            return condition.type == "true" or (
                condition.type == "number_literal" and tree.text(condition) == "1"
            )

        def has_exit(body):
            if body is None:
                return False
            for n in iter_nodes(body):
                if n.type in ("break_statement", "return_statement", "goto_statement"):
                    return True
                if n.type == "call_expression":
                    function_expr = n.child_by_field_name("function")
                    if function_expr is not None and tree.text(function_expr) in ("exit", "abort", "_Exit"):
                        return True
            return False

        for n in iter_nodes(tree.root):
            kind = None
            if n.type == "for_statement":
                # for(;;) has no condition field at all
                if n.child_by_field_name("condition") is None:
                    kind = "for"
            elif n.type == "while_statement":
                if is_constant_true(n.child_by_field_name("condition")):
                    kind = "while"
            elif n.type == "do_statement":
                if is_constant_true(n.child_by_field_name("condition")):
                    kind = "do"

            if kind:
                loops.append(LoopSite(
                    kind=kind,
                    position=tree.position(n),
                    has_exit=has_exit(n.child_by_field_name("body")),
                ))

        return loops

    def extract_format_calls(self, tree: CSyntaxTree) -> List[FormatCall]:
        """Extract printf/scanf calls with their argument texts."""
        format_calls = []

        def literal_contents(node):
            if node.type == "string_literal":
                text = tree.text(node)
                start = text.find('"')
                return text[start + 1:-1] if start >= 0 and text.endswith('"') else None
            if node.type == "concatenated_string":
                parts = []
                for child in node.named_children:
                    if child.type == "string_literal":
                        parts.append(literal_contents(child) or "")
                return "".join(parts)
            return None

        for n in iter_nodes(tree.root):
            if n.type == "call_expression":
                function_expr = n.child_by_field_name("function")
                arguments = n.child_by_field_name("arguments")
                if (
                    function_expr is not None
                    and function_expr.type == "identifier"
                    and tree.text(function_expr) in FORMAT_FUNCTIONS
                    and arguments is not None
                ):
                    args = [c for c in arguments.named_children if c.type != "comment"]
                    format_calls.append(FormatCall(
                        callee_name=tree.text(function_expr),
                        position=tree.position(n),
                        format_string=literal_contents(args[0]) if args else None,
                        arguments=[tree.text(a) for a in args],
                    ))

        return format_calls
