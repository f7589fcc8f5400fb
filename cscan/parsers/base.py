"""Base parser interface and the data model shared by all detectors."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional


class ParseError(Exception):
    """Raised when source text cannot be turned into a usable syntax tree."""


@dataclass
class Position:
    """Position in source code (0-based row and column)."""
    row: int
    column: int


@dataclass
class VariableDeclaration:
    """Variable declaration site.

    One instance exists per declaration site, not per name. ``is_initialized``
    may be flipped to True by the variable analyzer when it sees a write, and
    never goes back.
    """
    name: str
    declared_type: str
    position: Position
    is_pointer: bool = False
    is_initialized: bool = False
    is_parameter: bool = False
    is_array: bool = False
    scope_key: str = "global"
    storage_class: Optional[str] = None
    initializer: Optional[str] = None


@dataclass
class FunctionCall:
    """Function call site."""
    callee_name: str
    position: Position


@dataclass
class IncludeDirective:
    """Preprocessor include directive."""
    header_name: str
    is_system_header: bool
    position: Position


@dataclass
class UsageSite:
    """Textual occurrence of a variable name."""
    variable_name: str
    position: Position


@dataclass
class DereferenceSite:
    """Occurrence of a variable as operand of ``*``, ``->`` or ``[...]``."""
    variable_name: str
    position: Position


@dataclass
class LoopSite:
    """Loop whose condition can never become false."""
    kind: str  # "for", "while" or "do"
    position: Position
    has_exit: bool = False


@dataclass
class FormatCall:
    """printf/scanf call site with its arguments as source text.

    ``format_string`` is the literal contents of the first argument without
    quotes, or None when the first argument is not a string literal.
    """
    callee_name: str
    position: Position
    format_string: Optional[str] = None
    arguments: List[str] = field(default_factory=list)


@dataclass
class ParseResult:
    """Everything extracted from one source file."""
    file_path: str
    declarations: List[VariableDeclaration] = field(default_factory=list)
    function_calls: List[FunctionCall] = field(default_factory=list)
    includes: List[IncludeDirective] = field(default_factory=list)
    loops: List[LoopSite] = field(default_factory=list)
    format_calls: List[FormatCall] = field(default_factory=list)
    tree: Optional[object] = None


class BaseParser(ABC):
    """Abstract base class for language parsers."""

    def __init__(self, language_name: str):
        self.language_name = language_name
        self.parser = None
        self.language = None

    @abstractmethod
    def initialize(self) -> None:
        """Initialize the parser and language."""
        pass

    @abstractmethod
    def parse(self, text: str):
        """Parse source text and return a syntax tree."""
        pass

    @abstractmethod
    def extract_declarations(self, tree) -> List[VariableDeclaration]:
        """Extract variable declarations from a syntax tree."""
        pass

    @abstractmethod
    def extract_function_calls(self, tree) -> List[FunctionCall]:
        """Extract function call sites from a syntax tree."""
        pass

    @abstractmethod
    def extract_includes(self, tree) -> List[IncludeDirective]:
        """Extract include directives from a syntax tree."""
        pass
