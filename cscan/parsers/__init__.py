"""Code parsers and the data model they produce."""

from .base import (
    BaseParser, ParseError, ParseResult, Position, VariableDeclaration, FunctionCall,
    IncludeDirective, UsageSite, DereferenceSite, LoopSite, FormatCall
)
from .c import CParser, CSyntaxTree
from .availability import Available, Unavailable, ParserAvailability, probe_parser

__all__ = [
    "BaseParser",
    "ParseError",
    "ParseResult",
    "Position",
    "VariableDeclaration",
    "FunctionCall",
    "IncludeDirective",
    "UsageSite",
    "DereferenceSite",
    "LoopSite",
    "FormatCall",
    "CParser",
    "CSyntaxTree",
    "Available",
    "Unavailable",
    "ParserAvailability",
    "probe_parser",
]
