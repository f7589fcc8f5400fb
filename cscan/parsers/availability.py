"""Decide once per run whether the structured parser can be used."""

import logging
from dataclasses import dataclass
from typing import Union

from .c import CParser

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Available:
    """The tree-sitter parser was constructed and is ready to use."""
    parser: CParser


@dataclass(frozen=True)
class Unavailable:
    """The structured parser cannot be used; ``reason`` says why."""
    reason: str


ParserAvailability = Union[Available, Unavailable]


def probe_parser(strict: bool = True) -> ParserAvailability:
    """Try to construct the C parser and report the outcome."""
    try:
        parser = CParser(strict=strict)
    except RuntimeError as e:
        logger.warning(f"AST parser unavailable, falling back to text analysis: {e}")
        return Unavailable(reason=str(e))
    logger.debug("tree-sitter C parser initialized")
    return Available(parser=parser)
