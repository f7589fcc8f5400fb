"""Text-based engines used when the structured parser is not available."""

from .scanner import ScannedLine, scan_lines
from .scope import ScopeContext, ScopeHeuristicEngine
from .fallback import DirectoryFallback, minimal_file_analysis

__all__ = [
    "ScannedLine",
    "scan_lines",
    "ScopeContext",
    "ScopeHeuristicEngine",
    "DirectoryFallback",
    "minimal_file_analysis",
]
