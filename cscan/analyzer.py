"""Dispatch files to the AST pipeline or a text fallback and merge the results."""

import logging
from pathlib import Path
from typing import Callable, Iterable, List, Optional

from .config import ScanConfig
from .detectors import AdvancedDetector, DetectorError, Issue, LibraryDetector, VariableDetector
from .heuristics import DirectoryFallback, ScopeHeuristicEngine, minimal_file_analysis
from .parsers import Available, ParseError, ParserAvailability, Unavailable
from .suppressions import DEFAULT_SUPPRESSIONS, Suppression, apply_suppressions
from .utils import DirectoryError, FileReadError, SourceUnit, find_source_files, load_source

logger = logging.getLogger(__name__)


class Analyzer:
    """Runs one scan.

    ``availability`` is the result of probing the structured parser, computed
    once by the caller. Nothing here is shared between files except the
    issue list being built.
    """

    def __init__(
        self,
        config: Optional[ScanConfig] = None,
        availability: Optional[ParserAvailability] = None,
        suppressions: Optional[Iterable[Suppression]] = None,
    ):
        self.config = config or ScanConfig()
        self.availability = availability or Unavailable(reason="parser not probed")
        self.suppressions = list(DEFAULT_SUPPRESSIONS if suppressions is None else suppressions)

    def analyze_directory(self, directory: Path) -> List[Issue]:
        """Analyze every ``.c`` file in ``directory``.

        Falls back to the directory-level text scan when the directory cannot
        be enumerated; a DirectoryError from that scan propagates.
        """
        try:
            return self._analyze_files(directory)
        except DirectoryError as e:
            logger.error(f"Error analyzing directory {directory}: {e}")
            logger.warning("Falling back to directory-level text analysis")
            return self._analyze_directory_fallback(directory)

    def _analyze_files(self, directory: Path) -> List[Issue]:
        issues = []
        for file_path in find_source_files(directory):
            try:
                source = load_source(file_path)
            except FileReadError as e:
                logger.error(f"Error analyzing file {file_path}: {e}")
                continue
            issues.extend(self.analyze_source(source))
        return issues

    def _analyze_directory_fallback(self, directory: Path) -> List[Issue]:
        fallback = DirectoryFallback()
        issues = []
        for source, file_issues in fallback.scan_directory(directory):
            issues.extend(self.finish(source, file_issues))
        return issues

    def analyze_source(self, source: SourceUnit) -> List[Issue]:
        """Issues for one loaded file, with code lines attached and suppressions applied."""
        if self.config.mode == "heuristic":
            engine = ScopeHeuristicEngine(flow_sensitive=self.config.flow_sensitive)
            issues = self._run_detector(
                "scope heuristic", source, lambda: engine.analyze(source.file_path, list(source.lines))
            )
        elif isinstance(self.availability, Available):
            try:
                issues = self._analyze_ast(source)
            except ParseError as e:
                logger.warning(f"AST analysis failed for {source.file_path}, using text fallback: {e}")
                issues = self._minimal_fallback(source)
        else:
            logger.debug(f"AST parser unavailable ({self.availability.reason}), using text fallback")
            issues = self._minimal_fallback(source)

        return self.finish(source, issues)

    def _minimal_fallback(self, source: SourceUnit) -> List[Issue]:
        return self._run_detector(
            "minimal fallback", source,
            lambda: minimal_file_analysis(source.file_path, source.text, source.lines),
        )

    def _analyze_ast(self, source: SourceUnit) -> List[Issue]:
        parser = self.availability.parser
        try:
            variable_detector = VariableDetector(parser, flow_sensitive=self.config.flow_sensitive)
            library_detector = LibraryDetector()
            advanced_detector = AdvancedDetector()
        except Exception as e:
            raise ParseError(f"Failed to initialize detectors: {e}") from e

        path = source.file_path
        try:
            result = parser.parse_source(path, source.text)
        except ParseError:
            raise
        except Exception as e:
            logger.exception(f"Tree extraction failed on {path}")
            raise ParseError(f"Tree extraction failed: {e}") from e

        issues = []
        issues.extend(self._run_detector("variable", source, lambda: variable_detector.analyze(path, result)))
        issues.extend(self._run_detector("library", source, lambda: library_detector.analyze(path, result)))
        issues.extend(self._run_detector(
            "header spelling", source, lambda: library_detector.check_header_spelling(path, result)
        ))
        issues.extend(self._run_detector("advanced", source, lambda: advanced_detector.analyze(path, result)))
        return issues

    def _run_detector(self, name: str, source: SourceUnit, run: Callable[[], List[Issue]]) -> List[Issue]:
        """Run one detector; an unexpected failure costs only its own issues."""
        try:
            return run()
        except DetectorError as e:
            logger.error(f"{name} detector skipped {source.file_path}: {e}")
            return []
        except Exception:
            logger.exception(f"{name} detector failed on {source.file_path}")
            return []

    def finish(self, source: SourceUnit, issues: Iterable[Issue]) -> List[Issue]:
        """Attach trimmed code lines, drop out-of-range lines, apply suppressions."""
        finished = []
        for issue in issues:
            if not 1 <= issue.line <= len(source.lines):
                logger.debug(f"Dropping issue outside {source.file_path}: line {issue.line}")
                continue
            finished.append(issue.with_code_line(source.lines[issue.line - 1].strip()))
        return apply_suppressions(finished, self.suppressions)


def analyze_directory(
    directory: Path,
    config: Optional[ScanConfig] = None,
    availability: Optional[ParserAvailability] = None,
    suppressions: Optional[Iterable[Suppression]] = None,
) -> List[Issue]:
    """Analyze ``directory`` with a fresh Analyzer."""
    return Analyzer(config, availability, suppressions).analyze_directory(directory)
