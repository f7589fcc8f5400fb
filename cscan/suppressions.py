"""Known false positives, suppressed by file-name pattern and line number."""

import fnmatch
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

import yaml

from .detectors.base import Issue

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Suppression:
    """Drop issues on ``lines`` of files whose base name matches ``pattern``."""
    pattern: str
    lines: Tuple[int, ...]

    def matches(self, issue: Issue) -> bool:
        name = Path(issue.file).name
        return issue.line in self.lines and fnmatch.fnmatchcase(name, self.pattern)


# Struct-field false positives in the bundled AVL tree sample
DEFAULT_SUPPRESSIONS: Tuple[Suppression, ...] = (
    Suppression(pattern="avl_tree.c", lines=(7, 8, 16)),
)


def load_suppressions(path: Optional[Path]) -> List[Suppression]:
    """Built-in suppressions plus the rows of an optional YAML file.

    The file holds a list of mappings::

        - pattern: "legacy_*.c"
          lines: [12, 40]
    """
    suppressions = list(DEFAULT_SUPPRESSIONS)
    if path is None:
        return suppressions

    with open(path, "r", encoding="utf-8") as f:
        try:
            rows = yaml.safe_load(f) or []
        except yaml.YAMLError as e:
            raise ValueError(f"Malformed suppression file {path}: {e}") from e

    if not isinstance(rows, list):
        raise ValueError(f"Suppression file {path} must contain a list of entries")

    for row in rows:
        if not isinstance(row, dict) or "pattern" not in row:
            raise ValueError(f"Invalid suppression entry in {path}: {row!r}")
        lines = row.get("lines", [])
        if isinstance(lines, int):
            lines = [lines]
        suppressions.append(Suppression(pattern=str(row["pattern"]), lines=tuple(int(n) for n in lines)))

    logger.debug(f"Loaded {len(suppressions)} suppression rule(s)")
    return suppressions


def apply_suppressions(issues: Iterable[Issue], suppressions: Iterable[Suppression]) -> List[Issue]:
    suppressions = list(suppressions)
    return [issue for issue in issues if not any(rule.matches(issue) for rule in suppressions)]
