"""File discovery and reading utilities."""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Tuple


class DirectoryError(Exception):
    """The scan directory is missing or cannot be listed."""


class FileReadError(Exception):
    """A single source file could not be read."""


@dataclass(frozen=True)
class SourceUnit:
    """A loaded source file. Immutable once loaded."""
    file_path: str
    text: str
    lines: Tuple[str, ...]


def split_lines(text: str) -> Tuple[str, ...]:
    return tuple(re.split(r"\r?\n", text))


def find_source_files(directory: Path, extensions: Tuple[str, ...] = (".c",)) -> List[Path]:
    """List the C files directly inside ``directory``, sorted by name.

    Raises DirectoryError when the directory is missing or unreadable.
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise DirectoryError(f"Directory {directory} does not exist or is not a directory")

    try:
        entries = list(directory.iterdir())
    except OSError as e:
        raise DirectoryError(f"Failed to list directory {directory}: {e}") from e

    return sorted(
        path for path in entries
        if path.suffix in extensions and path.is_file()
    )


def read_file_content(file_path: Path) -> str:
    """Read file content as UTF-8 text."""
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            return f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise FileReadError(f"Failed to read file {file_path}: {e}") from e


def load_source(file_path: Path) -> SourceUnit:
    text = read_file_content(file_path)
    return SourceUnit(file_path=str(file_path), text=text, lines=split_lines(text))
