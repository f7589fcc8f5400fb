"""Utility functions for cscan."""

from .file_utils import (
    DirectoryError, FileReadError, SourceUnit, find_source_files, load_source, read_file_content, split_lines
)

__all__ = [
    "DirectoryError",
    "FileReadError",
    "SourceUnit",
    "find_source_files",
    "load_source",
    "read_file_content",
    "split_lines",
]
