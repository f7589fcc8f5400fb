"""Main CLI entry point for cscan - static checks for common C runtime defects."""

import logging
import os
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.panel import Panel

from .analyzer import Analyzer
from .config import load_config
from .detectors import Issue
from .parsers import Unavailable, probe_parser
from .suppressions import load_suppressions
from .utils import DirectoryError

app = typer.Typer(help="cscan - static checks for common C runtime defects", add_completion=False)
console = Console()

SUPPORTED_CHECKS = (
    "Uninitialized variables",
    "NULL and wild pointer dereferences",
    "Missing standard headers",
    "Misspelled system headers",
    "Infinite loops without an exit",
    "printf/scanf argument mismatches",
)


def display_path(file_path: str) -> str:
    """Path relative to the working directory when possible."""
    try:
        return os.path.relpath(file_path, Path.cwd())
    except ValueError:
        return file_path


def print_issues(issues: List[Issue]) -> None:
    if not issues:
        console.print("No problems found.")
        return

    # Issue text contains [Category] and arbitrary source code; print it literally
    for issue in issues:
        console.print(
            f"{display_path(issue.file)}:{issue.line}: [{issue.category.value}] {issue.message}",
            markup=False, highlight=False, soft_wrap=True,
        )
        console.print(f"    {issue.code_line}", markup=False, highlight=False, soft_wrap=True)


def print_capabilities() -> None:
    checks = "\n".join(f"  - {check}" for check in SUPPORTED_CHECKS)
    console.print()
    console.print(Panel(
        f"[bold green]cscan[/bold green] - C static checker\n\n"
        f"Supported checks:\n{checks}",
        title="Capabilities"
    ))


@app.command()
def scan(
    directory: Optional[Path] = typer.Argument(None, help="Directory of .c files (default: samples)"),
    heuristic: bool = typer.Option(False, "--heuristic", help="Use the scope-stack text engine only"),
    flow_sensitive: bool = typer.Option(False, "--flow-sensitive", help="Respect assignment order in variable checks"),
    suppressions: Optional[Path] = typer.Option(None, "--suppressions", "-s", help="YAML file with extra suppression rows"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output"),
):
    """Scan every .c file in a directory and report likely runtime defects.

    The tree-sitter pipeline is used when tree-sitter-c is installed; files it
    cannot parse, or every file when it is missing, go through text fallbacks.
    """
    config = load_config(directory=Path(directory) if directory else None)
    if heuristic:
        config.mode = "heuristic"
    if flow_sensitive:
        config.flow_sensitive = True
    if suppressions:
        config.suppressions_file = suppressions
    if verbose:
        config.verbose = True

    logging.basicConfig(
        level=logging.DEBUG if config.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    work_dir = Path(directory) if directory else config.default_directory
    console.print(f"Scanning directory: {work_dir}", markup=False, highlight=False, soft_wrap=True)

    try:
        rules = load_suppressions(config.suppressions_file)
    except (OSError, ValueError) as e:
        console.print(f"Error loading suppressions: {e}", style="red", markup=False)
        raise typer.Exit(1)

    if config.mode == "heuristic":
        availability = Unavailable(reason="heuristic mode selected")
    else:
        availability = probe_parser(strict=config.strict_parse)

    analyzer = Analyzer(config, availability, rules)
    try:
        issues = analyzer.analyze_directory(work_dir)
    except DirectoryError as e:
        console.print(f"Error: {e}", style="red", markup=False)
        raise typer.Exit(1)

    print_issues(issues)
    print_capabilities()


if __name__ == "__main__":
    app()
