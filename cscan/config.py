"""Configuration management for cscan."""

from pathlib import Path
from typing import Literal, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class ScanConfig(BaseSettings):
    """cscan configuration settings."""

    model_config = SettingsConfigDict(
        env_prefix="CSCAN_",
        case_sensitive=False,
        env_file=".cscanrc",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    mode: Literal["auto", "heuristic"] = Field(
        default="auto",
        description="'auto' uses the tree-sitter pipeline with text fallbacks; "
                    "'heuristic' runs the scope-stack text engine only"
    )

    flow_sensitive: bool = Field(
        default=False,
        description="Respect the first write when reporting uninitialized reads "
                    "and stop null-pointer tracking at reassignment"
    )

    strict_parse: bool = Field(
        default=True,
        description="Treat syntax errors in the tree-sitter tree as parse failures"
    )

    verbose: bool = Field(
        default=False,
        description="Enable verbose output"
    )

    default_directory: Path = Field(
        default=Path("samples"),
        description="Directory scanned when none is given on the command line"
    )

    suppressions_file: Optional[Path] = Field(
        default=None,
        description="YAML file with extra (pattern, lines) suppression rows"
    )


def get_config_file_path(directory: Path) -> Path:
    """Get the path to the config file in the given directory."""
    return directory / ".cscanrc"


def load_config(config_path: Optional[Path] = None, directory: Optional[Path] = None) -> ScanConfig:
    """Load configuration from file or environment variables."""
    # Try to find config file
    config_file = None
    if config_path:
        config_file = Path(config_path)
    elif directory:
        config_file = get_config_file_path(directory)

    if config_file and config_file.exists():
        return ScanConfig(_env_file=str(config_file))

    # Try default location
    default_config = Path.home() / ".cscanrc"
    if default_config.exists():
        return ScanConfig(_env_file=str(default_config))

    return ScanConfig()
