"""cscan - static checks for common C runtime defects."""

__version__ = "0.1.0"
