"""streaks -- typed project loading for spreadsheet-backed habit logs."""

__version__ = "0.4.0"
