"""Per-workspace extension profiles for VS Code style editors."""

__version__ = "0.3.0"
