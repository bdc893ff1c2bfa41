"""CLI module - Command-line interface components."""

from ci_locks.cli.main import build_parser, main, run

__all__ = ["build_parser", "main", "run"]
