"""Version information for ci-locks."""

__version__ = "1.0.0"
