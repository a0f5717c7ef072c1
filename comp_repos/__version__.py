"""Version information for comp-repos."""

__version__ = "0.1.0"
