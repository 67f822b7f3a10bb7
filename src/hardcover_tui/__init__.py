"""hardcover-tui: terminal client for the Hardcover book tracking service."""

__version__ = "0.1.0"
