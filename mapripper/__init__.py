"""Discover exposed source maps and rebuild the original source tree."""

__version__ = "0.1.0"
