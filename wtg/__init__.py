"""wtg - find out what shipped, and where."""

__version__ = "0.3.0"
