"""rulegate - rule compilation and request matching for a filtering proxy."""

__version__ = "0.1.0"
