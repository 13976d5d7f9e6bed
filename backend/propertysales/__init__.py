"""Property Price Register search and reporting service."""

__version__ = "0.1.0"
