"""Client-side catalog manager for a book collection."""

__version__ = "0.1.0"
