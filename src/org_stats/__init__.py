"""Organization contribution statistics for GitHub."""

__version__ = "0.1.0"
