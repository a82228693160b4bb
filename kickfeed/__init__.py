"""kickfeed - sports news feed with on-demand cached translation."""

__version__ = "0.1.0"
