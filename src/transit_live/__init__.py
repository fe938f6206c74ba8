"""Selection and live-data orchestration engine for a live transit map."""

__version__ = "0.1.0"
