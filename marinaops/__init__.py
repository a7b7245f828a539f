"""Marina operations API: entity summaries, demo/live data sources, and validation."""

__version__ = "0.1.0"
