"""Real-time healing simulation engine for a Restoration Druid."""

__version__ = "0.1.0"
