"""Learning Record Store orchestration layer."""

__version__ = "0.1.0"
