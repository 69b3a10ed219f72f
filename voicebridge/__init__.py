"""Real-time multi-speaker voice capture and translation."""

__version__ = "0.1.0"
