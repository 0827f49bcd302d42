"""Multi-restaurant order orchestration."""

__version__ = "0.1.0"
