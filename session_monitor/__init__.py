"""Session Monitor: live circuit tracking and deployment window planning."""

__version__ = "1.0.0"
