"""Chat-widget backend: real-time sessions and AI response orchestration."""

__version__ = "0.1.0"
