"""Real-time team achievement notifications, presented one at a time."""

__version__ = "1.0.0"
