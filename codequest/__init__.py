"""Single-device account and session core for CodeQuest."""

__version__ = "0.1.0"
