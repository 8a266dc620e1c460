"""NeoComm Chat: friendship-gated direct messaging with realtime delivery."""

__version__ = "0.1.0"
