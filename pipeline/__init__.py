"""CTO Studio pipeline entry points: configuration and CLI."""

__version__ = "0.1.0"
