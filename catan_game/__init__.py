"""Single-session settlers-on-a-hex-board game engine."""

__version__ = "0.1.0"
