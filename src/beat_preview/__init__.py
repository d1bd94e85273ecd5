"""Bounded MP3 preview generation for private audio assets."""

__version__ = "0.1.0"
