"""Keystroke-driven launcher engine: command parsing, fuzzy ranking and result building."""

__version__ = "0.1.0"
