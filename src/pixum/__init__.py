"""Pixum - artwork resolution gateway."""

__version__ = "0.1.0"
