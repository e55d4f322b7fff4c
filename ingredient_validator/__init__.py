"""Batch ingredient validation against a master vocabulary."""

__version__ = "0.1.0"
