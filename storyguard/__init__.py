"""Narrative consistency checks for an evolving story model."""

__version__ = "0.1.0"
