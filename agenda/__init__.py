"""Dental clinic agenda: appointment scheduling and conflict resolution."""

__version__ = "0.1.0"
