"""Classroom presentation grading service."""

__version__ = "1.0.0"
