"""Recommendation scoring engine for the ReelPick catalog."""

__version__ = "1.0.0"
