"""Roster-gated Discord membership verification bot."""

__version__ = "0.1.0"
