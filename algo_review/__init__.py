"""Spaced-repetition tracker for algorithm practice problems."""

__version__ = "0.1.0"
