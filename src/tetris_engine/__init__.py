"""Headless falling-block puzzle engine with a gymnasium front end."""

__version__ = "0.1.0"
