"""Resilient batch embedding client."""

__version__ = "0.1.0"
