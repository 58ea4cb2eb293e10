"""Contractor scoring and peer-ranking engine for the FlipScore marketplace."""

__version__ = "0.1.0"
