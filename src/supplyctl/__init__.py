"""supplyctl — item custody and settlement registry."""

__version__ = "0.1.0"
