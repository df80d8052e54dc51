"""Container image release builder."""

__version__ = "0.3.0"
