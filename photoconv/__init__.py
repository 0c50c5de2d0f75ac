"""photoconv - batch photo format conversion with orientation correction."""

__version__ = "0.3.0"
