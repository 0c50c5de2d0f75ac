"""Command-line interface for photoconv."""
