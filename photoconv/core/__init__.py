"""Conversion dispatch and batch orchestration."""
