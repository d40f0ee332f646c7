"""Exports and charts."""
