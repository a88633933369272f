"""Circles and membership limits."""
