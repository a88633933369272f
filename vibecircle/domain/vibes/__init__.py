"""Authored vibes and the recording surface."""
