"""Playback backends."""
