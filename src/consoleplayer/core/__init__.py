"""Playlist, subtitle and library logic with no audio or console dependencies."""
