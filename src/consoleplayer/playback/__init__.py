"""Playback control: command path, subtitle sync and the player controller."""
