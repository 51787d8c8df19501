"""Cue Sheet Editor: tabular editing engine for music-licensing cue sheets."""

__version__ = "0.4.2"
