"""Unlock wall: a grid of cells, each unlocked by winning a memory-match game."""

__version__ = "0.1.0"
