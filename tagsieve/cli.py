"""Main CLI module for tagsieve.

This module re-exports the CLI for convenience. The main implementation
is in __main__.py.
"""

from tagsieve.__main__ import cli

__all__ = ["cli"]
