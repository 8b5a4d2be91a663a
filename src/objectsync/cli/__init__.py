"""
ObjectSync CLI Module.

Provides command-line interface for ObjectSync operations.
"""

from objectsync.cli.main import main, cli

__all__ = ["main", "cli"]
