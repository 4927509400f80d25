"""
btkeysync CLI Module.

Provides command-line interface for btkeysync operations.
"""

from btkeysync.cli.main import cli, main

__all__ = ["cli", "main"]
