"""
btkeysync Core - Conversion logic and migration workflow.

Contains key transcoding, MAC handling, configuration, logging, preflight
checks and the migration orchestrator.
"""

from btkeysync.core.config import BtKeySyncConfig
from btkeysync.core.errors import BtKeySyncError
from btkeysync.core.keys import canonicalize_mac, is_compact_mac, transcode_key
from btkeysync.core.logging import get_logger, setup_logging
from btkeysync.core.migration import KeyMigrator, Prompter

__all__ = [
    "BtKeySyncConfig",
    "BtKeySyncError",
    "KeyMigrator",
    "Prompter",
    "canonicalize_mac",
    "is_compact_mac",
    "transcode_key",
    "get_logger",
    "setup_logging",
]
