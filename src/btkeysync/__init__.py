"""
btkeysync - Share Bluetooth pairings between Windows and Linux.

Reads Bluetooth link keys from a Windows SYSTEM registry hive and writes
them into the BlueZ storage directory so dual-boot systems reconnect to
paired devices without pairing again.
"""

__version__ = "1.0.0"
__author__ = "btkeysync contributors"

from btkeysync.core.config import BtKeySyncConfig
from btkeysync.core.keys import canonicalize_mac, transcode_key

__all__ = ["BtKeySyncConfig", "canonicalize_mac", "transcode_key", "__version__"]
