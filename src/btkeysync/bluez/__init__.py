"""
BlueZ on-disk pairing storage.
"""

from btkeysync.bluez.store import BluezKeyStore, find_link_key, patch_link_key

__all__ = ["BluezKeyStore", "find_link_key", "patch_link_key"]
