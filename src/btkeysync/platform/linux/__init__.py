"""
btkeysync Linux Platform Backend.

Implements the OS operations using standard Linux tools:
- lsblk for partition inventory
- findmnt, mount, umount for mounting
- apt-get for installing reglookup
- systemctl for restarting bluetoothd
"""

from btkeysync.platform.linux.backend import LinuxBackend
from btkeysync.platform.linux.parsers import (
    parse_findmnt_json,
    parse_lsblk_json,
    parse_lsblk_partitions,
)

__all__ = [
    "LinuxBackend",
    "parse_findmnt_json",
    "parse_lsblk_json",
    "parse_lsblk_partitions",
]
