"""
Offline Windows registry access.
"""

from btkeysync.registry.base import RegistryReader
from btkeysync.registry.bthport import BluetoothKeyIndex
from btkeysync.registry.reglookup import ReglookupReader, parse_reglookup_output

__all__ = [
    "BluetoothKeyIndex",
    "RegistryReader",
    "ReglookupReader",
    "parse_reglookup_output",
]
