"""
Bluetooth pairing keys stored by the Windows BTHPORT driver.

Layout under ``<ControlSet>\\Services\\BTHPORT\\Parameters\\Keys``: one
subkey per local adapter, named by its 12-digit MAC, holding one binary
value per Classic-paired remote device, also named by MAC. LE devices show
up as subkeys instead and carry no link key value.
"""

from __future__ import annotations

from pathlib import Path

from btkeysync.core.keys import is_compact_mac
from btkeysync.core.logging import get_logger
from btkeysync.registry.base import RegistryReader

logger = get_logger(__name__)


class BluetoothKeyIndex:
    """Adapter, device and link key lookups against one SYSTEM hive."""

    def __init__(self, reader: RegistryReader, hive_path: Path, keys_root: str) -> None:
        self.reader = reader
        self.hive_path = hive_path
        self.keys_root = keys_root.strip("/")

    def adapters(self) -> list[str]:
        """Local adapter MACs in registry form, in reader order."""
        adapters = [
            name
            for name in self.reader.list_children(self.hive_path, self.keys_root)
            if is_compact_mac(name)
        ]
        logger.info("Found adapters", adapters=adapters)
        return adapters

    def paired_devices(self, adapter: str) -> list[str]:
        """Remote device MACs paired with ``adapter``."""
        devices = [
            name
            for name in self.reader.list_children(self.hive_path, f"{self.keys_root}/{adapter}")
            if is_compact_mac(name)
        ]
        logger.info("Found paired devices", adapter=adapter, count=len(devices))
        return devices

    def raw_key(self, adapter: str, device: str) -> str:
        """reglookup's rendering of the link key value, "" when absent."""
        return self.reader.read_value(self.hive_path, f"{self.keys_root}/{adapter}/{device}")
