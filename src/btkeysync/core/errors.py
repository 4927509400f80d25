"""
btkeysync error types.

Every fatal condition in the migration workflow maps to one exception
class. The CLI prints the message and exits with ``exit_code``.
"""

from __future__ import annotations


class BtKeySyncError(Exception):
    """Base class for all btkeysync failures."""

    exit_code = 1


class PreflightFailedError(BtKeySyncError):
    """A required preflight check did not pass."""


class NoPartitionsFoundError(BtKeySyncError):
    """No block-device partitions were found."""


class MountFailedError(BtKeySyncError):
    """The selected partition could not be mounted."""


class RegistryNotFoundError(BtKeySyncError):
    """The SYSTEM hive does not exist under the mount point."""


class RegistryReadError(BtKeySyncError):
    """The registry tool is missing or returned an error."""


class NoAdaptersFoundError(BtKeySyncError):
    """The hive lists no Bluetooth adapters."""


class NoPairedDevicesFoundError(BtKeySyncError):
    """The selected adapter has no paired devices in the hive."""


class KeyDecodeError(BtKeySyncError):
    """A raw registry value could not be converted to hex."""


class KeyDecodeEmptyError(KeyDecodeError):
    """The raw registry value converted to an empty key."""


class RecordFileNotFoundError(BtKeySyncError):
    """The BlueZ info file for the device pair does not exist."""


class LinkKeyNotFoundError(RecordFileNotFoundError):
    """The info file exists but has no Key= entry in [LinkKey]."""


class WriteFailedError(BtKeySyncError):
    """The BlueZ info file could not be read or rewritten."""


class InvalidMacError(BtKeySyncError, ValueError):
    """An identifier is not a 12-hex-digit MAC address."""
