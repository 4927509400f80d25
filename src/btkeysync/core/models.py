"""
btkeysync data models.

Defines the data structures passed between the partition locator, the
registry reader, the BlueZ store and the migration report.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto
from pathlib import Path
from typing import Any


class CopyMode(Enum):
    """Which paired devices of the adapter get their key copied."""

    ALL = "all"
    SINGLE = "single"


class TransferStatus(Enum):
    """Outcome of one device's key transfer."""

    COPIED = auto()
    DRY_RUN = auto()
    FAILED = auto()


@dataclass
class Partition:
    """A block-device partition reported by lsblk."""

    device_path: str  # e.g., /dev/nvme0n1p3
    size_bytes: int = 0
    fstype: str | None = None
    label: str | None = None
    mountpoint: str | None = None
    parent: str | None = None

    @property
    def is_mounted(self) -> bool:
        return bool(self.mountpoint)

    @property
    def is_ntfs(self) -> bool:
        return (self.fstype or "").lower() in ("ntfs", "ntfs3")

    def to_dict(self) -> dict[str, Any]:
        return {
            "device_path": self.device_path,
            "size_bytes": self.size_bytes,
            "fstype": self.fstype,
            "label": self.label,
            "mountpoint": self.mountpoint,
            "parent": self.parent,
        }


@dataclass
class RegistryRecord:
    """One row of reglookup output."""

    path: str
    type: str
    value: str = ""
    mtime: str = ""

    @property
    def is_key(self) -> bool:
        return self.type.upper() == "KEY"


@dataclass
class DeviceTransfer:
    """Result of copying one remote device's link key."""

    adapter: str  # registry form, e.g. d8b32ff7a7e2
    device: str
    status: TransferStatus = TransferStatus.FAILED
    local_mac: str | None = None  # BlueZ form, e.g. D8:B3:2F:F7:A7:E2
    remote_mac: str | None = None
    key_hex: str | None = None
    previous_key: str | None = None
    info_path: Path | None = None
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.status != TransferStatus.FAILED

    def to_dict(self) -> dict[str, Any]:
        return {
            "adapter": self.adapter,
            "device": self.device,
            "status": self.status.name,
            "local_mac": self.local_mac,
            "remote_mac": self.remote_mac,
            "key_hex": self.key_hex,
            "previous_key": self.previous_key,
            "info_path": str(self.info_path) if self.info_path else None,
            "error": self.error,
        }


@dataclass
class MigrationReport:
    """Everything one migration run did, for display and audit."""

    started_at: datetime = field(default_factory=datetime.now)
    ended_at: datetime | None = None
    partition: str | None = None
    mount_point: Path | None = None
    hive_path: Path | None = None
    adapter: str | None = None
    mode: CopyMode | None = None
    dry_run: bool = False
    service_restarted: bool = False
    transfers: list[DeviceTransfer] = field(default_factory=list)

    @property
    def succeeded(self) -> list[DeviceTransfer]:
        return [t for t in self.transfers if t.succeeded]

    @property
    def failed(self) -> list[DeviceTransfer]:
        return [t for t in self.transfers if not t.succeeded]

    @property
    def is_partial(self) -> bool:
        return bool(self.failed) and bool(self.succeeded)

    def to_dict(self) -> dict[str, Any]:
        return {
            "started_at": self.started_at.isoformat(),
            "ended_at": self.ended_at.isoformat() if self.ended_at else None,
            "partition": self.partition,
            "mount_point": str(self.mount_point) if self.mount_point else None,
            "hive_path": str(self.hive_path) if self.hive_path else None,
            "adapter": self.adapter,
            "mode": self.mode.value if self.mode else None,
            "dry_run": self.dry_run,
            "service_restarted": self.service_restarted,
            "transfers": [t.to_dict() for t in self.transfers],
            "summary": {
                "total": len(self.transfers),
                "succeeded": len(self.succeeded),
                "failed": len(self.failed),
            },
        }

    def save(self, path: Path) -> None:
        """Save report to file. The file holds link keys, so it is owner-only."""
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2, default=str)
        os.chmod(path, 0o600)
