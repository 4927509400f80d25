"""
Linux output parsers.

Parsers for lsblk and findmnt output.
"""

from __future__ import annotations

import json
from typing import Any

import psutil

from btkeysync.core.models import Partition


def parse_lsblk_json(output: str) -> list[dict[str, Any]]:
    """Parse JSON output from lsblk."""
    try:
        data = json.loads(output)
        return data.get("blockdevices", [])
    except json.JSONDecodeError:
        return []


def parse_size(value: Any) -> int:
    """lsblk -b reports sizes as int or numeric string depending on version."""
    if isinstance(value, int):
        return value
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def build_partition_from_lsblk(
    block: dict[str, Any],
    parent: str | None = None,
) -> Partition:
    """Build a Partition object from one lsblk block device entry."""
    device_path = block.get("path") or block.get("name", "")
    if not device_path.startswith("/dev/"):
        device_path = f"/dev/{device_path}"

    return Partition(
        device_path=device_path,
        size_bytes=parse_size(block.get("size", 0)),
        fstype=block.get("fstype") or None,
        label=block.get("label") or None,
        mountpoint=block.get("mountpoint") or None,
        parent=parent,
    )


def parse_lsblk_partitions(blocks: list[dict[str, Any]]) -> list[Partition]:
    """
    Flatten an lsblk tree into its partitions, in lsblk order.

    Partitions can sit under disks, loop devices or RAID members, so every
    level of ``children`` is searched.
    """
    partitions: list[Partition] = []

    def walk(block: dict[str, Any], parent: str | None) -> None:
        path = block.get("path") or block.get("name", "")
        if block.get("type") == "part":
            partitions.append(build_partition_from_lsblk(block, parent))
        for child in block.get("children", []) or []:
            walk(child, path)

    for block in blocks:
        walk(block, None)

    return partitions


def parse_findmnt_json(output: str) -> dict[str, str]:
    """Parse findmnt JSON output to get a target -> source mapping."""
    result: dict[str, str] = {}
    try:
        data = json.loads(output)
        filesystems = data.get("filesystems", [])

        def process_fs(fs: dict[str, Any]) -> None:
            source = fs.get("source", "")
            target = fs.get("target", "")
            if source and target:
                result[target] = source
            for child in fs.get("children", []):
                process_fs(child)

        for fs in filesystems:
            process_fs(fs)

    except json.JSONDecodeError:
        pass

    return result


def get_psutil_mounts() -> dict[str, str]:
    """Mount table from psutil, used when findmnt is unavailable."""
    result: dict[str, str] = {}
    try:
        for part in psutil.disk_partitions(all=True):
            result[part.mountpoint] = part.device
    except OSError:
        pass
    return result
