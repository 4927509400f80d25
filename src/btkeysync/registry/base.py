"""
Registry reader interface.

The binary hive format is never parsed here; an external tool does that
and a RegistryReader turns its output into RegistryRecord rows.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

from btkeysync.core.models import RegistryRecord


def _registry_path(path: str) -> str:
    return "/" + path.strip("/")


class RegistryReader(ABC):
    """Reads keys and values from an offline registry hive."""

    @abstractmethod
    def query(self, hive: Path, path: str) -> list[RegistryRecord]:
        """Return every key and value at or below ``path``."""

    def list_children(self, hive: Path, key_path: str) -> list[str]:
        """
        Names of the direct subkeys and values of ``key_path``.

        Names are returned once each, in the order the reader reports them.
        """
        prefix = _registry_path(key_path).lower() + "/"
        children: list[str] = []
        seen: set[str] = set()

        for record in self.query(hive, key_path):
            if not record.path.lower().startswith(prefix):
                continue
            child = record.path[len(prefix) :].split("/", 1)[0]
            if child and child not in seen:
                seen.add(child)
                children.append(child)

        return children

    def read_value(self, hive: Path, value_path: str) -> str:
        """Raw data of the value at ``value_path``, or "" if there is none."""
        target = _registry_path(value_path).lower()
        for record in self.query(hive, value_path):
            if record.path.lower() == target and not record.is_key:
                return record.value
        return ""
