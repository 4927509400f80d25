"""
btkeysync Platform Backend Base.

Defines the abstract interface for the OS operations the migration needs:
partition inventory, mounting, tool discovery and service control.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from btkeysync.core.models import Partition


class CommandResult:
    """Result of a command execution."""

    def __init__(
        self,
        returncode: int,
        stdout: str,
        stderr: str,
        command: str | list[str],
        duration_seconds: float = 0.0,
    ) -> None:
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        self.command = command
        self.duration_seconds = duration_seconds

    @property
    def success(self) -> bool:
        return self.returncode == 0

    def __repr__(self) -> str:
        cmd = self.command if isinstance(self.command, str) else " ".join(self.command)
        return f"CommandResult(rc={self.returncode}, cmd='{cmd[:50]}...')"


class PlatformBackend(ABC):
    """Abstract base class for platform-specific operations."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Platform name (e.g., 'linux')."""

    @property
    @abstractmethod
    def requires_admin(self) -> bool:
        """Whether root privileges are required to mount and write BlueZ storage."""

    @abstractmethod
    def is_admin(self) -> bool:
        """Check if running with admin privileges."""

    @abstractmethod
    def run_command(
        self,
        command: list[str],
        timeout: int = 300,
        check: bool = True,
        capture_output: bool = True,
    ) -> CommandResult:
        """Run a system command."""

    @abstractmethod
    def check_tool(self, tool: str) -> bool:
        """Check if an executable is on PATH."""

    # ==================== Inventory Operations ====================

    @abstractmethod
    def list_partitions(self) -> list[Partition]:
        """List every partition on every block device."""

    # ==================== Mount Operations ====================

    @abstractmethod
    def mount_partition(
        self,
        partition_path: str,
        mount_point: Path,
        options: list[str] | None = None,
    ) -> tuple[bool, str]:
        """
        Mount a partition.
        Returns (success, message/error).
        """

    @abstractmethod
    def unmount_partition(self, mount_point: Path) -> tuple[bool, str]:
        """
        Unmount whatever is mounted at mount_point.
        Returns (success, message/error).
        """

    @abstractmethod
    def is_mount_point_in_use(self, mount_point: Path) -> bool:
        """Check if something is already mounted at mount_point."""

    # ==================== System Operations ====================

    @abstractmethod
    def install_package(self, package: str) -> tuple[bool, str]:
        """
        Install a package with the system package manager.
        Returns (success, message/error).
        """

    @abstractmethod
    def restart_service(self, service: str) -> tuple[bool, str]:
        """
        Restart a system service.
        Returns (success, message/error).
        """
