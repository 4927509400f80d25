"""
Linux Platform Backend Implementation.

Implements partition inventory, mounting and service control using
standard Linux tools.
"""

from __future__ import annotations

import os
import shutil
import stat
import subprocess
import time
from pathlib import Path

from btkeysync.core.logging import get_logger
from btkeysync.core.models import Partition
from btkeysync.platform.base import CommandResult, PlatformBackend
from btkeysync.platform.linux.parsers import (
    get_psutil_mounts,
    parse_findmnt_json,
    parse_lsblk_json,
    parse_lsblk_partitions,
)

logger = get_logger(__name__)


class LinuxBackend(PlatformBackend):
    """Linux implementation of the platform operations."""

    # Tool paths (can be overridden for testing)
    LSBLK = "lsblk"
    FINDMNT = "findmnt"
    MOUNT = "mount"
    UMOUNT = "umount"
    APT_GET = "apt-get"
    SYSTEMCTL = "systemctl"

    @property
    def name(self) -> str:
        return "linux"

    @property
    def requires_admin(self) -> bool:
        return True

    def is_admin(self) -> bool:
        return os.geteuid() == 0

    def check_tool(self, tool: str) -> bool:
        """Check if a tool is available."""
        return shutil.which(tool) is not None

    def run_command(
        self,
        command: list[str],
        timeout: int = 300,
        check: bool = True,
        capture_output: bool = True,
    ) -> CommandResult:
        """Run a system command."""
        logger.debug("Running command", command=command)
        start_time = time.time()

        try:
            result = subprocess.run(
                command,
                capture_output=capture_output,
                text=True,
                timeout=timeout,
            )
            duration = time.time() - start_time

            cmd_result = CommandResult(
                returncode=result.returncode,
                stdout=result.stdout if capture_output else "",
                stderr=result.stderr if capture_output else "",
                command=command,
                duration_seconds=duration,
            )

            if check and result.returncode != 0:
                logger.warning(
                    "Command failed",
                    command=command,
                    returncode=result.returncode,
                    stderr=result.stderr[:500] if result.stderr else "",
                )

            return cmd_result

        except subprocess.TimeoutExpired:
            return CommandResult(
                returncode=-1,
                stdout="",
                stderr=f"Command timed out after {timeout}s",
                command=command,
                duration_seconds=timeout,
            )
        except OSError as e:
            return CommandResult(
                returncode=-1,
                stdout="",
                stderr=str(e),
                command=command,
                duration_seconds=time.time() - start_time,
            )

    # ==================== Inventory Operations ====================

    def list_partitions(self) -> list[Partition]:
        """List partitions using lsblk."""
        result = self.run_command(
            [
                self.LSBLK,
                "-J",  # JSON output
                "-b",  # Size in bytes
                "-o",
                "NAME,PATH,SIZE,TYPE,FSTYPE,LABEL,MOUNTPOINT",
            ],
            check=False,
        )

        if not result.success:
            logger.warning("lsblk failed", stderr=result.stderr)
            return []

        partitions = parse_lsblk_partitions(parse_lsblk_json(result.stdout))
        logger.info("Listed partitions", count=len(partitions))
        return partitions

    # ==================== Mount Operations ====================

    def _get_mounts(self) -> dict[str, str]:
        """Get current mounts as target -> source."""
        result = self.run_command([self.FINDMNT, "-J"], check=False)
        if result.success:
            return parse_findmnt_json(result.stdout)
        return get_psutil_mounts()

    def is_mount_point_in_use(self, mount_point: Path) -> bool:
        """Check if something is already mounted at mount_point."""
        target = str(Path(mount_point)).rstrip("/") or "/"
        return target in self._get_mounts()

    def validate_device_path(self, path: str) -> tuple[bool, str]:
        """Validate a device path."""
        if not path.startswith("/dev/"):
            return False, "Device path must start with /dev/"

        if not os.path.exists(path):
            return False, f"Device does not exist: {path}"

        try:
            mode = os.stat(path).st_mode
            if not stat.S_ISBLK(mode):
                return False, f"Not a block device: {path}"
        except OSError as e:
            return False, f"Cannot stat device: {e}"

        return True, "Valid device path"

    def mount_partition(
        self,
        partition_path: str,
        mount_point: Path,
        options: list[str] | None = None,
    ) -> tuple[bool, str]:
        """Mount a partition."""
        valid, message = self.validate_device_path(partition_path)
        if not valid:
            return False, message

        # Create mount point if needed
        Path(mount_point).mkdir(parents=True, exist_ok=True)

        cmd = [self.MOUNT]
        if options:
            cmd.extend(["-o", ",".join(options)])
        cmd.extend([partition_path, str(mount_point)])

        result = self.run_command(cmd)
        if result.success:
            logger.info("Mounted partition", device=partition_path, mount_point=str(mount_point))
            return True, f"Mounted {partition_path} at {mount_point}"
        return False, f"Mount failed: {result.stderr.strip()}"

    def unmount_partition(self, mount_point: Path) -> tuple[bool, str]:
        """Unmount whatever is mounted at mount_point."""
        result = self.run_command([self.UMOUNT, str(mount_point)])
        if result.success:
            logger.info("Unmounted partition", mount_point=str(mount_point))
            return True, f"Unmounted {mount_point}"
        return False, f"Unmount failed: {result.stderr.strip()}"

    # ==================== System Operations ====================

    def install_package(self, package: str) -> tuple[bool, str]:
        """Install a package with apt-get."""
        if not self.check_tool(self.APT_GET):
            return False, "apt-get not found; install the package manually"

        update = self.run_command([self.APT_GET, "update"], timeout=600)
        if not update.success:
            return False, f"apt-get update failed: {update.stderr.strip()}"

        result = self.run_command([self.APT_GET, "install", "-y", package], timeout=600)
        if result.success:
            logger.info("Installed package", package=package)
            return True, f"Installed {package}"
        return False, f"Failed to install {package}: {result.stderr.strip()}"

    def restart_service(self, service: str) -> tuple[bool, str]:
        """Restart a systemd service."""
        if not self.check_tool(self.SYSTEMCTL):
            return False, "systemctl not found"

        result = self.run_command([self.SYSTEMCTL, "restart", service], timeout=60)
        if result.success:
            logger.info("Restarted service", service=service)
            return True, f"Restarted {service}"
        return False, f"Failed to restart {service}: {result.stderr.strip()}"
