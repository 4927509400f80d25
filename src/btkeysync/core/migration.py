"""
btkeysync migration workflow.

Runs the whole copy as one linear sequence: preflight, partition selection,
read-only mount, hive lookup, adapter and device selection, then one key
transfer per selected device. Interactive choices go through a Prompter
so the workflow can be driven by the CLI or by tests.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path

from btkeysync.bluez.store import BluezKeyStore
from btkeysync.core.config import BtKeySyncConfig
from btkeysync.core.errors import (
    BtKeySyncError,
    KeyDecodeEmptyError,
    MountFailedError,
    NoAdaptersFoundError,
    NoPairedDevicesFoundError,
    NoPartitionsFoundError,
    PreflightFailedError,
    RegistryNotFoundError,
)
from btkeysync.core.keys import canonicalize_mac, transcode_key
from btkeysync.core.logging import TransferLogger, get_logger
from btkeysync.core.models import (
    CopyMode,
    DeviceTransfer,
    MigrationReport,
    Partition,
    TransferStatus,
)
from btkeysync.core.safety import PreflightChecker, create_standard_preflight_checker
from btkeysync.platform.base import PlatformBackend
from btkeysync.registry.base import RegistryReader
from btkeysync.registry.bthport import BluetoothKeyIndex

logger = get_logger(__name__)


class Prompter(ABC):
    """Interactive choices made during a migration."""

    @abstractmethod
    def choose_partition(self, partitions: list[Partition]) -> Partition:
        """Pick the Windows partition."""

    @abstractmethod
    def choose_adapter(self, adapters: list[str]) -> str:
        """Pick one of several local adapters (registry form)."""

    @abstractmethod
    def choose_copy_mode(self) -> CopyMode:
        """Copy every paired device's key, or a single one."""

    @abstractmethod
    def choose_device(self, devices: list[str]) -> str:
        """Pick the paired device to copy in single mode."""

    def info(self, message: str) -> None:
        """Show a progress message."""

    def warn(self, message: str) -> None:
        """Show a non-fatal problem."""


class KeyMigrator:
    """Copies link keys from a Windows SYSTEM hive into BlueZ storage."""

    def __init__(
        self,
        config: BtKeySyncConfig,
        backend: PlatformBackend,
        reader: RegistryReader,
        store: BluezKeyStore,
        prompter: Prompter,
        preflight: PreflightChecker | None = None,
    ) -> None:
        self.config = config
        self.backend = backend
        self.reader = reader
        self.store = store
        self.prompter = prompter
        self.preflight = preflight or create_standard_preflight_checker()

    @property
    def dry_run(self) -> bool:
        return self.config.transfer.dry_run

    # ==================== Steps ====================

    def run_preflight(self, skip_mount: bool = False) -> None:
        """Raise PreflightFailedError if any required check fails."""
        report = self.preflight.run_checks(
            {
                "backend": self.backend,
                "config": self.config,
                "dry_run": self.dry_run,
                "skip_mount": skip_mount,
            }
        )
        for check in report.checks:
            if not check.passed and check.severity != "error":
                self.prompter.warn(f"{check.name}: {check.message}")

        if report.has_errors:
            logger.error("Preflight failed", summary=report.get_summary())
            failed = "; ".join(f"{c.name}: {c.message}" for c in report.errors)
            raise PreflightFailedError(f"Preflight checks failed. {failed}")

    def select_partition(self) -> Partition:
        partitions = self.backend.list_partitions()
        if not partitions:
            raise NoPartitionsFoundError("No disks found.")
        return self.prompter.choose_partition(partitions)

    def mount(self, partition: Partition) -> tuple[Path, bool]:
        """
        Mount the partition read-only.

        Returns the mount point and whether this call mounted it. An
        occupied mount point is used as-is.
        """
        mount_point = self.config.mount.mount_point

        if self.backend.is_mount_point_in_use(mount_point):
            self.prompter.info(f"{mount_point} is already mounted; using it.")
            logger.info("Mount point already in use", mount_point=str(mount_point))
            return mount_point, False

        self.prompter.info(f"Mounting {partition.device_path} to {mount_point}...")
        success, message = self.backend.mount_partition(
            partition.device_path,
            mount_point,
            self.config.mount.options,
        )
        if not success:
            raise MountFailedError(message)
        return mount_point, True

    def locate_hive(self, root: Path) -> Path:
        hive = root / self.config.registry.hive_path
        if not hive.is_file():
            raise RegistryNotFoundError(f"Registry file not found at {hive}.")
        return hive

    def select_adapter(self, index: BluetoothKeyIndex) -> str:
        adapters = index.adapters()
        if not adapters:
            raise NoAdaptersFoundError("No Bluetooth devices found in Windows registry.")
        if len(adapters) == 1:
            self.prompter.info(
                f"Only one Bluetooth MAC found: {adapters[0]}. Selecting automatically."
            )
            return adapters[0]
        return self.prompter.choose_adapter(adapters)

    def select_devices(self, index: BluetoothKeyIndex, adapter: str) -> tuple[CopyMode, list[str]]:
        devices = index.paired_devices(adapter)
        if not devices:
            raise NoPairedDevicesFoundError(f"No paired devices found for {adapter}.")

        mode = self.prompter.choose_copy_mode()
        if mode == CopyMode.ALL:
            return mode, devices
        return mode, [self.prompter.choose_device(devices)]

    def transfer_key(self, index: BluetoothKeyIndex, adapter: str, device: str) -> DeviceTransfer:
        """
        Copy one device's link key. Raises on any failure.
        """
        transfer = DeviceTransfer(adapter=adapter, device=device)

        with TransferLogger(adapter, device, dry_run=self.dry_run, logger=logger):
            key_hex = transcode_key(index.raw_key(adapter, device))
            if not key_hex:
                raise KeyDecodeEmptyError(
                    f"No key found for {device}. -> {index.keys_root}/{adapter}/{device}"
                )

            transfer.key_hex = key_hex
            transfer.local_mac = canonicalize_mac(adapter)
            transfer.remote_mac = canonicalize_mac(device)
            transfer.info_path = self.store.info_path(transfer.local_mac, transfer.remote_mac)

            self.prompter.info(f"Setting key for {transfer.remote_mac} in {transfer.info_path}...")
            transfer.previous_key = self.store.set_link_key(
                transfer.local_mac,
                transfer.remote_mac,
                key_hex,
                dry_run=self.dry_run,
            )

        transfer.status = TransferStatus.DRY_RUN if self.dry_run else TransferStatus.COPIED
        return transfer

    def copy_keys(
        self,
        index: BluetoothKeyIndex,
        adapter: str,
        mode: CopyMode,
        devices: list[str],
        report: MigrationReport,
    ) -> None:
        """Transfer each device's key; in ALL mode failures are recorded and skipped."""
        for device in devices:
            try:
                transfer = self.transfer_key(index, adapter, device)
            except BtKeySyncError as e:
                if mode == CopyMode.SINGLE:
                    raise
                self.prompter.warn(str(e))
                transfer = DeviceTransfer(adapter=adapter, device=device, error=str(e))
            else:
                verb = "Would set" if self.dry_run else "Key set"
                self.prompter.info(f"{verb} successfully for {transfer.remote_mac}.")
            report.transfers.append(transfer)

    def finish(self, report: MigrationReport, mounted_here: bool) -> None:
        """Restart bluetoothd and unmount, as configured."""
        if self.config.bluez.restart_service and report.succeeded and not self.dry_run:
            success, message = self.backend.restart_service(self.config.bluez.service_name)
            report.service_restarted = success
            if not success:
                self.prompter.warn(message)

        if mounted_here and self.config.mount.unmount_after and report.mount_point:
            success, message = self.backend.unmount_partition(report.mount_point)
            if not success:
                self.prompter.warn(message)

    # ==================== Entry Point ====================

    def run(self, hive_path: Path | None = None) -> MigrationReport:
        """
        Run the full migration.

        With ``hive_path`` the partition and mount steps are skipped and
        that hive file is read directly.
        """
        report = MigrationReport(dry_run=self.dry_run)
        mounted_here = False

        self.run_preflight(skip_mount=hive_path is not None)

        if hive_path is None:
            partition = self.select_partition()
            report.partition = partition.device_path
            report.mount_point, mounted_here = self.mount(partition)
            hive = self.locate_hive(report.mount_point)
        else:
            if not hive_path.is_file():
                raise RegistryNotFoundError(f"Registry file not found at {hive_path}.")
            hive = hive_path
        report.hive_path = hive

        try:
            self.prompter.info("Extracting Bluetooth MAC addresses from Windows registry...")
            index = BluetoothKeyIndex(self.reader, hive, self.config.registry.keys_root)

            adapter = self.select_adapter(index)
            report.adapter = adapter

            self.prompter.info(f"Extracting keys for device {adapter}...")
            mode, devices = self.select_devices(index, adapter)
            report.mode = mode

            self.copy_keys(index, adapter, mode, devices, report)
        finally:
            report.ended_at = datetime.now()
            self.finish(report, mounted_here)

        logger.info(
            "Migration finished",
            adapter=report.adapter,
            succeeded=len(report.succeeded),
            failed=len(report.failed),
            dry_run=self.dry_run,
        )
        return report
