"""
Console prompter for the migrate command.

Each choice can be preset from a CLI option, in which case it is
validated against what was found instead of being asked.
"""

from __future__ import annotations

import click
import humanize
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from btkeysync.core.errors import (
    InvalidMacError,
    NoAdaptersFoundError,
    NoPairedDevicesFoundError,
    NoPartitionsFoundError,
)
from btkeysync.core.keys import canonicalize_mac, normalize_mac
from btkeysync.core.migration import Prompter
from btkeysync.core.models import CopyMode, Partition


def _match_mac(preset: str, candidates: list[str]) -> str | None:
    """Find the registry-form candidate equal to a MAC given in either form."""
    try:
        wanted = normalize_mac(preset)
    except InvalidMacError:
        return None
    for candidate in candidates:
        if canonicalize_mac(candidate) == wanted:
            return candidate
    return None


class ConsolePrompter(Prompter):
    """Prompts on the terminal with rich tables and click prompts."""

    def __init__(
        self,
        console: Console,
        partition: str | None = None,
        adapter: str | None = None,
        mode: CopyMode | None = None,
        device: str | None = None,
    ) -> None:
        self.console = console
        self.preset_partition = partition
        self.preset_adapter = adapter
        self.preset_mode = mode
        self.preset_device = device

    def info(self, message: str) -> None:
        self.console.print(escape(message))

    def warn(self, message: str) -> None:
        self.console.print(f"[yellow]{escape(message)}[/yellow]")

    def _pick_index(self, prompt: str, count: int, default: int = 0) -> int:
        return click.prompt(prompt, type=click.IntRange(0, count - 1), default=default)

    def choose_partition(self, partitions: list[Partition]) -> Partition:
        if self.preset_partition:
            for partition in partitions:
                if partition.device_path == self.preset_partition:
                    return partition
            raise NoPartitionsFoundError(f"Partition not found: {self.preset_partition}")

        table = Table(title="Available disks/partitions")
        table.add_column("#", style="dim")
        table.add_column("Device", style="cyan")
        table.add_column("Size", style="green")
        table.add_column("FS", style="yellow")
        table.add_column("Label", style="white")
        table.add_column("Mount", style="blue")

        for i, part in enumerate(partitions):
            table.add_row(
                str(i),
                part.device_path,
                humanize.naturalsize(part.size_bytes, binary=True),
                part.fstype or "",
                part.label or "",
                part.mountpoint or "",
            )
        self.console.print(table)

        # Windows is almost always the first NTFS partition
        default = next((i for i, p in enumerate(partitions) if p.is_ntfs), 0)
        index = self._pick_index(
            "Select the number of your Windows partition", len(partitions), default
        )
        return partitions[index]

    def choose_adapter(self, adapters: list[str]) -> str:
        if self.preset_adapter:
            match = _match_mac(self.preset_adapter, adapters)
            if match is None:
                raise NoAdaptersFoundError(
                    f"Adapter {self.preset_adapter} not found in Windows registry."
                )
            return match

        self.console.print("Found the following Bluetooth device MACs in Windows registry:")
        for i, adapter in enumerate(adapters):
            self.console.print(f"  {i}) {adapter}  [dim]({canonicalize_mac(adapter)})[/dim]")
        index = self._pick_index("Select the number of the Bluetooth MAC to use", len(adapters))
        return adapters[index]

    def choose_copy_mode(self) -> CopyMode:
        if self.preset_mode is not None:
            return self.preset_mode
        if self.preset_device:
            return CopyMode.SINGLE

        choice = click.prompt(
            "Do you want to copy all keys for this device, or just one?",
            type=click.Choice([m.value for m in CopyMode]),
            default=CopyMode.ALL.value,
        )
        return CopyMode(choice)

    def choose_device(self, devices: list[str]) -> str:
        if self.preset_device:
            match = _match_mac(self.preset_device, devices)
            if match is None:
                raise NoPairedDevicesFoundError(
                    f"Device {self.preset_device} is not paired with this adapter in Windows."
                )
            return match

        self.console.print("Found paired devices (remote MACs):")
        for i, device in enumerate(devices):
            self.console.print(f"  {i}) {canonicalize_mac(device)}")
        index = self._pick_index("Select the number of the device to copy", len(devices))
        return devices[index]
