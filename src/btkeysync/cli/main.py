"""
btkeysync CLI Main Entry Point.

Provides the interactive migration command plus small helpers for
inspecting partitions and hives and converting keys by hand.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import NoReturn

import click
import humanize
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from btkeysync import __version__
from btkeysync.bluez.store import BluezKeyStore
from btkeysync.cli.prompts import ConsolePrompter
from btkeysync.core.config import BtKeySyncConfig, load_config
from btkeysync.core.errors import BtKeySyncError, KeyDecodeEmptyError
from btkeysync.core.keys import canonicalize_mac, transcode_key
from btkeysync.core.logging import setup_logging
from btkeysync.core.migration import KeyMigrator
from btkeysync.core.models import CopyMode, MigrationReport
from btkeysync.platform import get_platform_backend
from btkeysync.registry.bthport import BluetoothKeyIndex
from btkeysync.registry.reglookup import ReglookupReader

console = Console()


def fail(error: BtKeySyncError) -> NoReturn:
    """Print a fatal error and exit with its code."""
    console.print(f"[red]{escape(str(error))}[/red]")
    sys.exit(error.exit_code)


def get_config(ctx: click.Context) -> BtKeySyncConfig:
    return ctx.obj["config"]


@click.group()
@click.version_option(version=__version__, prog_name="btkeysync")
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    help="Path to configuration file",
)
@click.option("--verbose", "-v", is_flag=True, help="Log debug output to stderr")
@click.pass_context
def cli(ctx: click.Context, config: Path | None, verbose: bool) -> None:
    """
    btkeysync - Copy Bluetooth pairings from Windows to Linux.

    Pair each device on Linux first, then on Windows, then run
    `sudo btkeysync migrate` from Linux.
    """
    ctx.ensure_object(dict)

    loaded = load_config(config)
    if verbose:
        loaded.logging.console_enabled = True
        loaded.logging.level = "DEBUG"

    setup_logging(loaded.logging)
    ctx.obj["config"] = loaded


@cli.command("migrate")
@click.option("--partition", "-p", help="Windows partition to mount, e.g. /dev/nvme0n1p3")
@click.option("--hive", type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help="Read this SYSTEM hive directly instead of mounting a partition")
@click.option("--adapter", "-a", help="Local adapter MAC (either form)")
@click.option("--all", "mode", flag_value=CopyMode.ALL.value, help="Copy every paired device")
@click.option("--single", "mode", flag_value=CopyMode.SINGLE.value, help="Copy one device")
@click.option("--device", "-d", help="Remote device MAC to copy (implies --single)")
@click.option("--mount-point", type=click.Path(path_type=Path), help="Where to mount Windows")
@click.option("--bluetooth-dir", type=click.Path(path_type=Path), help="BlueZ storage directory")
@click.option("--dry-run", is_flag=True, help="Show what would be written without writing")
@click.option("--strict", is_flag=True, help="Exit 1 if any device fails in --all mode")
@click.option("--restart-bluetooth", is_flag=True, help="Restart bluetoothd afterwards")
@click.option("--unmount", is_flag=True, help="Unmount the partition afterwards")
@click.option("--install-tool/--no-install-tool", default=None,
              help="Install reglookup with apt-get if it is missing")
@click.pass_context
def migrate(
    ctx: click.Context,
    partition: str | None,
    hive: Path | None,
    adapter: str | None,
    mode: str | None,
    device: str | None,
    mount_point: Path | None,
    bluetooth_dir: Path | None,
    dry_run: bool,
    strict: bool,
    restart_bluetooth: bool,
    unmount: bool,
    install_tool: bool | None,
) -> None:
    """Copy link keys from a Windows partition into BlueZ storage."""
    if mode == CopyMode.ALL.value and device:
        raise click.UsageError("--device copies a single key and cannot be combined with --all.")

    config = get_config(ctx)
    if mount_point:
        config.mount.mount_point = mount_point
    if bluetooth_dir:
        config.bluez.storage_dir = bluetooth_dir
    if dry_run:
        config.transfer.dry_run = True
    if strict:
        config.transfer.strict_batch = True
    if restart_bluetooth:
        config.bluez.restart_service = True
    if unmount:
        config.mount.unmount_after = True
    if install_tool is not None:
        config.registry.auto_install = install_tool

    backend = get_platform_backend()
    migrator = KeyMigrator(
        config=config,
        backend=backend,
        reader=ReglookupReader(backend, config.registry.tool, config.registry.timeout_seconds),
        store=BluezKeyStore(config.bluez.storage_dir, config.bluez.info_filename),
        prompter=ConsolePrompter(
            console,
            partition=partition,
            adapter=adapter,
            mode=CopyMode(mode) if mode else None,
            device=device,
        ),
    )

    try:
        report = migrator.run(hive_path=hive)
    except BtKeySyncError as e:
        fail(e)

    print_report(report)

    if config.transfer.save_report and report.transfers:
        report_file = config.get_report_file()
        report.save(report_file)
        console.print(f"[dim]Report saved to {report_file}[/dim]")

    if report.failed and config.transfer.strict_batch:
        console.print(f"[red]{len(report.failed)} key(s) could not be copied.[/red]")
        sys.exit(1)

    if report.dry_run:
        console.print("[yellow]Dry run: no files were changed.[/yellow]")
    elif report.service_restarted:
        console.print("[green]Done. Bluetooth service restarted.[/green]")
    elif report.mode == CopyMode.ALL:
        console.print(
            "[green]Done copying all keys. "
            "Please reboot your system for changes to take effect.[/green]"
        )
    else:
        console.print("[green]Done. Please reboot your system for changes to take effect.[/green]")


def print_report(report: MigrationReport) -> None:
    table = Table(title="Key Transfers")
    table.add_column("Device", style="cyan")
    table.add_column("Status")
    table.add_column("Detail", style="white")

    for transfer in report.transfers:
        color = "green" if transfer.succeeded else "red"
        table.add_row(
            transfer.remote_mac or transfer.device,
            f"[{color}]{transfer.status.name}[/{color}]",
            escape(transfer.error or str(transfer.info_path or "")),
        )

    console.print(table)


@cli.command("partitions")
@click.option("--json", "json_output", is_flag=True, help="Output in JSON format")
def list_partitions(json_output: bool) -> None:
    """List partitions that could hold Windows."""
    backend = get_platform_backend()

    with console.status("Scanning disks..."):
        partitions = backend.list_partitions()

    if json_output:
        click.echo(json.dumps([p.to_dict() for p in partitions], indent=2))
        return

    if not partitions:
        console.print("[red]No disks found.[/red]")
        sys.exit(1)

    table = Table(title="Partitions")
    table.add_column("Device", style="cyan")
    table.add_column("Size", style="green")
    table.add_column("FS", style="yellow")
    table.add_column("Label", style="white")
    table.add_column("Mount", style="blue")

    for part in partitions:
        table.add_row(
            part.device_path,
            humanize.naturalsize(part.size_bytes, binary=True),
            part.fstype or "",
            part.label or "",
            part.mountpoint or "",
        )

    console.print(table)


@cli.command("devices")
@click.option("--hive", required=True, type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help="Path to a Windows SYSTEM hive")
@click.option("--json", "json_output", is_flag=True, help="Output in JSON format")
@click.pass_context
def list_devices(ctx: click.Context, hive: Path, json_output: bool) -> None:
    """List Windows pairings and whether Linux has a record for each."""
    config = get_config(ctx)
    backend = get_platform_backend()
    index = BluetoothKeyIndex(
        ReglookupReader(backend, config.registry.tool, config.registry.timeout_seconds),
        hive,
        config.registry.keys_root,
    )
    store = BluezKeyStore(config.bluez.storage_dir, config.bluez.info_filename)

    try:
        pairs = {
            canonicalize_mac(adapter): [canonicalize_mac(d) for d in index.paired_devices(adapter)]
            for adapter in index.adapters()
        }
    except BtKeySyncError as e:
        fail(e)

    if json_output:
        click.echo(
            json.dumps(
                {
                    adapter: [
                        {"mac": device, "linux_record": store.has_record(adapter, device)}
                        for device in devices
                    ]
                    for adapter, devices in pairs.items()
                },
                indent=2,
            )
        )
        return

    if not pairs:
        console.print("[red]No Bluetooth devices found in Windows registry.[/red]")
        sys.exit(1)

    table = Table(title="Windows Bluetooth Pairings")
    table.add_column("Adapter", style="cyan")
    table.add_column("Device", style="green")
    table.add_column("Linux record")

    for adapter, devices in pairs.items():
        if not devices:
            table.add_row(adapter, "", "")
        for device in devices:
            paired = store.has_record(adapter, device)
            table.add_row(adapter, device, "[green]yes[/green]" if paired else "[red]no[/red]")

    console.print(table)


@cli.command("convert-key")
@click.argument("raw")
def convert_key(raw: str) -> None:
    """Convert a reglookup key value to the hex form BlueZ stores."""
    try:
        key_hex = transcode_key(raw)
        if not key_hex:
            raise KeyDecodeEmptyError("No key found: the value is empty.")
    except BtKeySyncError as e:
        fail(e)
    click.echo(key_hex)


@cli.command("format-mac")
@click.argument("mac")
def format_mac(mac: str) -> None:
    """Convert a registry MAC (d8b32ff7a7e2) to BlueZ form (D8:B3:2F:F7:A7:E2)."""
    try:
        click.echo(canonicalize_mac(mac))
    except BtKeySyncError as e:
        fail(e)


def main() -> None:
    """Main entry point."""
    try:
        cli(obj={})
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled[/yellow]")
        sys.exit(130)


if __name__ == "__main__":
    main()
