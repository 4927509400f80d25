"""
btkeysync preflight checks.

Verifies privileges, the registry tool and the directories the migration
touches before any partition is mounted or any key is written.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable

from btkeysync.core.logging import get_logger

logger = get_logger(__name__)


@dataclass
class PreflightCheck:
    """Result of a single preflight check."""

    name: str
    passed: bool
    message: str
    severity: str = "info"  # info, warning, error
    details: dict[str, Any] = field(default_factory=dict)


@dataclass
class PreflightReport:
    """Complete preflight check report."""

    checks: list[PreflightCheck] = field(default_factory=list)
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def all_passed(self) -> bool:
        return all(c.passed for c in self.checks)

    @property
    def has_errors(self) -> bool:
        return any(c.severity == "error" and not c.passed for c in self.checks)

    @property
    def errors(self) -> list[PreflightCheck]:
        return [c for c in self.checks if c.severity == "error" and not c.passed]

    def get_summary(self) -> str:
        """Get human-readable summary."""
        lines = [f"Preflight Check Report ({self.timestamp.isoformat()})"]
        passed = sum(1 for c in self.checks if c.passed)
        lines.append(f"Results: {passed}/{len(self.checks)} checks passed")

        for check in self.checks:
            status = "✓" if check.passed else "✗"
            lines.append(f"[{status}] {check.name}: {check.message}")

        return "\n".join(lines)


CheckFunc = Callable[[dict[str, Any]], "PreflightCheck | bool"]


class PreflightChecker:
    """Performs preflight checks before a migration."""

    def __init__(self) -> None:
        self._checks: list[tuple[str, CheckFunc]] = []

    def add_check(self, name: str, check_func: CheckFunc) -> None:
        """Add a preflight check function."""
        self._checks.append((name, check_func))

    def run_checks(self, context: dict[str, Any]) -> PreflightReport:
        """Run all preflight checks and return report."""
        report = PreflightReport()

        for name, check_func in self._checks:
            try:
                result = check_func(context)
                if isinstance(result, PreflightCheck):
                    report.checks.append(result)
                elif isinstance(result, bool):
                    report.checks.append(
                        PreflightCheck(
                            name=name,
                            passed=result,
                            message="Passed" if result else "Failed",
                            severity="info" if result else "error",
                        )
                    )
            except Exception as e:
                logger.warning("Preflight check raised", check=name, error=str(e))
                report.checks.append(
                    PreflightCheck(
                        name=name,
                        passed=False,
                        message=f"Check failed with error: {e}",
                        severity="error",
                    )
                )

        return report


def check_privileges(context: dict[str, Any]) -> PreflightCheck:
    """Mounting and writing BlueZ storage need root."""
    backend = context["backend"]
    dry_run = context.get("dry_run", False)

    if not backend.requires_admin or backend.is_admin():
        return PreflightCheck(name="Privileges", passed=True, message="Running as root")

    return PreflightCheck(
        name="Privileges",
        passed=False,
        message="Not running as root; re-run with sudo",
        severity="warning" if dry_run else "error",
    )


def check_registry_tool(context: dict[str, Any]) -> PreflightCheck:
    """The registry tool must be installed, optionally installing it."""
    backend = context["backend"]
    registry = context["config"].registry

    if backend.check_tool(registry.tool):
        return PreflightCheck(name="Registry Tool", passed=True, message=f"{registry.tool} found")

    if registry.auto_install:
        success, message = backend.install_package(registry.install_package)
        if success and backend.check_tool(registry.tool):
            return PreflightCheck(name="Registry Tool", passed=True, message=message)
        return PreflightCheck(name="Registry Tool", passed=False, message=message, severity="error")

    return PreflightCheck(
        name="Registry Tool",
        passed=False,
        message=f"{registry.tool} not found; install the '{registry.install_package}' package",
        severity="error",
    )


def check_mount_point(context: dict[str, Any]) -> PreflightCheck:
    """Create the mount point if it does not exist yet."""
    if context.get("skip_mount", False):
        return PreflightCheck(name="Mount Point", passed=True, message="Not needed")

    mount_point = context["config"].mount.mount_point
    if mount_point.is_dir():
        return PreflightCheck(name="Mount Point", passed=True, message=f"{mount_point} exists")

    try:
        mount_point.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        return PreflightCheck(
            name="Mount Point",
            passed=False,
            message=f"Cannot create {mount_point}: {e}",
            severity="error",
        )

    logger.info("Created mount point", mount_point=str(mount_point))
    return PreflightCheck(name="Mount Point", passed=True, message=f"Created {mount_point}")


def check_bluez_storage(context: dict[str, Any]) -> PreflightCheck:
    """BlueZ storage has to exist; it is created by bluetoothd, never by us."""
    storage_dir = context["config"].bluez.storage_dir
    if storage_dir.is_dir():
        return PreflightCheck(name="BlueZ Storage", passed=True, message=f"{storage_dir} exists")

    return PreflightCheck(
        name="BlueZ Storage",
        passed=False,
        message=f"{storage_dir} not found; is bluetoothd installed and has it run?",
        severity="error",
    )


def create_standard_preflight_checker() -> PreflightChecker:
    """Create a preflight checker with the checks every migration runs."""
    checker = PreflightChecker()
    checker.add_check("Privileges", check_privileges)
    checker.add_check("Registry Tool", check_registry_tool)
    checker.add_check("Mount Point", check_mount_point)
    checker.add_check("BlueZ Storage", check_bluez_storage)
    return checker
