"""
reglookup-backed registry reader.

reglookup prints one CSV row per key or value::

    PATH,TYPE,VALUE,MTIME
    /ControlSet001/Services/BTHPORT/Parameters/Keys/d8b32ff7a7e2,KEY,,2023-01-01 10:00:00
    /ControlSet001/Services/BTHPORT/Parameters/Keys/d8b32ff7a7e2/001a7dda710b,BINARY,%80%F0o...,

Commas and non-printable bytes inside values are percent-escaped, so
splitting on "," is safe.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from btkeysync.core.errors import RegistryReadError
from btkeysync.core.logging import get_logger
from btkeysync.core.models import RegistryRecord
from btkeysync.registry.base import RegistryReader

if TYPE_CHECKING:
    from btkeysync.platform.base import PlatformBackend

logger = get_logger(__name__)

HEADER_PREFIX = "PATH,TYPE,VALUE"


def parse_reglookup_output(output: str) -> list[RegistryRecord]:
    """Parse reglookup CSV output into records, skipping the header row."""
    records: list[RegistryRecord] = []

    for line in output.splitlines():
        if not line.strip() or line.startswith(HEADER_PREFIX):
            continue

        fields = line.split(",")
        records.append(
            RegistryRecord(
                path=fields[0],
                type=fields[1] if len(fields) > 1 else "",
                value=fields[2] if len(fields) > 2 else "",
                mtime=fields[3] if len(fields) > 3 else "",
            )
        )

    return records


class ReglookupReader(RegistryReader):
    """Runs reglookup through the platform backend."""

    def __init__(
        self,
        backend: PlatformBackend,
        tool: str = "reglookup",
        timeout: int = 60,
    ) -> None:
        self.backend = backend
        self.tool = tool
        self.timeout = timeout

    def query(self, hive: Path, path: str) -> list[RegistryRecord]:
        """Run ``reglookup -p <path> <hive>``."""
        result = self.backend.run_command(
            [self.tool, "-p", path.strip("/"), str(hive)],
            timeout=self.timeout,
            check=False,
        )

        if not result.success:
            raise RegistryReadError(
                f"{self.tool} failed for {path}: {result.stderr.strip() or f'exit code {result.returncode}'}"
            )

        records = parse_reglookup_output(result.stdout)
        logger.debug("Registry query", path=path, records=len(records))
        return records
