"""
BlueZ link key storage.

bluetoothd keeps one ``info`` file per pairing at
``<storage_dir>/<adapter MAC>/<device MAC>/info``. Classic link keys live
in its ``[LinkKey]`` group::

    [LinkKey]
    Key=80F0996F29CF2B503858960A91FEDA3C
    Type=4
    PINLength=0

Only the ``Key=`` value is ever rewritten; files are never created here, so
the device has to be paired on Linux before its key can be replaced.
"""

from __future__ import annotations

from pathlib import Path

from btkeysync.core.errors import (
    KeyDecodeEmptyError,
    LinkKeyNotFoundError,
    RecordFileNotFoundError,
    WriteFailedError,
)
from btkeysync.core.logging import get_logger

logger = get_logger(__name__)

LINK_KEY_SECTION = b"[LinkKey]"
KEY_FIELD = b"Key="


def patch_link_key(data: bytes, key_hex: str) -> tuple[bytes, int]:
    """
    Replace every ``Key=`` value inside ``[LinkKey]`` sections.

    A section runs from its header line to the next line starting with
    ``[``. The file is handled as bytes, so every other line keeps its
    exact bytes and line ending whatever encoding the device name uses.
    Returns the new data and the number of lines replaced.
    """
    lines = data.splitlines(keepends=True)
    new_key = KEY_FIELD + key_hex.encode("ascii")
    in_link_key = False
    replaced = 0

    for index, line in enumerate(lines):
        if line.startswith(b"["):
            in_link_key = line.startswith(LINK_KEY_SECTION)
            continue
        if in_link_key and line.startswith(KEY_FIELD):
            body = line.rstrip(b"\r\n")
            lines[index] = new_key + line[len(body) :]
            replaced += 1

    return b"".join(lines), replaced


def find_link_key(data: bytes) -> str | None:
    """First ``Key=`` value inside a ``[LinkKey]`` section, if any."""
    in_link_key = False
    for line in data.splitlines():
        if line.startswith(b"["):
            in_link_key = line.startswith(LINK_KEY_SECTION)
        elif in_link_key and line.startswith(KEY_FIELD):
            return line[len(KEY_FIELD) :].strip().decode("ascii", errors="replace")
    return None


class BluezKeyStore:
    """Reads and patches link keys in a BlueZ storage directory."""

    def __init__(self, storage_dir: Path, info_filename: str = "info") -> None:
        self.storage_dir = Path(storage_dir)
        self.info_filename = info_filename

    def info_path(self, local_mac: str, remote_mac: str) -> Path:
        """Path of the info file for a (local adapter, remote device) pair."""
        return self.storage_dir / local_mac / remote_mac / self.info_filename

    def has_record(self, local_mac: str, remote_mac: str) -> bool:
        """True if bluetoothd already has an info file for the pair."""
        return self.info_path(local_mac, remote_mac).is_file()

    def _read(self, path: Path) -> bytes:
        if not path.is_file():
            raise RecordFileNotFoundError(
                f"BlueZ info file not found: {path}. "
                "Pair the device on Linux first so this file exists."
            )
        try:
            with open(path, "rb") as f:
                return f.read()
        except OSError as e:
            raise WriteFailedError(f"Cannot read {path}: {e}") from e

    def read_link_key(self, local_mac: str, remote_mac: str) -> str:
        """Current ``[LinkKey]`` ``Key=`` value of the pair's info file."""
        path = self.info_path(local_mac, remote_mac)
        key = find_link_key(self._read(path))
        if key is None:
            raise LinkKeyNotFoundError(f"No [LinkKey] Key= entry in {path}")
        return key

    def set_link_key(
        self,
        local_mac: str,
        remote_mac: str,
        key_hex: str,
        dry_run: bool = False,
    ) -> str | None:
        """
        Replace the link key of the pair's info file.

        Returns the key that was there before. The file is rewritten in
        place, so its mode and owner are unchanged.
        """
        if not key_hex:
            raise KeyDecodeEmptyError(f"Refusing to write an empty key for {remote_mac}")

        path = self.info_path(local_mac, remote_mac)
        original = self._read(path)
        previous = find_link_key(original)
        patched, replaced = patch_link_key(original, key_hex)

        if replaced == 0:
            raise LinkKeyNotFoundError(f"No [LinkKey] Key= entry in {path}")

        if dry_run:
            logger.info("Dry run: would set link key", path=str(path), remote=remote_mac)
            return previous

        if patched == original:
            logger.info("Link key already up to date", path=str(path), remote=remote_mac)
            return previous

        try:
            with open(path, "r+b") as f:
                f.write(patched)
                f.truncate()
        except OSError as e:
            raise WriteFailedError(f"Failed to write {path}: {e}") from e

        logger.info("Link key set", path=str(path), remote=remote_mac)
        return previous
