"""
Pytest configuration and fixtures for btkeysync tests.
"""

import sys
import tempfile
from pathlib import Path
from typing import Generator
from unittest.mock import Mock

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from btkeysync.core.models import RegistryRecord  # noqa: E402
from btkeysync.registry.base import RegistryReader  # noqa: E402

ADAPTER = "d8b32ff7a7e2"
DEVICE_A = "001a7dda710b"
DEVICE_B = "5c5c5c010203"
KEYS_ROOT = "/ControlSet001/Services/BTHPORT/Parameters/Keys"

RAW_KEY_A = "%80%F0%99o)%CF+P8X%96%0A%91%FE%DA<"
HEX_KEY_A = "80F0996F29CF2B503858960A91FEDA3C"

REGLOOKUP_OUTPUT = f"""PATH,TYPE,VALUE,MTIME
{KEYS_ROOT},KEY,,2024-01-01 10:00:00
{KEYS_ROOT}/{ADAPTER},KEY,,2024-01-01 10:00:00
{KEYS_ROOT}/{ADAPTER}/CentralIRK,BINARY,%11%22,
{KEYS_ROOT}/{ADAPTER}/{DEVICE_A},BINARY,{RAW_KEY_A},
{KEYS_ROOT}/{ADAPTER}/{DEVICE_B},BINARY,%01%02%03%04%05%06%07%08%09%0A%0B%0C%0D%0E%0F%10,
"""

INFO_TEMPLATE = """[General]
Name=Headphones
Trusted=true

[LinkKey]
Key={key}
Type=4
PINLength=0

[DeviceID]
Source=1
"""


class FakeRegistryReader(RegistryReader):
    """In-memory registry reader answering prefix queries like reglookup -p."""

    def __init__(self, records: list[RegistryRecord]) -> None:
        self.records = records
        self.queries: list[str] = []

    def query(self, hive: Path, path: str) -> list[RegistryRecord]:
        self.queries.append(path)
        prefix = "/" + path.strip("/").lower()
        return [
            r
            for r in self.records
            if r.path.lower() == prefix or r.path.lower().startswith(prefix + "/")
        ]


def make_records(adapters: dict[str, dict[str, str]]) -> list[RegistryRecord]:
    """Build registry records for {adapter: {device: raw_value}}."""
    records = [RegistryRecord(path=KEYS_ROOT, type="KEY")]
    for adapter, devices in adapters.items():
        records.append(RegistryRecord(path=f"{KEYS_ROOT}/{adapter}", type="KEY"))
        for device, raw in devices.items():
            records.append(
                RegistryRecord(path=f"{KEYS_ROOT}/{adapter}/{device}", type="BINARY", value=raw)
            )
    return records


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def bluez_dir(temp_dir: Path) -> Path:
    """BlueZ storage with Linux-side records for DEVICE_A and DEVICE_B."""
    storage = temp_dir / "bluetooth"
    for device in (DEVICE_A, DEVICE_B):
        remote = ":".join(device.upper()[i : i + 2] for i in range(0, 12, 2))
        record_dir = storage / "D8:B3:2F:F7:A7:E2" / remote
        record_dir.mkdir(parents=True)
        (record_dir / "info").write_text(INFO_TEMPLATE.format(key="00" * 16))
    return storage


@pytest.fixture
def hive_file(temp_dir: Path) -> Path:
    """An empty stand-in for the SYSTEM hive; the reader is always faked."""
    hive = temp_dir / "windows" / "Windows" / "System32" / "config" / "SYSTEM"
    hive.parent.mkdir(parents=True)
    hive.write_bytes(b"regf")
    return hive


@pytest.fixture
def fake_reader() -> FakeRegistryReader:
    return FakeRegistryReader(
        make_records(
            {
                ADAPTER: {
                    DEVICE_A: RAW_KEY_A,
                    DEVICE_B: "%01%02%03%04%05%06%07%08%09%0A%0B%0C%0D%0E%0F%10",
                }
            }
        )
    )


@pytest.fixture
def mock_platform_backend() -> Mock:
    """Create a mock platform backend."""
    backend = Mock()
    backend.name = "mock"
    backend.requires_admin = True
    backend.is_admin.return_value = True
    backend.check_tool.return_value = True
    backend.list_partitions.return_value = []
    backend.is_mount_point_in_use.return_value = False
    backend.mount_partition.return_value = (True, "Mounted")
    backend.unmount_partition.return_value = (True, "Unmounted")
    backend.restart_service.return_value = (True, "Restarted bluetooth")
    backend.install_package.return_value = (True, "Installed reglookup")
    return backend


@pytest.fixture
def sample_config(temp_dir: Path, bluez_dir: Path) -> "BtKeySyncConfig":
    """Create a sample configuration pointing at temporary directories."""
    from btkeysync.core.config import BtKeySyncConfig

    config = BtKeySyncConfig(session_directory=temp_dir / "sessions")
    config.logging.log_directory = temp_dir / "logs"
    config.logging.file_enabled = False
    config.mount.mount_point = temp_dir / "windows"
    config.bluez.storage_dir = bluez_dir
    config.ensure_directories()
    return config


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
