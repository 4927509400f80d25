"""
btkeysync configuration management.

Provides centralized configuration with validation using Pydantic.
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_HOME = Path.home() / ".btkeysync"


class LoggingConfig(BaseModel):
    """Configuration for structured logging."""

    model_config = ConfigDict(validate_assignment=True)

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    file_enabled: bool = True
    console_enabled: bool = False
    json_format: bool = False
    log_directory: Path = Field(default_factory=lambda: DEFAULT_HOME / "logs")

    @field_validator("log_directory", mode="before")
    @classmethod
    def expand_path(cls, v: str | Path) -> Path:
        return Path(v).expanduser().resolve()


class MountConfig(BaseModel):
    """Where and how the Windows partition is mounted."""

    model_config = ConfigDict(validate_assignment=True)

    mount_point: Path = Path("/mnt/windows")
    options: list[str] = Field(default_factory=lambda: ["ro"])
    unmount_after: bool = False

    @field_validator("mount_point", mode="before")
    @classmethod
    def expand_path(cls, v: str | Path) -> Path:
        return Path(v).expanduser()


class RegistryConfig(BaseModel):
    """Location of the Bluetooth keys inside the SYSTEM hive."""

    tool: str = "reglookup"
    hive_path: str = "Windows/System32/config/SYSTEM"
    control_set: str = "ControlSet001"
    keys_path: str = "Services/BTHPORT/Parameters/Keys"
    auto_install: bool = True
    install_package: str = "reglookup"
    timeout_seconds: int = Field(default=60, ge=1, le=3600)

    @property
    def keys_root(self) -> str:
        """Registry path of the Keys key, without a leading slash."""
        return f"{self.control_set.strip('/')}/{self.keys_path.strip('/')}"


class BluezConfig(BaseModel):
    """BlueZ storage layout and service handling."""

    model_config = ConfigDict(validate_assignment=True)

    storage_dir: Path = Path("/var/lib/bluetooth")
    info_filename: str = "info"
    restart_service: bool = False
    service_name: str = "bluetooth"

    @field_validator("storage_dir", mode="before")
    @classmethod
    def expand_path(cls, v: str | Path) -> Path:
        return Path(v).expanduser()


class TransferConfig(BaseModel):
    """Behavior of the key copy step."""

    dry_run: bool = False
    strict_batch: bool = False
    save_report: bool = True


class BtKeySyncConfig(BaseModel):
    """Main btkeysync configuration."""

    model_config = ConfigDict(validate_assignment=True)

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    mount: MountConfig = Field(default_factory=MountConfig)
    registry: RegistryConfig = Field(default_factory=RegistryConfig)
    bluez: BluezConfig = Field(default_factory=BluezConfig)
    transfer: TransferConfig = Field(default_factory=TransferConfig)
    session_directory: Path = Field(default_factory=lambda: DEFAULT_HOME / "sessions")

    @field_validator("session_directory", mode="before")
    @classmethod
    def expand_session_path(cls, v: str | Path) -> Path:
        return Path(v).expanduser().resolve()

    @classmethod
    def load(cls, config_path: Path | None = None) -> BtKeySyncConfig:
        """Load configuration from file or create default."""
        if config_path is None:
            config_path = DEFAULT_HOME / "config.json"

        if config_path.exists():
            with open(config_path) as f:
                data = json.load(f)
            return cls.model_validate(data)

        return cls()

    def save(self, config_path: Path | None = None) -> None:
        """Save configuration to file."""
        if config_path is None:
            config_path = DEFAULT_HOME / "config.json"

        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w") as f:
            json.dump(self.model_dump(mode="json"), f, indent=2, default=str)

    def ensure_directories(self) -> None:
        """Create the log and session directories."""
        if self.logging.file_enabled:
            self.logging.log_directory.mkdir(parents=True, exist_ok=True)
        if self.transfer.save_report:
            self.session_directory.mkdir(parents=True, exist_ok=True)

    def get_report_file(self) -> Path:
        """Get path for a new migration report file."""
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        return self.session_directory / f"migration_{timestamp}.json"


def load_config(config_path: Path | None = None) -> BtKeySyncConfig:
    """Load or create configuration."""
    config = BtKeySyncConfig.load(config_path)
    config.ensure_directories()
    return config
