"""
btkeysync Platform Abstraction Layer.

Only Linux is supported: the keys are copied into BlueZ storage, which
exists nowhere else.
"""

from __future__ import annotations

import platform

from btkeysync.platform.base import CommandResult, PlatformBackend


def get_platform_backend() -> PlatformBackend:
    """Get the appropriate platform backend for the current OS."""
    system = platform.system().lower()

    if system == "linux":
        from btkeysync.platform.linux import LinuxBackend

        return LinuxBackend()
    raise RuntimeError(f"Unsupported platform: {system}")


__all__ = [
    "CommandResult",
    "PlatformBackend",
    "get_platform_backend",
]
