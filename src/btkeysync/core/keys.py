"""
Link key and MAC address conversions.

Windows stores a paired device's link key as a REG_BINARY value under
``Services\\BTHPORT\\Parameters\\Keys\\<adapter>\\<device>``. reglookup
prints printable bytes as-is and escapes the rest as ``%XX``. BlueZ wants the
same 16 bytes as a plain uppercase hex string.
"""

from __future__ import annotations

import re

from btkeysync.core.errors import InvalidMacError, KeyDecodeError

_COMPACT_MAC_RE = re.compile(r"[0-9A-Fa-f]{12}")
_COLON_MAC_RE = re.compile(r"[0-9A-Fa-f]{2}(:[0-9A-Fa-f]{2}){5}")
_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


def transcode_key(raw: str) -> str:
    """
    Convert a reglookup value string to an uppercase hex key.

    ``%XX`` escapes are copied through as their two hex digits; any other
    character contributes its byte value as two hex digits.

    Example:
        >>> transcode_key("%80%F0%99o)%CF+P8X%96%0A%91%FE%DA<")
        '80F0996F29CF2B503858960A91FEDA3C'
    """
    output: list[str] = []
    index = 0
    length = len(raw)

    while index < length:
        char = raw[index]
        if char == "%":
            escape = raw[index + 1 : index + 3]
            if len(escape) != 2:
                raise KeyDecodeError(f"Truncated escape at offset {index}: {raw[index:]!r}")
            if not set(escape) <= _HEX_DIGITS:
                raise KeyDecodeError(f"Invalid escape at offset {index}: %{escape}")
            output.append(escape)
            index += 3
        else:
            code = ord(char)
            if code > 0xFF:
                raise KeyDecodeError(f"Character {char!r} at offset {index} is not a single byte")
            output.append(f"{code:02X}")
            index += 1

    return "".join(output)


def is_compact_mac(value: str) -> bool:
    """True if ``value`` is exactly 12 hex digits with no separators."""
    return _COMPACT_MAC_RE.fullmatch(value) is not None


def is_colon_mac(value: str) -> bool:
    """True if ``value`` looks like ``AA:BB:CC:DD:EE:FF``."""
    return _COLON_MAC_RE.fullmatch(value) is not None


def canonicalize_mac(compact: str) -> str:
    """Convert ``d8b32ff7a7e2`` to ``D8:B3:2F:F7:A7:E2``."""
    if not is_compact_mac(compact):
        raise InvalidMacError(f"Invalid MAC address: {compact!r}")

    upper = compact.upper()
    return ":".join(upper[i : i + 2] for i in range(0, 12, 2))


def normalize_mac(value: str) -> str:
    """Accept either MAC form and return the colon form."""
    stripped = value.strip()
    if is_colon_mac(stripped):
        return stripped.upper()
    cleaned = stripped.replace("-", "")
    return canonicalize_mac(cleaned)
