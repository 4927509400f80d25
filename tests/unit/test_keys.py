"""
Tests for btkeysync.core.keys module.
"""

import pytest

from btkeysync.core.errors import InvalidMacError, KeyDecodeError
from btkeysync.core.keys import (
    canonicalize_mac,
    is_colon_mac,
    is_compact_mac,
    normalize_mac,
    transcode_key,
)


class TestTranscodeKey:
    """Tests for transcode_key."""

    def test_mixed_registry_value(self) -> None:
        raw = "%80%F0%99o)%CF+P8X%96%0A%91%FE%DA<"
        assert transcode_key(raw) == "80F0996F29CF2B503858960A91FEDA3C"

    def test_percent_only(self) -> None:
        assert transcode_key("%80%F0") == "80F0"

    def test_percent_only_length(self) -> None:
        raw = "".join(f"%{i:02X}" for i in range(16))
        result = transcode_key(raw)
        assert len(result) == len(raw) // 3 * 2
        assert result == "".join(f"{i:02X}" for i in range(16))

    def test_single_raw_character(self) -> None:
        assert transcode_key("o") == "6F"
        assert transcode_key(" ") == "20"
        assert transcode_key("\x00") == "00"

    def test_escape_digits_copied_unchanged(self) -> None:
        assert transcode_key("%0a") == "0a"

    def test_empty_input(self) -> None:
        assert transcode_key("") == ""

    def test_output_length_is_even(self) -> None:
        for raw in ("a", "%41b", "xyz", "%00%01c%02"):
            assert len(transcode_key(raw)) % 2 == 0

    def test_truncated_escape(self) -> None:
        with pytest.raises(KeyDecodeError):
            transcode_key("%8")
        with pytest.raises(KeyDecodeError):
            transcode_key("ab%")

    def test_invalid_escape(self) -> None:
        with pytest.raises(KeyDecodeError, match="Invalid escape"):
            transcode_key("%ZZ")

    def test_multibyte_character(self) -> None:
        with pytest.raises(KeyDecodeError, match="not a single byte"):
            transcode_key("€")

    def test_latin1_character(self) -> None:
        assert transcode_key("\xff") == "FF"


class TestCanonicalizeMac:
    """Tests for canonicalize_mac and friends."""

    def test_examples(self) -> None:
        assert canonicalize_mac("d8b32ff7a7e2") == "D8:B3:2F:F7:A7:E2"
        assert canonicalize_mac("000000000000") == "00:00:00:00:00:00"

    def test_already_uppercase(self) -> None:
        assert canonicalize_mac("D8B32FF7A7E2") == "D8:B3:2F:F7:A7:E2"

    @pytest.mark.parametrize("mac", ["d8b32ff7a7e2", "ABCDEF012345", "aBcDeF987654"])
    def test_idempotent_after_strip(self, mac: str) -> None:
        once = canonicalize_mac(mac)
        assert canonicalize_mac(once.replace(":", "").lower()) == once

    @pytest.mark.parametrize(
        "mac", ["", "d8b32ff7a7e", "d8b32ff7a7e2f", "D8:B3:2F:F7:A7:E2", "g8b32ff7a7e2"]
    )
    def test_invalid(self, mac: str) -> None:
        with pytest.raises(InvalidMacError):
            canonicalize_mac(mac)

    def test_invalid_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            canonicalize_mac("nope")

    def test_shape_checks(self) -> None:
        assert is_compact_mac("d8b32ff7a7e2") is True
        assert is_compact_mac("CentralIRK") is False
        assert is_colon_mac("D8:B3:2F:F7:A7:E2") is True
        assert is_colon_mac("d8b32ff7a7e2") is False

    def test_normalize_mac_accepts_both_forms(self) -> None:
        assert normalize_mac("d8b32ff7a7e2") == "D8:B3:2F:F7:A7:E2"
        assert normalize_mac("d8:b3:2f:f7:a7:e2") == "D8:B3:2F:F7:A7:E2"
        assert normalize_mac("D8-B3-2F-F7-A7-E2") == "D8:B3:2F:F7:A7:E2"
