"""
Tests for btkeysync.registry modules.
"""

from pathlib import Path
from unittest.mock import Mock

import pytest

from btkeysync.core.errors import RegistryReadError
from btkeysync.core.models import RegistryRecord
from btkeysync.platform.base import CommandResult
from btkeysync.registry.bthport import BluetoothKeyIndex
from btkeysync.registry.reglookup import ReglookupReader, parse_reglookup_output

from conftest import (
    ADAPTER,
    DEVICE_A,
    DEVICE_B,
    KEYS_ROOT,
    RAW_KEY_A,
    REGLOOKUP_OUTPUT,
    FakeRegistryReader,
    make_records,
)

HIVE = Path("/mnt/windows/Windows/System32/config/SYSTEM")
ROOT = KEYS_ROOT.lstrip("/")


class TestParseReglookupOutput:
    """Tests for parse_reglookup_output."""

    def test_skips_header(self) -> None:
        records = parse_reglookup_output(REGLOOKUP_OUTPUT)
        assert len(records) == 5
        assert records[0].path == KEYS_ROOT
        assert records[0].is_key is True

    def test_value_fields(self) -> None:
        records = parse_reglookup_output(REGLOOKUP_OUTPUT)
        value = records[3]
        assert value.path == f"{KEYS_ROOT}/{ADAPTER}/{DEVICE_A}"
        assert value.type == "BINARY"
        assert value.value == RAW_KEY_A
        assert value.is_key is False

    def test_empty_output(self) -> None:
        assert parse_reglookup_output("") == []
        assert parse_reglookup_output("PATH,TYPE,VALUE,MTIME\n") == []

    def test_short_rows(self) -> None:
        records = parse_reglookup_output("/a/b,KEY\n")
        assert records == [RegistryRecord(path="/a/b", type="KEY")]


class TestReglookupReader:
    """Tests for ReglookupReader with a mocked backend."""

    def test_query_runs_reglookup(self) -> None:
        backend = Mock()
        backend.run_command.return_value = CommandResult(0, REGLOOKUP_OUTPUT, "", ["reglookup"])
        reader = ReglookupReader(backend, timeout=30)

        records = reader.query(HIVE, f"/{ROOT}/")

        backend.run_command.assert_called_once_with(
            ["reglookup", "-p", ROOT, str(HIVE)], timeout=30, check=False
        )
        assert len(records) == 5

    def test_query_failure(self) -> None:
        backend = Mock()
        backend.run_command.return_value = CommandResult(1, "", "cannot open hive", ["reglookup"])
        reader = ReglookupReader(backend)

        with pytest.raises(RegistryReadError, match="cannot open hive"):
            reader.query(HIVE, ROOT)

    def test_list_children_from_real_output(self) -> None:
        backend = Mock()
        backend.run_command.return_value = CommandResult(0, REGLOOKUP_OUTPUT, "", ["reglookup"])
        reader = ReglookupReader(backend)

        assert reader.list_children(HIVE, f"{ROOT}/{ADAPTER}") == ["CentralIRK", DEVICE_A, DEVICE_B]


class TestRegistryReaderHelpers:
    """Tests for the RegistryReader default methods."""

    def test_list_children_deduplicates(self) -> None:
        records = [
            RegistryRecord(path=f"{KEYS_ROOT}/{ADAPTER}", type="KEY"),
            RegistryRecord(path=f"{KEYS_ROOT}/{ADAPTER}/{DEVICE_A}", type="KEY"),
            RegistryRecord(path=f"{KEYS_ROOT}/{ADAPTER}/{DEVICE_A}/LTK", type="BINARY", value="%01"),
            RegistryRecord(path=f"{KEYS_ROOT}/{ADAPTER}/{DEVICE_A}/IRK", type="BINARY", value="%02"),
        ]
        reader = FakeRegistryReader(records)
        assert reader.list_children(HIVE, ROOT) == [ADAPTER]
        assert reader.list_children(HIVE, f"{ROOT}/{ADAPTER}") == [DEVICE_A]

    def test_list_children_case_insensitive_prefix(self) -> None:
        reader = FakeRegistryReader(make_records({ADAPTER: {DEVICE_A: RAW_KEY_A}}))
        assert reader.list_children(HIVE, ROOT.upper()) == [ADAPTER]

    def test_read_value(self) -> None:
        reader = FakeRegistryReader(make_records({ADAPTER: {DEVICE_A: RAW_KEY_A}}))
        assert reader.read_value(HIVE, f"{ROOT}/{ADAPTER}/{DEVICE_A}") == RAW_KEY_A

    def test_read_value_of_key_is_empty(self) -> None:
        records = [RegistryRecord(path=f"{KEYS_ROOT}/{ADAPTER}/{DEVICE_A}", type="KEY")]
        reader = FakeRegistryReader(records)
        assert reader.read_value(HIVE, f"{ROOT}/{ADAPTER}/{DEVICE_A}") == ""

    def test_read_missing_value(self) -> None:
        reader = FakeRegistryReader([])
        assert reader.read_value(HIVE, f"{ROOT}/{ADAPTER}/{DEVICE_A}") == ""


class TestBluetoothKeyIndex:
    """Tests for BluetoothKeyIndex."""

    def test_adapters_filtered_and_ordered(self) -> None:
        records = make_records({"ffffffffffff": {}, ADAPTER: {}}) + [
            RegistryRecord(path=f"{KEYS_ROOT}/MasterIRK", type="BINARY", value="%00"),
            RegistryRecord(path=f"{KEYS_ROOT}/ffffffffffff/{DEVICE_A}", type="BINARY", value="a"),
        ]
        index = BluetoothKeyIndex(FakeRegistryReader(records), HIVE, ROOT)

        assert index.adapters() == ["ffffffffffff", ADAPTER]

    def test_paired_devices(self, fake_reader: FakeRegistryReader) -> None:
        index = BluetoothKeyIndex(fake_reader, HIVE, f"/{ROOT}/")
        assert index.paired_devices(ADAPTER) == [DEVICE_A, DEVICE_B]

    def test_raw_key(self, fake_reader: FakeRegistryReader) -> None:
        index = BluetoothKeyIndex(fake_reader, HIVE, ROOT)
        assert index.raw_key(ADAPTER, DEVICE_A) == RAW_KEY_A
        assert fake_reader.queries[-1] == f"{ROOT}/{ADAPTER}/{DEVICE_A}"
