"""Tests for the diskcache-backed DiskStore."""

from __future__ import annotations

import asyncio
import time

import pytest

from webcache.stores import DiskStore


@pytest.fixture()
def disk(tmp_path):
    store = DiskStore(tmp_path)
    yield store
    store.close()


class TestGetSet:
    def test_round_trip(self, disk: DiskStore) -> None:
        asyncio.run(disk.set("k", b"\x89PNG\r\n", 60_000))
        asyncio.run(disk.set("k_ct", "image/png", 60_000))
        assert asyncio.run(disk.get("k")) == b"\x89PNG\r\n"
        assert asyncio.run(disk.get("k_ct")) == "image/png"

    def test_miss(self, disk: DiskStore) -> None:
        assert asyncio.run(disk.get("missing")) is None

    def test_empty_value_deletes(self, disk: DiskStore) -> None:
        asyncio.run(disk.set("k", b"v"))
        asyncio.run(disk.set("k", b""))
        assert asyncio.run(disk.get("k")) is None

    def test_sub_second_ttl_expires(self, disk: DiskStore) -> None:
        asyncio.run(disk.set("k", b"v", 200))
        assert asyncio.run(disk.get("k")) == b"v"
        time.sleep(0.4)
        assert asyncio.run(disk.get("k")) is None

    def test_zero_ttl_persists(self, disk: DiskStore) -> None:
        asyncio.run(disk.set("k", b"v", 0))
        assert asyncio.run(disk.get("k")) == b"v"


class TestHousekeeping:
    def test_stats(self, disk: DiskStore, tmp_path) -> None:
        asyncio.run(disk.set("a", b"1"))
        asyncio.run(disk.set("b", b"2"))
        stats = disk.stats()
        assert stats["size"] == 2
        assert stats["directory"] == str(tmp_path / "responses")

    def test_clear(self, disk: DiskStore) -> None:
        asyncio.run(disk.set("a", b"1"))
        disk.clear()
        assert asyncio.run(disk.get("a")) is None

    def test_survives_reopen(self, tmp_path) -> None:
        first = DiskStore(tmp_path)
        asyncio.run(first.set("k", b"v", 60_000))
        first.close()

        second = DiskStore(tmp_path)
        try:
            assert asyncio.run(second.get("k")) == b"v"
        finally:
            second.close()

    def test_double_close(self, tmp_path) -> None:
        store = DiskStore(tmp_path)
        store.close()
        store.close()
