"""Tests for src/storage/retention.py: staged upload TTL enforcement."""

from __future__ import annotations

import os
from datetime import UTC, datetime, timedelta
from unittest.mock import patch

import pytest

from src.storage.retention import SweepSummary, enforce_temp_retention, sweep_staged

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=UTC)


def _staged(store, partition: str, name: str, age: timedelta):
    path = store.temp_root / partition / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"%PDF")
    stamp = (NOW - age).timestamp()
    os.utime(path, (stamp, stamp))
    return path


class TestSweepStaged:
    def test_deletes_expired_and_prunes_partition(self, store):
        expired = _staged(store, "2026-09-18", "a-old.pdf", timedelta(days=31))

        summary = sweep_staged(store.temp_root, NOW, timedelta(days=30))

        assert summary == SweepSummary(files_deleted=1, partitions_removed=1)
        assert not expired.exists()
        assert not expired.parent.exists()

    def test_keeps_fresh_files(self, store):
        fresh = _staged(store, "2026-09-20", "b-new.pdf", timedelta(days=29))

        summary = sweep_staged(store.temp_root, NOW, timedelta(days=30))

        assert summary.files_deleted == 0
        assert fresh.exists()

    def test_partition_with_survivor_is_kept(self, store):
        expired = _staged(store, "2026-09-18", "a-old.pdf", timedelta(days=31))
        fresh = _staged(store, "2026-09-18", "b-touched.pdf", timedelta(days=1))

        summary = sweep_staged(store.temp_root, NOW, timedelta(days=30))

        assert summary == SweepSummary(files_deleted=1, partitions_removed=0)
        assert not expired.exists()
        assert fresh.exists()

    def test_empty_partition_is_removed(self, store):
        (store.temp_root / "2026-01-01").mkdir()

        summary = sweep_staged(store.temp_root, NOW)

        assert summary.partitions_removed == 1

    def test_second_sweep_is_a_no_op(self, store):
        _staged(store, "2026-09-18", "a-old.pdf", timedelta(days=40))
        sweep_staged(store.temp_root, NOW)

        assert sweep_staged(store.temp_root, NOW) == SweepSummary()

    def test_missing_root(self, tmp_path):
        assert sweep_staged(tmp_path / "absent", NOW) == SweepSummary()

    def test_order_storage_is_untouched(self, store, make_order):
        order = make_order()
        old = (NOW - timedelta(days=365)).timestamp()
        os.utime(store.root / order.file_path, (old, old))

        sweep_staged(store.temp_root, NOW)

        assert (store.root / order.file_path).exists()


class TestEnforceTempRetention:
    @pytest.mark.asyncio
    async def test_uses_configured_ttl(self, store):
        _staged(store, "2026-09-18", "a-old.pdf", timedelta(days=31))

        summary = await enforce_temp_retention(store, now=NOW)

        assert summary.files_deleted == 1

    @pytest.mark.asyncio
    async def test_never_raises(self, store):
        with patch("src.storage.retention.sweep_staged", side_effect=PermissionError("denied")):
            summary = await enforce_temp_retention(store, now=NOW)
        assert summary == SweepSummary()
