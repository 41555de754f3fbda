"""Tests for src/storage/artifacts.py and src/storage/paths.py."""

from __future__ import annotations

import os
from datetime import UTC, datetime
from pathlib import Path
from unittest.mock import patch

import pytest
from helpers import FIXED_NOW

from src.errors import DuplicateOrderError, PathTraversalError, StagedArtifactNotFoundError
from src.storage.artifacts import ArtifactStore
from src.storage.paths import (
    MAX_FILENAME_LENGTH,
    resolve_within,
    sanitize_extension,
    sanitize_filename,
)

# ── Path helpers ─────────────────────────────────────────────────────


class TestSanitizeFilename:
    def test_replaces_unsafe_characters(self):
        assert sanitize_filename("Laporan Q3 (rev).pdf") == "Laporan_Q3__rev_.pdf"

    def test_strips_directories(self):
        assert sanitize_filename("../../etc/passwd") == "passwd"

    def test_empty_falls_back(self):
        assert sanitize_filename("") == "document.pdf"
        assert sanitize_filename("..") == "document.pdf"

    def test_long_name_keeps_extension(self):
        cleaned = sanitize_filename("a" * 300 + ".pdf")
        assert len(cleaned) == MAX_FILENAME_LENGTH
        assert cleaned.endswith("aaa.pdf")

    def test_long_name_without_extension(self):
        assert sanitize_filename("b" * 300) == "b" * MAX_FILENAME_LENGTH


class TestSanitizeExtension:
    def test_lowercases_and_drops_dot(self):
        assert sanitize_extension(".JPG") == "jpg"

    def test_empty_is_bin(self):
        assert sanitize_extension("") == "bin"
        assert sanitize_extension(".$$") == "bin"


class TestResolveWithin:
    def test_inside(self, tmp_path):
        assert resolve_within(tmp_path, "a/b.txt") == (tmp_path / "a" / "b.txt").resolve()

    def test_parent_escape(self, tmp_path):
        with pytest.raises(PathTraversalError):
            resolve_within(tmp_path / "root", "../outside.txt")

    def test_absolute_escape(self, tmp_path):
        with pytest.raises(PathTraversalError):
            resolve_within(tmp_path, "/etc/passwd")

    def test_root_itself_rejected(self, tmp_path):
        with pytest.raises(PathTraversalError):
            resolve_within(tmp_path, ".")


# ── Staging and promotion ────────────────────────────────────────────


class TestStage:
    def test_writes_into_date_partition(self, store):
        artifact = store.stage(b"%PDF-1.4", "my doc.pdf", now=FIXED_NOW)

        assert artifact.partition == "2026-10-19"
        assert artifact.handle == f"2026-10-19/{artifact.artifact_id}-my_doc.pdf"
        assert artifact.size_bytes == 8
        assert (store.temp_root / artifact.handle).read_bytes() == b"%PDF-1.4"

    def test_unique_ids(self, store):
        a = store.stage(b"x", "a.pdf", now=FIXED_NOW)
        b = store.stage(b"x", "a.pdf", now=FIXED_NOW)
        assert a.handle != b.handle

    def test_recreates_partition_pruned_mid_write(self, store):
        real_write = Path.write_bytes
        calls = []

        def pruned_first(path, data):
            calls.append(path)
            if len(calls) == 1:
                path.parent.rmdir()
            return real_write(path, data)

        with patch.object(Path, "write_bytes", autospec=True, side_effect=pruned_first):
            artifact = store.stage(b"%PDF-1.4", "doc.pdf", now=FIXED_NOW)

        assert len(calls) == 2
        assert (store.temp_root / artifact.handle).read_bytes() == b"%PDF-1.4"


class TestPromote:
    def test_moves_into_order_storage(self, store):
        artifact = store.stage(b"%PDF", "doc.pdf", now=FIXED_NOW)

        relative = store.promote(artifact.handle, "ORD-1", "doc.pdf", now=FIXED_NOW)

        assert relative == "orders/2026-10-19/ORD-1-doc.pdf"
        assert (store.root / relative).read_bytes() == b"%PDF"
        assert not (store.temp_root / artifact.handle).exists()

    def test_second_promotion_fails(self, store):
        artifact = store.stage(b"%PDF", "doc.pdf", now=FIXED_NOW)
        store.promote(artifact.handle, "ORD-1", "doc.pdf", now=FIXED_NOW)

        with pytest.raises(StagedArtifactNotFoundError) as exc_info:
            store.promote(artifact.handle, "ORD-2", "doc.pdf", now=FIXED_NOW)
        assert exc_info.value.status_code == 404

    def test_existing_destination_is_conflict(self, store):
        first = store.stage(b"%PDF first", "doc.pdf", now=FIXED_NOW)
        second = store.stage(b"%PDF second", "doc.pdf", now=FIXED_NOW)
        relative = store.promote(first.handle, "ORD-1", "doc.pdf", now=FIXED_NOW)

        with pytest.raises(DuplicateOrderError) as exc_info:
            store.promote(second.handle, "ORD-1", "doc.pdf", now=FIXED_NOW)

        assert exc_info.value.status_code == 409
        assert (store.root / relative).read_bytes() == b"%PDF first"
        assert (store.temp_root / second.handle).read_bytes() == b"%PDF second"

    def test_handle_consumed_by_other_promotion(self, store):
        artifact = store.stage(b"%PDF", "doc.pdf", now=FIXED_NOW)
        real_unlink = Path.unlink
        calls = []

        def consumed_elsewhere(path, missing_ok=False):
            calls.append(path)
            real_unlink(path, missing_ok=missing_ok)
            if len(calls) == 1:
                raise FileNotFoundError(path)

        with patch.object(Path, "unlink", autospec=True, side_effect=consumed_elsewhere):
            with pytest.raises(StagedArtifactNotFoundError):
                store.promote(artifact.handle, "ORD-2", "doc.pdf", now=FIXED_NOW)

        assert not (store.orders_root / "2026-10-19" / "ORD-2-doc.pdf").exists()

    def test_unknown_handle(self, store):
        with pytest.raises(StagedArtifactNotFoundError):
            store.promote("2026-10-19/nope.pdf", "ORD-1", "doc.pdf")

    def test_traversal_handle(self, store):
        with pytest.raises(PathTraversalError):
            store.promote("../orders/x.pdf", "ORD-1", "doc.pdf")

    def test_restore_returns_file_to_staging(self, store):
        artifact = store.stage(b"%PDF", "doc.pdf", now=FIXED_NOW)
        relative = store.promote(artifact.handle, "ORD-1", "doc.pdf", now=FIXED_NOW)

        assert store.restore(relative, artifact.handle) is True
        assert (store.temp_root / artifact.handle).is_file()
        assert not (store.root / relative).exists()

    def test_restore_of_missing_file_reports_false(self, store):
        assert store.restore("orders/2026-10-19/gone.pdf", "2026-10-19/x.pdf") is False


# ── Proofs and order files ───────────────────────────────────────────


class TestProofsAndOrderFiles:
    def test_store_proof(self, store):
        relative = store.store_proof(b"img", ".PNG", "ORD-1", now=FIXED_NOW)
        assert relative == "proofs/2026-10-19/ORD-1-proof.png"
        assert (store.root / relative).read_bytes() == b"img"

    def test_store_proof_without_extension(self, store):
        relative = store.store_proof(b"img", "", "ORD-1", now=FIXED_NOW)
        assert relative.endswith("ORD-1-proof.bin")

    def test_existing_proof_is_conflict(self, store):
        relative = store.store_proof(b"first", ".jpg", "ORD-1", now=FIXED_NOW)

        with pytest.raises(DuplicateOrderError):
            store.store_proof(b"second", ".jpg", "ORD-1", now=FIXED_NOW)

        assert (store.root / relative).read_bytes() == b"first"

    def test_delete_order_files(self, store, make_order):
        order = make_order()
        assert store.delete_order_files(order.file_path, order.proof_path) == 0
        assert not (store.root / order.file_path).exists()
        assert not (store.root / order.proof_path).exists()

    def test_missing_files_are_not_failures(self, store):
        assert store.delete_order_files("orders/x/a.pdf", None) == 0

    def test_undeletable_file_counts_as_failure(self, store):
        blocker = store.orders_root / "2026-10-19" / "ORD-9-doc.pdf"
        blocker.mkdir(parents=True)
        assert store.delete_order_files("orders/2026-10-19/ORD-9-doc.pdf", None) == 1


# ── Admin staging management ─────────────────────────────────────────


class TestStagedListing:
    def test_missing_root_is_empty(self, tmp_path):
        assert ArtifactStore(tmp_path / "never-created").list_staged() == []

    def test_newest_first(self, store):
        old = store.stage(b"1", "old.pdf", now=FIXED_NOW)
        new = store.stage(b"22", "new.pdf", now=FIXED_NOW)
        stamp = datetime(2020, 1, 1, tzinfo=UTC).timestamp()
        os.utime(store.temp_root / old.handle, (stamp, stamp))

        listed = store.list_staged()

        assert [f.path for f in listed] == [new.handle, old.handle]
        assert listed[0].size == 2
        assert listed[0].name == new.filename


class TestDeleteStaged:
    def test_deletes_and_counts_missing(self, store):
        artifact = store.stage(b"1", "a.pdf", now=FIXED_NOW)

        result = store.delete_staged([artifact.handle, "2026-10-19/gone.pdf"])

        assert result.deleted == 1
        assert result.missing == 1
        assert result.errors == []

    def test_traversal_rejects_whole_request(self, store):
        artifact = store.stage(b"1", "a.pdf", now=FIXED_NOW)

        with pytest.raises(PathTraversalError):
            store.delete_staged([artifact.handle, "../orders/secret.pdf"])
        assert (store.temp_root / artifact.handle).exists()

    def test_unlink_error_is_collected(self, store):
        (store.temp_root / "2026-10-19" / "subdir").mkdir(parents=True)

        result = store.delete_staged(["2026-10-19/subdir"])

        assert result.failed == 1
        assert result.errors[0].startswith("Gagal menghapus 2026-10-19/subdir")
