"""On-disk custody of uploaded documents and payment proofs.

Layout under the storage root:

    temp_uploads/<date>/<uuid>-<name>       staged, awaiting confirmation
    orders/<date>/<order_id>-<name>         promoted, owned by an order
    proofs/<date>/<order_id>-proof.<ext>    payment proof, owned by an order

A staged file is either promoted (moved, never copied) or reclaimed, never
both. Directory creation is create-if-absent; a file deleted by someone else
in the meantime is treated as already gone.
"""

from __future__ import annotations

import logging
import os
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

from src.errors import DuplicateOrderError, StagedArtifactNotFoundError
from src.storage.paths import (
    date_partition,
    resolve_within,
    sanitize_extension,
    sanitize_filename,
    to_posix_relative,
)

logger = logging.getLogger(__name__)

TEMP_DIRNAME = "temp_uploads"
ORDERS_DIRNAME = "orders"
PROOFS_DIRNAME = "proofs"


@dataclass(frozen=True)
class StagedArtifact:
    """An uploaded document held in temporary custody."""

    artifact_id: str
    original_name: str
    partition: str
    size_bytes: int
    created_at: datetime

    @property
    def filename(self) -> str:
        return f"{self.artifact_id}-{self.original_name}"

    @property
    def handle(self) -> str:
        """Relative path under the staging root; all a later promotion needs."""
        return f"{self.partition}/{self.filename}"


@dataclass(frozen=True)
class StagedFile:
    """One row of the admin staging listing."""

    name: str
    path: str
    size: int
    created_at: datetime


@dataclass
class StagedDeletion:
    """Outcome of an admin staged-file deletion."""

    deleted: int = 0
    missing: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return len(self.errors)


class ArtifactStore:
    """Owns the temp/orders/proofs tree under a single storage root."""

    def __init__(self, root: Path) -> None:
        self.root = root.resolve()
        self.temp_root = self.root / TEMP_DIRNAME
        self.orders_root = self.root / ORDERS_DIRNAME
        self.proofs_root = self.root / PROOFS_DIRNAME

    def ensure_roots(self) -> None:
        """Create the three custody roots if absent."""
        for directory in (self.temp_root, self.orders_root, self.proofs_root):
            directory.mkdir(parents=True, exist_ok=True)

    # ── Staging ──────────────────────────────────────────────────────

    def stage(self, data: bytes, filename: str, now: datetime | None = None) -> StagedArtifact:
        """Write an upload into today's staging partition."""
        moment = now or datetime.now(UTC)
        artifact = StagedArtifact(
            artifact_id=str(uuid.uuid4()),
            original_name=sanitize_filename(filename),
            partition=date_partition(moment),
            size_bytes=len(data),
            created_at=moment,
        )
        target = resolve_within(self.temp_root, artifact.handle)
        for attempt in range(2):
            target.parent.mkdir(parents=True, exist_ok=True)
            try:
                target.write_bytes(data)
                break
            except FileNotFoundError:
                # Partition pruned by the sweeper between mkdir and write.
                if attempt:
                    raise
                logger.info("Partition %s vanished while staging, recreating", artifact.partition)
        logger.info("Staged %s (%d bytes)", artifact.handle, artifact.size_bytes)
        return artifact

    def promote(
        self,
        handle: str,
        order_id: str,
        original_name: str,
        now: datetime | None = None,
    ) -> str:
        """Move a staged file into order storage.

        Returns:
            The new path, relative to the storage root.

        Raises:
            PathTraversalError: if the handle escapes the staging root.
            StagedArtifactNotFoundError: if the handle is expired, reclaimed
                or already promoted.
            DuplicateOrderError: if another confirmation already owns the
                destination; the staged file is left in place.
        """
        source = resolve_within(self.temp_root, handle)
        if not source.is_file():
            raise _staged_missing(handle)

        partition = date_partition(now or datetime.now(UTC))
        name = f"{order_id}-{sanitize_filename(original_name)}"
        destination = resolve_within(self.orders_root, f"{partition}/{name}")
        destination.parent.mkdir(parents=True, exist_ok=True)

        # link + unlink: the destination is created exclusively, never overwritten
        try:
            os.link(source, destination)
        except FileExistsError as exc:
            raise _order_files_taken(order_id, destination) from exc
        except FileNotFoundError as exc:
            # Reclaimed between the check and the move.
            raise _staged_missing(handle) from exc
        try:
            source.unlink()
        except FileNotFoundError as exc:
            # Another promotion consumed the handle first; drop our link.
            destination.unlink(missing_ok=True)
            raise _staged_missing(handle) from exc

        relative = to_posix_relative(destination, self.root)
        logger.info("Promoted %s -> %s", handle, relative)
        return relative

    def restore(self, final_relative: str, handle: str) -> bool:
        """Move a promoted file back to its staging handle.

        Used when the order record could not be written, so the customer can
        confirm again. Returns False (and logs) when the move fails.
        """
        try:
            source = resolve_within(self.root, final_relative)
            destination = resolve_within(self.temp_root, handle)
            destination.parent.mkdir(parents=True, exist_ok=True)
            os.replace(source, destination)
        except Exception:
            logger.exception("Failed to restore %s to staging as %s", final_relative, handle)
            return False
        logger.info("Restored %s to staging as %s", final_relative, handle)
        return True

    # ── Proofs ───────────────────────────────────────────────────────

    def store_proof(
        self,
        data: bytes,
        extension: str,
        order_id: str,
        now: datetime | None = None,
    ) -> str:
        """Write a payment-proof image. Returns the path relative to the storage root.

        Raises:
            DuplicateOrderError: if a proof for this order id already exists.
        """
        partition = date_partition(now or datetime.now(UTC))
        name = f"{order_id}-proof.{sanitize_extension(extension)}"
        target = resolve_within(self.proofs_root, f"{partition}/{name}")
        target.parent.mkdir(parents=True, exist_ok=True)
        try:
            with open(target, "xb") as fh:
                fh.write(data)
        except FileExistsError as exc:
            raise _order_files_taken(order_id, target) from exc
        relative = to_posix_relative(target, self.root)
        logger.info("Stored payment proof %s (%d bytes)", relative, len(data))
        return relative

    # ── Order files ──────────────────────────────────────────────────

    def resolve_order_path(self, relative: str) -> Path:
        """Absolute path of a stored order/proof file, contained in the storage root."""
        return resolve_within(self.root, relative)

    def delete_order_files(self, file_path: str | None, proof_path: str | None) -> int:
        """Best-effort removal of an order's document and proof.

        Returns the number of files that could not be removed. Missing files
        count as removed. Never raises.
        """
        failures = 0
        for relative in (file_path, proof_path):
            if not relative:
                continue
            try:
                self.resolve_order_path(relative).unlink()
                logger.debug("Deleted order file %s", relative)
            except FileNotFoundError:
                logger.info("Order file already gone: %s", relative)
            except Exception as exc:
                failures += 1
                logger.warning("Failed to delete order file %s: %s", relative, exc)
        return failures

    # ── Admin staging management ─────────────────────────────────────

    def list_staged(self) -> list[StagedFile]:
        """All staged files, newest first. Empty when nothing was ever staged."""
        if not self.temp_root.is_dir():
            return []

        files: list[StagedFile] = []
        for partition in self.temp_root.iterdir():
            if not partition.is_dir():
                continue
            for entry in partition.iterdir():
                try:
                    stat = entry.stat()
                except FileNotFoundError:
                    continue
                if not entry.is_file():
                    continue
                files.append(StagedFile(
                    name=entry.name,
                    path=f"{partition.name}/{entry.name}",
                    size=stat.st_size,
                    created_at=datetime.fromtimestamp(stat.st_mtime, tz=UTC),
                ))

        files.sort(key=lambda f: f.created_at, reverse=True)
        return files

    def delete_staged(self, relative_paths: list[str]) -> StagedDeletion:
        """Delete staged files named relative to the staging root.

        Every path is validated before any file is touched.

        Raises:
            PathTraversalError: if any path escapes the staging root.
        """
        targets = [(rel, resolve_within(self.temp_root, rel)) for rel in relative_paths]

        result = StagedDeletion()
        for relative, target in targets:
            try:
                target.unlink()
                result.deleted += 1
            except FileNotFoundError:
                result.missing += 1
            except Exception as exc:
                logger.warning("Failed to delete staged file %s: %s", relative, exc)
                result.errors.append(f"Gagal menghapus {relative}: {exc}")

        logger.info(
            "Staged deletion: deleted=%d missing=%d failed=%d",
            result.deleted,
            result.missing,
            result.failed,
        )
        return result


def _staged_missing(handle: str) -> StagedArtifactNotFoundError:
    return StagedArtifactNotFoundError(
        f"Staged artifact {handle!r} not found",
        user_message="File sementara tidak ditemukan atau sudah kedaluwarsa. Silakan unggah ulang dokumen.",
    )


def _order_files_taken(order_id: str, path: Path) -> DuplicateOrderError:
    return DuplicateOrderError(
        f"{path} already exists for order {order_id}",
        user_message=f"Pesanan {order_id} sudah pernah dikirim.",
    )
