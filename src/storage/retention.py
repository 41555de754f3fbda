"""Retention enforcement for staged uploads that were never confirmed.

Runs once at boot and then on a fixed interval from the FastAPI lifespan.
Safe to call on every tick: the mtime cutoff decides what expires, and a
second sweep with nothing new to expire deletes nothing.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from pathlib import Path

from src.config import settings
from src.storage.artifacts import ArtifactStore

logger = logging.getLogger(__name__)

DEFAULT_TTL = timedelta(days=30)


@dataclass(frozen=True)
class SweepSummary:
    """What one sweep removed."""

    files_deleted: int = 0
    partitions_removed: int = 0


def sweep_staged(temp_root: Path, now: datetime, ttl: timedelta = DEFAULT_TTL) -> SweepSummary:
    """Delete staged files older than ``ttl`` and prune emptied partitions.

    A missing staging root means there is nothing to do.
    """
    if not temp_root.is_dir():
        return SweepSummary()

    cutoff = (now - ttl).timestamp()
    files_deleted = 0
    partitions_removed = 0

    for partition in sorted(temp_root.iterdir()):
        if not partition.is_dir():
            continue

        for entry in partition.iterdir():
            try:
                if not entry.is_file() or entry.stat().st_mtime >= cutoff:
                    continue
                entry.unlink()
            except FileNotFoundError:
                # Promoted or deleted concurrently.
                continue
            files_deleted += 1
            logger.debug("Deleted expired staged file: %s", entry)

        if not any(partition.iterdir()):
            try:
                partition.rmdir()
            except OSError:
                # Repopulated or removed concurrently.
                continue
            partitions_removed += 1
            logger.debug("Removed empty partition: %s", partition)

    return SweepSummary(files_deleted=files_deleted, partitions_removed=partitions_removed)


async def enforce_temp_retention(store: ArtifactStore, now: datetime | None = None) -> SweepSummary:
    """Run the staging sweep with the configured TTL. Never raises."""
    ttl = timedelta(days=settings.storage.temp_retention_days)
    try:
        summary = await asyncio.to_thread(
            sweep_staged, store.temp_root, now or datetime.now(UTC), ttl
        )
    except Exception:
        logger.exception("Staged upload retention sweep failed")
        return SweepSummary()

    if summary.files_deleted:
        logger.info(
            "Retention sweep complete: files=%d partitions=%d (ttl=%s)",
            summary.files_deleted,
            summary.partitions_removed,
            ttl,
        )
    else:
        logger.info("Retention sweep complete: no expired staged files")
    return summary


async def run_periodic_sweep(store: ArtifactStore, interval: timedelta) -> None:
    """Sweep every ``interval`` until cancelled."""
    seconds = interval.total_seconds()
    while True:
        await asyncio.sleep(seconds)
        await enforce_temp_retention(store)
