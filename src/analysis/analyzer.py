"""Document analysis orchestrator.

Main entry point for an upload: rasterize, classify every page in order,
encode the color/grayscale partition, then stage the original bytes for a
later order confirmation. No DB access; the caller decides what to persist.
"""

from __future__ import annotations

import asyncio
import logging
import tempfile
import time
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from src.analysis.classifier import classify_page
from src.analysis.ranges import format_page_ranges
from src.analysis.rasterizer import BaseRasterizer, RasterizationError
from src.errors import AnalysisError
from src.models.enums import PageKind
from src.storage.artifacts import ArtifactStore, StagedArtifact

logger = logging.getLogger(__name__)

SCRATCH_PREFIX = "pdf-analyzer-"


@dataclass(frozen=True)
class ClassificationResult:
    """Per-document partition of pages 1..page_count into color and grayscale."""

    color_pages: tuple[int, ...]
    grayscale_pages: tuple[int, ...]

    @classmethod
    def from_page_kinds(cls, kinds: Sequence[PageKind]) -> ClassificationResult:
        """Build from per-page kinds, first page first."""
        color = tuple(i for i, kind in enumerate(kinds, start=1) if kind is PageKind.COLOR)
        grayscale = tuple(i for i, kind in enumerate(kinds, start=1) if kind is not PageKind.COLOR)
        return cls(color_pages=color, grayscale_pages=grayscale)

    @property
    def page_count(self) -> int:
        return len(self.color_pages) + len(self.grayscale_pages)

    @property
    def color_range(self) -> str:
        return format_page_ranges(self.color_pages)

    @property
    def grayscale_range(self) -> str:
        return format_page_ranges(self.grayscale_pages)


@dataclass(frozen=True)
class AnalysisResult:
    """Classification plus the staged artifact that holds the original upload."""

    classification: ClassificationResult
    artifact: StagedArtifact


class DocumentAnalyzer:
    """Rasterizes and classifies an uploaded document, then stages it."""

    def __init__(self, rasterizer: BaseRasterizer, store: ArtifactStore) -> None:
        self._rasterizer = rasterizer
        self._store = store

    async def analyze(self, document_bytes: bytes, original_filename: str) -> AnalysisResult:
        """Classify every page and stage the upload.

        Rendering and classification run in a worker thread that owns the
        scratch workspace for its whole life, so the event loop stays free
        and the workspace is removed even if the client goes away.

        Raises:
            AnalysisError: if the document cannot be rendered.
        """
        start = time.monotonic()
        kinds = await asyncio.to_thread(self._classify_pages, document_bytes, original_filename)
        classification = ClassificationResult.from_page_kinds(kinds)

        artifact = await asyncio.to_thread(self._store.stage, document_bytes, original_filename)

        elapsed_ms = int((time.monotonic() - start) * 1000)
        logger.info(
            "Analyzed %s: pages=%d color=%d grayscale=%d in %dms",
            artifact.handle,
            classification.page_count,
            len(classification.color_pages),
            len(classification.grayscale_pages),
            elapsed_ms,
        )
        return AnalysisResult(classification=classification, artifact=artifact)

    def _classify_pages(self, document_bytes: bytes, original_filename: str) -> list[PageKind]:
        """Render into a private scratch directory and classify pages in order."""
        if not document_bytes:
            raise AnalysisError(
                f"Empty upload: {original_filename!r}",
                user_message="File kosong tidak dapat dianalisis.",
            )

        with tempfile.TemporaryDirectory(prefix=SCRATCH_PREFIX) as scratch:
            try:
                pages = self._rasterizer.render(document_bytes, Path(scratch))
            except RasterizationError as exc:
                logger.error("Rasterization failed for %r: %s", original_filename, exc)
                raise AnalysisError(
                    str(exc),
                    user_message="Dokumen tidak dapat dibaca. Pastikan file PDF tidak rusak.",
                ) from exc

            if not pages:
                raise AnalysisError(
                    f"No pages rendered for {original_filename!r}",
                    user_message="Dokumen tidak memiliki halaman.",
                )

            return [classify_page(page.read_bytes()) for page in pages]
