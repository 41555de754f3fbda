"""PDF rasterization adapters.

The rasterizer is a black box to the analyzer: document bytes in, one PNG per
page out, in page order, written into a scratch directory the caller owns.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path

import pymupdf

logger = logging.getLogger(__name__)


class RasterizationError(Exception):
    """Raised when a document cannot be rendered to page images."""


class BaseRasterizer(ABC):
    """Contract for all rasterizer adapters."""

    @abstractmethod
    def render(self, document_bytes: bytes, workdir: Path) -> list[Path]:
        """Render every page of the document as an image file.

        Args:
            document_bytes: Raw PDF file content.
            workdir: Existing scratch directory to write page images into.

        Returns:
            Page image paths, first page first.

        Raises:
            RasterizationError: if the document cannot be rendered.
        """


class PyMuPdfRasterizer(BaseRasterizer):
    """Renders PDF pages to RGB PNGs using PyMuPDF."""

    def __init__(self, dpi: int = 150) -> None:
        self._dpi = dpi

    def render(self, document_bytes: bytes, workdir: Path) -> list[Path]:
        try:
            with pymupdf.open(stream=document_bytes, filetype="pdf") as doc:  # type: ignore[no-untyped-call]
                paths: list[Path] = []
                for index, page in enumerate(doc, start=1):
                    pixmap = page.get_pixmap(dpi=self._dpi, alpha=False)
                    path = workdir / f"page-{index:04d}.png"
                    pixmap.save(str(path))
                    paths.append(path)
        except Exception as exc:
            raise RasterizationError(f"pymupdf rendering failed: {exc}") from exc

        logger.debug("Rendered %d pages at %d dpi into %s", len(paths), self._dpi, workdir)
        return paths
