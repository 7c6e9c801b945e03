"""
Page Rasterizer
===============
Renders every page of a PDF to its own PNG using PyMuPDF (fitz).

The first page is treated as the cover and keeps its orientation; every
following page is turned clockwise by the configured angle before it is
saved.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import fitz  # PyMuPDF
from PIL import Image

from .cancel import CancelToken, check
from .errors import NameGenerationExhausted, PipelineCancelled, RasterizationError
from .models import RasterPage
from .naming import DEFAULT_MAX_ATTEMPTS, unique_path

logger = logging.getLogger(__name__)

PDF_POINTS_PER_INCH = 72.0


class PageRasterizer:
    """
    Converts a PDF into an ordered set of page images.

    Page images already written when a later page fails are left on disk;
    their paths travel on the raised error as written_paths.
    """

    def __init__(
        self,
        temp_dir: str,
        dpi_x: int = 300,
        dpi_y: int = 300,
        rotation_degrees: int = 90,
        exclusive_names: bool = True,
        max_name_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ):
        if rotation_degrees % 90 != 0:
            raise ValueError(
                f"rotation_degrees must be a multiple of 90, got {rotation_degrees}"
            )
        if dpi_x <= 0 or dpi_y <= 0:
            raise ValueError(f"DPI must be positive, got {dpi_x}x{dpi_y}")

        self.temp_dir = Path(temp_dir)
        self.dpi_x = dpi_x
        self.dpi_y = dpi_y
        self.rotation_degrees = rotation_degrees
        self.exclusive_names = exclusive_names
        self.max_name_attempts = max_name_attempts

    @property
    def matrix(self) -> fitz.Matrix:
        """Zoom matrix that renders at dpi_x by dpi_y."""
        return fitz.Matrix(
            self.dpi_x / PDF_POINTS_PER_INCH,
            self.dpi_y / PDF_POINTS_PER_INCH,
        )

    def get_page_count(self, pdf_path: str) -> int:
        """Get total number of pages in the PDF."""
        with self._open(pdf_path) as doc:
            return doc.page_count

    def rasterize(
        self,
        pdf_path: str,
        progress_callback: Optional[callable] = None,
        cancel_token: Optional[CancelToken] = None,
    ) -> list[RasterPage]:
        """
        Render all pages of pdf_path, in page order.

        Args:
            pdf_path: PDF to render.
            progress_callback: Optional callable(page_number, total_pages).
            cancel_token: Checked before each page.

        Returns:
            One RasterPage per page; the list index is page_number - 1.
        """
        try:
            self.temp_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise RasterizationError(
                f"Cannot create temp directory {self.temp_dir}: {e}"
            ) from e

        pages: list[RasterPage] = []

        with self._open(pdf_path) as doc:
            total_pages = doc.page_count
            logger.info(
                f"Rasterizing {total_pages} page(s) of {pdf_path} "
                f"at {self.dpi_x}x{self.dpi_y} DPI"
            )

            try:
                for page_idx in range(total_pages):
                    page_num = page_idx + 1
                    check(cancel_token, f"rasterizing page {page_num}")
                    path = self._page_path()

                    try:
                        pages.append(self._render_page(doc[page_idx], page_num, path))
                    except Exception as e:
                        Path(path).unlink(missing_ok=True)
                        raise RasterizationError(
                            f"Failed to render page {page_num} of {pdf_path}: {e}",
                            written_paths=[p.path for p in pages],
                        ) from e

                    if progress_callback:
                        progress_callback(page_num, total_pages)
            except (PipelineCancelled, NameGenerationExhausted) as e:
                e.written_paths = [p.path for p in pages]
                raise

        return pages

    def _open(self, pdf_path: str) -> fitz.Document:
        try:
            return fitz.open(pdf_path)
        except Exception as e:
            raise RasterizationError(f"Cannot open PDF {pdf_path}: {e}") from e

    def _page_path(self) -> str:
        return unique_path(
            ".png",
            str(self.temp_dir),
            exclusive=self.exclusive_names,
            max_attempts=self.max_name_attempts,
        )

    def _render_page(self, page: fitz.Page, page_num: int, path: str) -> RasterPage:
        pix = page.get_pixmap(matrix=self.matrix, alpha=False)
        image = Image.frombytes("RGB", (pix.width, pix.height), pix.samples)
        try:
            rotated = page_num > 1 and self.rotation_degrees % 360 != 0
            if rotated:
                # PIL rotates counter-clockwise; a negative angle turns clockwise
                turned = image.rotate(-self.rotation_degrees, expand=True)
                image.close()
                image = turned

            image.save(path, format="PNG", dpi=(self.dpi_x, self.dpi_y))
            width, height = image.size
        finally:
            image.close()

        logger.debug(
            f"Page {page_num}: {width}x{height}px"
            f"{' (rotated)' if rotated else ''} -> {path}"
        )
        return RasterPage(
            page_number=page_num,
            path=path,
            width=width,
            height=height,
            rotated=rotated,
        )


def rasterize_pages(
    pdf_path: str,
    temp_dir: str,
    dpi_x: int = 300,
    dpi_y: int = 300,
    rotation_degrees: int = 90,
) -> list[str]:
    """Render each page to a PNG and return the paths in page order."""
    rasterizer = PageRasterizer(
        temp_dir, dpi_x=dpi_x, dpi_y=dpi_y, rotation_degrees=rotation_degrees
    )
    return [page.path for page in rasterizer.rasterize(pdf_path)]
