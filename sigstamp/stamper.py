"""
Signature Stamper
=================
Draws a signature image on the foreground layer of every page of a PDF
using PyMuPDF (fitz) and writes the result as a new document.

The signature box has the same size and position on every page, whatever
the page dimensions. Boxes that fall outside small pages are drawn anyway.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

import fitz  # PyMuPDF

from .cancel import CancelToken, check
from .errors import DocumentOpenError, ImageLoadError
from .models import Placement, StampResult
from .naming import DEFAULT_MAX_ATTEMPTS, unique_path

logger = logging.getLogger(__name__)


class SignatureStamper:
    """
    Stamps one signature onto all pages of a document.

    The image is decoded once; the first page embeds it and the remaining
    pages reference the same image object.
    """

    def __init__(
        self,
        output_dir: str,
        placement: Optional[Placement] = None,
        exclusive_names: bool = True,
        max_name_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ):
        self.output_dir = Path(output_dir)
        self.placement = placement or Placement()
        self.exclusive_names = exclusive_names
        self.max_name_attempts = max_name_attempts

    def stamp(
        self,
        source_pdf: str,
        signature_image: str,
        cancel_token: Optional[CancelToken] = None,
    ) -> StampResult:
        """
        Stamp signature_image onto every page of source_pdf.

        Returns:
            StampResult with the path of the newly written PDF.

        Raises:
            DocumentOpenError: Source unreadable or output not creatable.
            ImageLoadError: Signature image missing or corrupt.
        """
        doc = self._open_source(source_pdf)
        out_path = None
        try:
            signature = self._load_signature(signature_image)
            out_path = self._claim_output()

            page_count = doc.page_count
            logger.info(
                f"Stamping {page_count} page(s) of {source_pdf} "
                f"at ({self.placement.x}, {self.placement.y}) "
                f"size {self.placement.width}x{self.placement.height}"
            )

            xref = 0
            for page in doc:
                check(cancel_token, f"stamping page {page.number + 1}")
                xref = self._stamp_page(page, signature, xref)

            doc.save(out_path, garbage=3, deflate=True)
        except Exception:
            if out_path:
                self._discard(out_path)
            raise
        finally:
            doc.close()

        logger.info(f"Stamped PDF saved: {out_path}")
        return StampResult(
            source_pdf=str(source_pdf),
            stamped_pdf=out_path,
            page_count=page_count,
            placement=self.placement,
        )

    # ─── Steps ────────────────────────────────────────────────────────────────

    def _open_source(self, source_pdf: str) -> fitz.Document:
        try:
            doc = fitz.open(source_pdf)
        except Exception as e:
            raise DocumentOpenError(f"Cannot open PDF {source_pdf}: {e}") from e

        if not doc.is_pdf:
            doc.close()
            raise DocumentOpenError(f"Not a PDF document: {source_pdf}")
        return doc

    def _load_signature(self, signature_image: str) -> fitz.Pixmap:
        if not os.path.isfile(signature_image):
            raise ImageLoadError(f"Signature image not found: {signature_image}")
        try:
            return fitz.Pixmap(signature_image)
        except Exception as e:
            raise ImageLoadError(
                f"Cannot decode signature image {signature_image}: {e}"
            ) from e

    def _claim_output(self) -> str:
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            return unique_path(
                ".pdf",
                str(self.output_dir),
                exclusive=self.exclusive_names,
                max_attempts=self.max_name_attempts,
            )
        except OSError as e:
            raise DocumentOpenError(
                f"Cannot create output PDF in {self.output_dir}: {e}"
            ) from e

    def _stamp_page(self, page: fitz.Page, signature: fitz.Pixmap, xref: int) -> int:
        """Draw the signature on one page; returns the image xref to reuse."""
        p = self.placement
        mediabox = page.mediabox
        if p.exceeds(mediabox.width, mediabox.height):
            logger.warning(
                f"Signature box exceeds page {page.number + 1} "
                f"({mediabox.width:.0f}x{mediabox.height:.0f})"
            )

        # PDF user space (origin lower-left) -> PyMuPDF page space (origin top-left)
        rect = fitz.Rect(p.x, p.y, p.x + p.width, p.y + p.height)
        rect = (rect * page.transformation_matrix).normalize()

        if xref:
            page.insert_image(rect, xref=xref, overlay=True, keep_proportion=False)
        else:
            xref = page.insert_image(
                rect, pixmap=signature, overlay=True, keep_proportion=False
            )
        logger.debug(f"Page {page.number + 1}: signature at {tuple(rect)}")
        return xref

    @staticmethod
    def _discard(path: str):
        try:
            os.remove(path)
            logger.info(f"Removed incomplete output: {path}")
        except FileNotFoundError:
            pass


def stamp_signature(
    source_pdf: str,
    signature_image: str,
    output_dir: str,
    placement: Optional[Placement] = None,
    exclusive_names: bool = True,
) -> str:
    """Stamp every page and return the path of the new PDF."""
    stamper = SignatureStamper(
        output_dir, placement=placement, exclusive_names=exclusive_names
    )
    return stamper.stamp(source_pdf, signature_image).stamped_pdf
