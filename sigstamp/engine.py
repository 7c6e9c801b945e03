"""
Signature Pipeline Engine
=========================
Main orchestrator that stamps a PDF, renders the stamped pages and
composites them into one image.

Usage:
    engine = SignatureEngine(config)
    result = engine.run("path/to/document.pdf", "path/to/signature.png")
    # result is a PipelineResult describing every file that was written

Architecture:
    PDF → SignatureStamper → stamped PDF → PageRasterizer →
    page PNGs → ImageCompositor → composite PNG
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from . import __version__
from .cancel import CancelToken, check
from .compositor import ImageCompositor
from .errors import SigstampError
from .models import Placement, PipelineResult
from .naming import DEFAULT_MAX_ATTEMPTS
from .rasterizer import PageRasterizer
from .stamper import SignatureStamper

logger = logging.getLogger(__name__)

LOG_FORMAT = "[%(asctime)s] %(levelname)-8s %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


@dataclass
class PipelineConfig:
    """Configuration for the pipeline engine."""

    # Directories (may coincide)
    stamped_dir: str = "output"
    temp_dir: str = "tmp"
    output_dir: str = "output"

    # Rasterization
    dpi_x: int = 300
    dpi_y: int = 300
    rotation_degrees: int = 90

    # Signature box, PDF units from the page's lower-left corner
    overlay_x: float = 70.0
    overlay_y: float = 10.0
    overlay_width: float = 100.0
    overlay_height: float = 100.0

    # Compositing
    background: str = "black"

    # Intermediates
    keep_intermediates: bool = False

    # Naming
    exclusive_names: bool = True
    max_name_attempts: int = DEFAULT_MAX_ATTEMPTS

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None

    @property
    def placement(self) -> Placement:
        return Placement(
            x=self.overlay_x,
            y=self.overlay_y,
            width=self.overlay_width,
            height=self.overlay_height,
        )


class SignatureEngine:
    """
    Runs the three stages strictly in sequence:
        1. Stamp the signature on every page
        2. Rasterize the stamped PDF
        3. Composite the page images side by side

    Each stage fails fast and the error reaches the caller unchanged.
    """

    def __init__(self, config: Optional[PipelineConfig] = None):
        self.config = config or PipelineConfig()
        self._setup_logging()

    def _setup_logging(self):
        """Configure logging based on config."""
        log_level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        # Configure root logger for the sigstamp package
        pkg_logger = logging.getLogger("sigstamp")
        pkg_logger.setLevel(log_level)

        # Console handler
        if not pkg_logger.handlers:
            console = logging.StreamHandler()
            console.setLevel(log_level)
            console.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT))
            pkg_logger.addHandler(console)

        # File handler
        if self.config.log_file:
            log_path = Path(self.config.log_file).absolute()
            already = any(
                isinstance(h, logging.FileHandler)
                and Path(h.baseFilename) == log_path
                for h in pkg_logger.handlers
            )
            if not already:
                log_path.parent.mkdir(parents=True, exist_ok=True)
                file_handler = logging.FileHandler(log_path, encoding="utf-8")
                file_handler.setLevel(log_level)
                file_handler.setFormatter(
                    logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT)
                )
                pkg_logger.addHandler(file_handler)

    # ─── Stage factories ──────────────────────────────────────────────────────

    def stamper(self) -> SignatureStamper:
        return SignatureStamper(
            self.config.stamped_dir,
            placement=self.config.placement,
            exclusive_names=self.config.exclusive_names,
            max_name_attempts=self.config.max_name_attempts,
        )

    def rasterizer(self) -> PageRasterizer:
        return PageRasterizer(
            self.config.temp_dir,
            dpi_x=self.config.dpi_x,
            dpi_y=self.config.dpi_y,
            rotation_degrees=self.config.rotation_degrees,
            exclusive_names=self.config.exclusive_names,
            max_name_attempts=self.config.max_name_attempts,
        )

    def compositor(self) -> ImageCompositor:
        return ImageCompositor(
            self.config.output_dir,
            background=self.config.background,
            exclusive_names=self.config.exclusive_names,
            max_name_attempts=self.config.max_name_attempts,
            trusted_inputs=True,
        )

    # ─── Pipeline ─────────────────────────────────────────────────────────────

    def run(
        self,
        pdf_path: str,
        signature_path: str,
        progress_callback: Optional[callable] = None,
        cancel_token: Optional[CancelToken] = None,
    ) -> PipelineResult:
        """
        Stamp, rasterize and composite one document.

        Args:
            pdf_path: Source PDF.
            signature_path: Signature image drawn on every page.
            progress_callback: Callback(page_num, total_pages) during rendering.
            cancel_token: Checked between stages and between pages.

        Returns:
            PipelineResult listing the stamped PDF, page images and composite.

        Raises:
            FileNotFoundError: If an input file doesn't exist.
            SigstampError: Whatever the failing stage raised.
        """
        pdf_path = os.path.abspath(pdf_path)
        signature_path = os.path.abspath(signature_path)

        if not os.path.exists(pdf_path):
            raise FileNotFoundError(f"PDF not found: {pdf_path}")
        if not os.path.exists(signature_path):
            raise FileNotFoundError(f"Signature image not found: {signature_path}")

        start_time = time.time()
        logger.info(f"Starting run for: {pdf_path}")

        # ── Step 1: Stamp ─────────────────────────────────────────────────
        logger.info("Phase 1: Signature stamping")
        check(cancel_token, "stamping")
        stamp = self.stamper().stamp(pdf_path, signature_path, cancel_token)

        # ── Step 2: Rasterize ─────────────────────────────────────────────
        logger.info("Phase 2: Page rasterization")
        check(cancel_token, "rasterization")
        try:
            pages = self.rasterizer().rasterize(
                stamp.stamped_pdf,
                progress_callback=progress_callback,
                cancel_token=cancel_token,
            )
        except SigstampError as e:
            # Pages rendered before the failure, if any
            if not self.config.keep_intermediates:
                self._discard_pages(e.written_paths)
            raise

        # ── Step 3: Composite ─────────────────────────────────────────────
        logger.info("Phase 3: Compositing")
        try:
            check(cancel_token, "compositing")
            composite = self.compositor().composite(
                [p.path for p in pages], cancel_token=cancel_token
            )
        except Exception:
            if not self.config.keep_intermediates:
                self._discard_pages([p.path for p in pages])
            raise

        # ── Step 4: Intermediates ─────────────────────────────────────────
        removed = False
        if not self.config.keep_intermediates:
            self._discard_pages([p.path for p in pages])
            removed = True

        elapsed = time.time() - start_time
        logger.info(
            f"Run complete in {elapsed:.2f}s, "
            f"{stamp.page_count} page(s), composite {composite.width}x{composite.height}"
        )

        return PipelineResult(
            stamp=stamp,
            pages=pages,
            composite=composite,
            intermediates_removed=removed,
            elapsed_seconds=round(elapsed, 3),
            version=__version__,
        )

    def _discard_pages(self, paths: list[str]):
        """Delete intermediate page images."""
        count = 0
        for path in paths:
            try:
                os.remove(path)
                count += 1
            except FileNotFoundError:
                logger.warning(f"Page image already gone: {path}")
        if count:
            logger.info(f"Removed {count} intermediate page image(s)")

