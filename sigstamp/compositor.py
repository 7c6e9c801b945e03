"""
Image Compositor
================
Joins an ordered list of images left to right into one PNG with Pillow.

Layout:
    canvas width  = sum of image widths
    canvas height = tallest image
    image i is pasted top-aligned at x = sum of widths before it

Shorter images leave background below them. Nothing is scaled or cropped.
"""

from __future__ import annotations

import logging
from contextlib import ExitStack, contextmanager
from pathlib import Path
from typing import Optional, Union

from PIL import Image, ImageColor, UnidentifiedImageError

from .cancel import CancelToken, check
from .errors import CompositeWriteError, EmptyCompositeError, ImageDecodeError
from .models import CompositeResult
from .naming import DEFAULT_MAX_ATTEMPTS, unique_path

logger = logging.getLogger(__name__)

Color = Union[str, tuple[int, int, int]]


def _has_alpha(img: Image.Image) -> bool:
    return img.mode in ("RGBA", "LA", "PA") or "transparency" in img.info


@contextmanager
def _pixel_limit(limit: Optional[int]):
    """Temporarily replace Pillow's decompression bomb threshold."""
    saved = Image.MAX_IMAGE_PIXELS
    Image.MAX_IMAGE_PIXELS = limit
    try:
        yield
    finally:
        Image.MAX_IMAGE_PIXELS = saved


def compute_layout(sizes: list[tuple[int, int]]) -> tuple[int, int, list[int]]:
    """
    Canvas size and x offsets for images of the given (width, height).

    Returns:
        (total_width, max_height, x_offsets)
    """
    offsets = []
    x = 0
    for width, _ in sizes:
        offsets.append(x)
        x += width
    max_height = max((h for _, h in sizes), default=0)
    return x, max_height, offsets


class ImageCompositor:
    """
    Horizontal concatenation of page images on a solid background.

    Inputs are decoded under Pillow's decompression bomb limit. Set
    trusted_inputs for images this package rendered itself; a 300 DPI
    render of a large page can exceed the limit without being hostile.
    """

    def __init__(
        self,
        output_dir: str,
        background: Color = "black",
        exclusive_names: bool = True,
        max_name_attempts: int = DEFAULT_MAX_ATTEMPTS,
        trusted_inputs: bool = False,
    ):
        self.output_dir = Path(output_dir)
        # Fail early on unknown colour names
        self.background = (
            ImageColor.getrgb(background) if isinstance(background, str)
            else tuple(background)
        )
        self.exclusive_names = exclusive_names
        self.max_name_attempts = max_name_attempts
        self.trusted_inputs = trusted_inputs

    def composite(
        self,
        image_paths: list[str],
        cancel_token: Optional[CancelToken] = None,
    ) -> CompositeResult:
        """
        Combine image_paths into one image saved in output_dir.

        Raises:
            EmptyCompositeError: image_paths is empty.
            ImageDecodeError: Any input cannot be decoded.
            CompositeWriteError: The result cannot be written.
        """
        if not image_paths:
            raise EmptyCompositeError("No images to composite")

        # Every decoded image and the canvas are closed on the way out,
        # whether or not anything failed.
        with ExitStack() as stack:
            images = []
            for path in image_paths:
                check(cancel_token, "decoding images")
                img = self._load(path)
                stack.callback(img.close)
                images.append(img)

            total_width, max_height, offsets = compute_layout(
                [img.size for img in images]
            )
            logger.info(
                f"Compositing {len(images)} image(s) into "
                f"{total_width}x{max_height}"
            )

            canvas = Image.new("RGB", (total_width, max_height), self.background)
            stack.callback(canvas.close)
            for img, x in zip(images, offsets):
                if _has_alpha(img):
                    # Transparent areas show the background
                    img = img.convert("RGBA")
                    stack.callback(img.close)
                    canvas.paste(img, (x, 0), img)
                    continue
                if img.mode != "RGB":
                    img = img.convert("RGB")
                    stack.callback(img.close)
                canvas.paste(img, (x, 0))

            out_path = self._save(canvas)

        logger.info(f"Composite image saved: {out_path}")
        return CompositeResult(
            path=out_path,
            width=total_width,
            height=max_height,
            x_offsets=offsets,
        )

    def _load(self, path: str) -> Image.Image:
        if self.trusted_inputs:
            with _pixel_limit(None):
                return self._decode(path)
        return self._decode(path)

    @staticmethod
    def _decode(path: str) -> Image.Image:
        """Open and fully load one image."""
        try:
            img = Image.open(path)
        except (
            UnidentifiedImageError,
            Image.DecompressionBombError,
            OSError,
        ) as e:
            raise ImageDecodeError(str(path), str(e)) from e
        try:
            img.load()
        except Exception as e:
            img.close()
            raise ImageDecodeError(str(path), str(e)) from e
        logger.debug(f"Decoded {path}: {img.size[0]}x{img.size[1]} {img.mode}")
        return img

    def _save(self, canvas: Image.Image) -> str:
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            out_path = unique_path(
                ".png",
                str(self.output_dir),
                exclusive=self.exclusive_names,
                max_attempts=self.max_name_attempts,
            )
        except OSError as e:
            raise CompositeWriteError(
                f"Cannot create composite in {self.output_dir}: {e}"
            ) from e

        try:
            canvas.save(out_path, format="PNG")
        except OSError as e:
            Path(out_path).unlink(missing_ok=True)
            raise CompositeWriteError(f"Cannot write {out_path}: {e}") from e
        return out_path


def composite_horizontal(
    image_paths: list[str],
    output_dir: str,
    background: Color = "black",
) -> str:
    """Join images left to right and return the composite's path."""
    compositor = ImageCompositor(output_dir, background=background)
    return compositor.composite(image_paths).path
