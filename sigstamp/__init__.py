"""
Signature Stamp Pipeline
========================
Stamps a signature image onto every page of a PDF, renders the stamped
pages to PNG and joins them side by side into one composite image.

Architecture:
    - Naming: Collision-free output filenames per directory
    - Stamper: Draws the signature on each page's overlay layer
    - Rasterizer: Renders pages at fixed DPI, rotating all but the cover page
    - Compositor: Concatenates page images horizontally on a background canvas

Version: 1.0.0
"""

__version__ = "1.0.0"
