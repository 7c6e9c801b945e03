"""
Pipeline Errors
===============
Every component fails fast with one of these. Nothing in the package
retries; the caller decides whether the run is over.
"""

from __future__ import annotations

from typing import Optional


class SigstampError(Exception):
    """Base class for all pipeline failures."""

    # Intermediate files left on disk by the failing stage
    written_paths: tuple = ()


class NameGenerationExhausted(SigstampError):
    """No free filename was found within the attempt limit."""

    def __init__(self, directory: str, extension: str, attempts: int):
        self.directory = directory
        self.extension = extension
        self.attempts = attempts
        super().__init__(
            f"No unique '{extension}' name in {directory} "
            f"after {attempts} attempts"
        )


class DocumentOpenError(SigstampError):
    """Source PDF could not be opened or the output PDF could not be created."""


class ImageLoadError(SigstampError):
    """Signature image is missing or cannot be decoded."""


class RasterizationError(SigstampError):
    """A PDF could not be opened for rendering or a page failed to render."""

    def __init__(self, message: str, written_paths: Optional[list[str]] = None):
        super().__init__(message)
        # Page images saved before the failure; still on disk.
        self.written_paths = list(written_paths or [])


class ImageDecodeError(SigstampError):
    """One of the composite inputs cannot be decoded."""

    def __init__(self, path: str, reason: str = ""):
        self.path = path
        message = f"Cannot decode image: {path}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class EmptyCompositeError(SigstampError):
    """Composite was requested for an empty image list."""


class CompositeWriteError(SigstampError, OSError):
    """The composite canvas could not be written to disk."""


class PipelineCancelled(SigstampError):
    """The run was cancelled through its cancel token."""
