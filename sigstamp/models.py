"""
Data Models
===========
Pydantic models describing the artifacts of a pipeline run.
All models are serializable to JSON for scripting via --json-output.
"""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field, computed_field


# ─── Geometry ─────────────────────────────────────────────────────────────────


class Placement(BaseModel):
    """
    Where the signature goes on a page.

    PDF user-space units, measured from the page's lower-left corner.
    (x, y) is the lower-left corner of the signature box.
    """
    x: float = 70.0
    y: float = 10.0
    width: float = Field(default=100.0, gt=0)
    height: float = Field(default=100.0, gt=0)

    def exceeds(self, page_width: float, page_height: float) -> bool:
        """True when the box sticks out of a page of the given size."""
        return (
            self.x < 0
            or self.y < 0
            or self.x + self.width > page_width
            or self.y + self.height > page_height
        )


# ─── Stage Results ────────────────────────────────────────────────────────────


class StampResult(BaseModel):
    """Outcome of stamping one document."""
    source_pdf: str
    stamped_pdf: str
    page_count: int = Field(ge=0)
    placement: Placement = Field(default_factory=Placement)


class RasterPage(BaseModel):
    """A single rendered page image."""
    page_number: int = Field(ge=1)
    path: str
    width: int = Field(ge=0, description="Pixel width after rotation")
    height: int = Field(ge=0, description="Pixel height after rotation")
    rotated: bool = False


class CompositeResult(BaseModel):
    """The combined side-by-side image."""
    path: str
    width: int = 0
    height: int = 0
    x_offsets: list[int] = Field(
        default_factory=list,
        description="Left edge of each component, in input order",
    )

    @computed_field
    @property
    def image_count(self) -> int:
        return len(self.x_offsets)


class PipelineResult(BaseModel):
    """
    Complete output of a pipeline run.
    Page paths stay listed even when the files were removed afterwards.
    """
    stamp: StampResult
    pages: list[RasterPage] = Field(default_factory=list)
    composite: CompositeResult
    intermediates_removed: bool = False
    elapsed_seconds: float = 0.0
    version: str = "1.0.0"
    created_at: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
