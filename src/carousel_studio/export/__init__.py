"""Carousel export: individual slides, sequences and grids."""

from .models import (
    AspectRatioOverride,
    ExportMetadata,
    ExportProgress,
    ExportRequest,
    ExportResult,
)
from .pipeline import CarouselExporter, ExportProgressCallback, grid_dimensions, slide_filename
from .renderer import SlideRenderer

__all__ = [
    "AspectRatioOverride",
    "CarouselExporter",
    "ExportMetadata",
    "ExportProgress",
    "ExportProgressCallback",
    "ExportRequest",
    "ExportResult",
    "SlideRenderer",
    "grid_dimensions",
    "slide_filename",
]
