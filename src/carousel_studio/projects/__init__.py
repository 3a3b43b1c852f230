"""Carousel projects with their canvases and media items."""

from .models import (
    Canvas,
    CanvasFormat,
    CarouselProjectMetadata,
    MediaAIMetadata,
    MediaItem,
    Project,
    SlideMetadata,
)
from .store import ProjectStore

__all__ = [
    "Canvas",
    "CanvasFormat",
    "CarouselProjectMetadata",
    "MediaAIMetadata",
    "MediaItem",
    "Project",
    "ProjectStore",
    "SlideMetadata",
]
