"""Fixtures for export tests: small canvases and an exporter writing to tmp_path."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

import pytest

from carousel_studio.export import CarouselExporter, SlideRenderer
from carousel_studio.projects import Canvas, CanvasFormat, SlideMetadata
from carousel_studio.settings import Settings

CREATED = datetime(2024, 1, 1, tzinfo=timezone.utc)


def make_canvas(
    slide_number: int,
    title: str | None = None,
    background_image: str | None = None,
    size: tuple[int, int] = (120, 120),
    layout: dict | None = None,
) -> Canvas:
    width, height = size
    return Canvas(
        id=f"canvas-{slide_number}",
        project_id="project-1",
        slide_number=slide_number,
        background_image=background_image,
        slide_metadata=SlideMetadata(
            slide_number=slide_number,
            title=title or f"Slide {slide_number}",
            content="Short body",
            layout=layout,
        ),
        format=CanvasFormat(width=width, height=height, aspect_ratio="1:1"),
        created_at=CREATED,
    )


@pytest.fixture
def canvas_factory() -> Callable[..., Canvas]:
    return make_canvas


@pytest.fixture
def canvases() -> list[Canvas]:
    """Five plain-colour slides, deliberately out of order."""
    return [make_canvas(n) for n in (3, 1, 2, 5, 4)]


@pytest.fixture
def exporter(tmp_path: Path, settings: Settings, mock_progress_callback) -> CarouselExporter:
    return CarouselExporter(
        tmp_path / "exports",
        renderer=SlideRenderer(),
        progress_callback=mock_progress_callback,
        settings=settings,
    )
