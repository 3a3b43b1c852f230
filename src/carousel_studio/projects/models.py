"""Data models for carousel projects, canvases and media items."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from ..constants import BackgroundStrategy, SocialPlatform


class CarouselProjectMetadata(BaseModel):
    """Carousel-level settings stored on a project."""

    slide_count: int = 0
    background_strategy: BackgroundStrategy = BackgroundStrategy.THEMATIC
    target_platform: SocialPlatform = SocialPlatform.INSTAGRAM
    aspect_ratio: str = "1:1"


class Project(BaseModel):
    """A carousel project owned by one user."""

    id: str
    owner_id: str
    name: str
    tags: list[str] = Field(default_factory=list)
    carousel_metadata: CarouselProjectMetadata | None = None
    created_at: datetime
    updated_at: datetime


class CanvasFormat(BaseModel):
    width: int
    height: int
    aspect_ratio: str
    platform: SocialPlatform = SocialPlatform.INSTAGRAM


class SlideMetadata(BaseModel):
    """Text and design data of one slide, stored on its canvas."""

    slide_number: int
    title: str
    subtitle: str | None = None
    content: str = ""
    cta: str | None = None
    background_prompt: str | None = None
    layout: dict[str, Any] | None = None


class Canvas(BaseModel):
    """One slide of a project."""

    id: str
    project_id: str
    slide_number: int
    is_active: bool = True
    background_image: str | None = None
    thumbnail_url: str | None = None
    background_color: str = "#1f2937"
    slide_metadata: SlideMetadata
    format: CanvasFormat
    created_at: datetime


class MediaAIMetadata(BaseModel):
    cost: float = 0.0
    model: str | None = None
    provider: str | None = None
    parameters: dict[str, Any] = Field(default_factory=dict)


class MediaItem(BaseModel):
    """An AI-generated (or uploaded) asset attached to a canvas."""

    id: str
    project_id: str
    canvas_id: str | None = None
    name: str
    type: Literal["image", "video", "audio"] = "image"
    url: str
    width: int | None = None
    height: int | None = None
    is_ai_generated: bool = True
    generation_prompt: str | None = None
    ai_metadata: MediaAIMetadata | None = None
    slide_number: int | None = None
    background_strategy: BackgroundStrategy | None = None
    created_at: datetime


class ProjectDocument(BaseModel):
    """On-disk shape of a project with its canvases and media."""

    project: Project
    canvases: list[Canvas] = Field(default_factory=list)
    media_items: list[MediaItem] = Field(default_factory=list)
