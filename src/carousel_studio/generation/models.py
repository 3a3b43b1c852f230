"""Data models for generation records and their requests."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ..constants import (
    CAROUSEL_DEFAULT_SLIDES,
    CAROUSEL_MAX_SLIDES,
    CAROUSEL_MIN_SLIDES,
    BackgroundStrategy,
    ContentType,
    GenerationStatus,
    GenerationStep,
    GenerationType,
    SocialPlatform,
)


class GenerationRecord(BaseModel):
    """Persisted state of one generation request."""

    id: str
    owner_id: str
    project_id: str | None = None
    canvas_id: str | None = None
    type: GenerationType
    status: GenerationStatus = GenerationStatus.PENDING
    prompt: str
    options: dict[str, Any] = Field(default_factory=dict)
    progress: int = Field(default=0, ge=0, le=100)
    current_step: GenerationStep | None = None
    estimated_time_remaining: float | None = None
    result_data: dict[str, Any] | None = None
    cost: float = Field(default=0.0, ge=0)
    start_time: datetime | None = None
    completed_time: datetime | None = None
    created_at: datetime
    updated_at: datetime

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal


class CarouselOptions(BaseModel):
    """Options of a carousel generation, validated at creation time."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    slide_count: int = Field(
        default=CAROUSEL_DEFAULT_SLIDES,
        ge=CAROUSEL_MIN_SLIDES,
        le=CAROUSEL_MAX_SLIDES,
        alias="canvasCount",
    )
    background_strategy: BackgroundStrategy = BackgroundStrategy.THEMATIC
    tone: str = "friendly"
    target_audience: str = "Instagram users"
    style: str = "engaging and modern"
    content_type: ContentType | None = None
    include_hashtags: bool = True
    skip_images: bool = False
    platform: SocialPlatform = SocialPlatform.INSTAGRAM
    canvas_format: str = "instagram-post"
    text_provider: str | None = None
    image_provider: str | None = None
    image_model: str | None = None
    image_style: str | None = None
    seed: int | None = None
    enhance_prompt: bool = False


class GenerationCreate(BaseModel):
    """Payload for creating a generation."""

    type: GenerationType
    prompt: str
    project_id: str | None = None
    canvas_id: str | None = None
    options: dict[str, Any] = Field(default_factory=dict)

    @field_validator("prompt")
    @classmethod
    def _prompt_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("prompt must not be blank")
        return value


class GenerationPatch(BaseModel):
    """Status update applied to a generation. `status` is required."""

    model_config = ConfigDict(extra="forbid")

    status: GenerationStatus
    progress: int | None = Field(default=None, ge=0, le=100)
    current_step: GenerationStep | None = None
    estimated_time_remaining: float | None = Field(default=None, ge=0)
    result_data: dict[str, Any] | None = None
    cost: float | None = Field(default=None, ge=0)


class GenerationFilter(BaseModel):
    """Filters and pagination for listing generations."""

    project_id: str | None = None
    status: GenerationStatus | None = None
    limit: int = Field(default=50, ge=1, le=100)
    offset: int = Field(default=0, ge=0)


class GenerationProgress(BaseModel):
    """Progress event emitted while a generation runs."""

    generation_id: str
    status: GenerationStatus = GenerationStatus.PENDING
    current_step: GenerationStep | None = None
    progress: int = 0
    cost: float = 0.0
    message: str = ""
    total_slides: int = 0
    completed_slides: int = 0
    failed_slides: int = 0
    errors: list[str] = Field(default_factory=list)
