"""Data models for carousel content and prompt composition."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..constants import (
    CAROUSEL_DEFAULT_SLIDES,
    CAROUSEL_MAX_SLIDES,
    CAROUSEL_MIN_SLIDES,
    BackgroundStrategy,
    ColorScheme,
    ContentType,
    FontSizeTier,
    LayoutType,
    SocialPlatform,
    TextPlacement,
)


class _CamelModel(BaseModel):
    """Accepts both snake_case and the camelCase keys the text provider returns."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CarouselTemplate(BaseModel):
    """Narrative template for one content type. Immutable reference data."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    structure: tuple[str, ...]
    tone_guidelines: str
    content_patterns: tuple[str, ...]


class CarouselPromptOptions(BaseModel):
    """Inputs to the structured carousel prompt."""

    topic: str
    slide_count: int = Field(
        default=CAROUSEL_DEFAULT_SLIDES, ge=CAROUSEL_MIN_SLIDES, le=CAROUSEL_MAX_SLIDES
    )
    background_strategy: BackgroundStrategy = BackgroundStrategy.THEMATIC
    tone: str = "friendly"
    target_audience: str = "Instagram users"
    style: str = "engaging and modern"
    content_type: ContentType = ContentType.EDUCATIONAL


class SlideLayoutSuggestion(BaseModel):
    """Derived design guidance for one slide. Never persisted on its own."""

    layout_type: LayoutType
    text_placement: TextPlacement
    font_size: FontSizeTier
    color_scheme: ColorScheme
    visual_hierarchy: list[str] = Field(default_factory=list)


class CarouselSlide(_CamelModel):
    """One slide as returned by the text provider."""

    slide_number: int
    title: str
    subtitle: str | None = None
    content: str = ""
    cta: str | None = None
    background_prompt: str = ""
    design_notes: str | None = None
    engagement_tactics: str | None = None


class CarouselMetadata(_CamelModel):
    """Carousel-level metadata returned alongside the slides."""

    overall_theme: str | None = None
    content_flow: str | None = None
    target_engagement: str | None = None
    hashtag_suggestions: list[str] = Field(default_factory=list)
    visual_consistency: str | None = None


class CarouselContent(_CamelModel):
    """Parsed text-provider response."""

    slides: list[CarouselSlide]
    carousel_metadata: CarouselMetadata = Field(default_factory=CarouselMetadata)


class PlatformTextConfig(BaseModel):
    """Per-platform caption rules used in the system prompt."""

    model_config = ConfigDict(frozen=True)

    platform: SocialPlatform
    max_caption_length: int
    max_hashtags: int
    hashtag_style: str
    common_patterns: tuple[str, ...]
    engagement_triggers: tuple[str, ...]
    restrictions: tuple[str, ...] = ()
