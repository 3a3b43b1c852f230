"""Provider capability interfaces and result models.

Every AI vendor is exposed through one of two capabilities:

- TextGenerator.generate_text(prompt, options) -> GeneratedText
- ImageGenerator.generate_image(prompt, options) -> GeneratedImage

Call sites depend on these protocols only. Which vendor implementation
backs them is decided by configuration (see registry.py).
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional, Protocol, runtime_checkable

from pydantic import BaseModel, Field, model_validator

from ..constants import (
    DEFAULT_TEXT_MAX_LENGTH,
    PLATFORM_CAPTION_LIMITS,
    TEXT_MAX_VARIATIONS,
    ContentType,
    SocialPlatform,
    ToneOfVoice,
    dimensions_for_format,
)
from ..errors import ValidationError

# Type for AI event callback
AIEventCallback = Optional[Callable[[dict[str, Any]], Awaitable[None]]]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# OPTIONS
# =============================================================================

class TextGenerationOptions(BaseModel):
    """Structured options sent to a text provider."""

    canvas_format: str = "instagram-post"
    platform: SocialPlatform = SocialPlatform.INSTAGRAM
    content_type: ContentType = ContentType.EDUCATIONAL
    tone: ToneOfVoice | str = ToneOfVoice.FRIENDLY
    style: str = "engaging"
    language: str = "English"
    max_length: int = Field(default=DEFAULT_TEXT_MAX_LENGTH, gt=0)
    include_hashtags: bool = True
    include_emojis: bool = True
    variations: int = Field(default=1, ge=1, le=TEXT_MAX_VARIATIONS)
    target_audience: str | None = None
    visual_description: str | None = None
    temperature: float | None = None

    @model_validator(mode="after")
    def _check_platform_limit(self) -> "TextGenerationOptions":
        limit = PLATFORM_CAPTION_LIMITS[self.platform]
        if "max_length" not in self.model_fields_set:
            self.max_length = min(self.max_length, limit)
        elif self.max_length > limit:
            raise ValidationError(
                f"max_length {self.max_length} exceeds the {self.platform.value} "
                f"limit of {limit} characters",
                details={"platform": self.platform.value, "limit": limit},
            )
        return self


class ImageGenerationOptions(BaseModel):
    """Structured options sent to an image provider."""

    canvas_format: str = "instagram-post"
    width: int | None = Field(default=None, gt=0)
    height: int | None = Field(default=None, gt=0)
    style: str | None = None
    model: str | None = None
    seed: int | None = None
    steps: int | None = Field(default=None, gt=0)
    guidance_scale: float | None = Field(default=None, gt=0)
    quality: str | None = None

    @property
    def dimensions(self) -> tuple[int, int]:
        """(width, height), defaulting from the canvas format table."""
        default_width, default_height = dimensions_for_format(self.canvas_format)
        return (self.width or default_width, self.height or default_height)


# =============================================================================
# RESULTS
# =============================================================================

class AIMetadata(BaseModel):
    """Cost and timing metadata attached to every provider result."""

    provider: str
    model: str
    cost: float = Field(default=0.0, ge=0)
    generation_time: float = 0.0
    """Seconds spent in the provider call."""
    generated_at: datetime = Field(default_factory=_utcnow)
    prompt: str | None = None
    parameters: dict[str, Any] = Field(default_factory=dict)


class GeneratedText(BaseModel):
    """Text provider result."""

    content: str
    suggestions: list[str] = Field(default_factory=list)
    hashtags: list[str] = Field(default_factory=list)
    ai_metadata: AIMetadata


class GeneratedImage(BaseModel):
    """Image provider result."""

    id: str
    url: str
    width: int
    height: int
    seed: int | None = None
    ai_metadata: AIMetadata


# =============================================================================
# CAPABILITIES
# =============================================================================

@runtime_checkable
class TextGenerator(Protocol):
    """Capability: turn a prompt into text."""

    name: str

    async def generate_text(
        self,
        prompt: str,
        options: TextGenerationOptions,
        system: str | None = None,
    ) -> GeneratedText:
        ...

    async def enhance_prompt(self, prompt: str) -> str:
        """Rewrite a prompt; returns the input unchanged when enhancement fails."""
        ...


@runtime_checkable
class ImageGenerator(Protocol):
    """Capability: turn a prompt into an image reference."""

    name: str

    async def generate_image(
        self,
        prompt: str,
        options: ImageGenerationOptions,
    ) -> GeneratedImage:
        ...

    async def enhance_prompt(self, prompt: str) -> str:
        """Vendor-side prompt rewrite; returns the input unchanged when unsupported."""
        ...
