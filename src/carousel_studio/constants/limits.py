"""Limit constants for carousel generation.

This module contains all limits and constraints:
- Carousel slide-count bounds
- Per-slide text lengths requested from the text provider
- Platform caption and hashtag limits
- Provider timeouts and concurrency
- Canvas format dimensions
- Export bounds

AI CONTEXT:
-----------
Platform limits come from each platform's published caption rules. The
provider timeout is the upper bound applied around a single text or image
call; anything slower is treated as a retryable timeout.
"""

from typing import Final

from .types import SocialPlatform

# =============================================================================
# CAROUSEL LIMITS
# =============================================================================

CAROUSEL_MIN_SLIDES: Final[int] = 2
"""Minimum slides in a generated carousel."""

CAROUSEL_MAX_SLIDES: Final[int] = 10
"""Maximum slides in a generated carousel."""

CAROUSEL_DEFAULT_SLIDES: Final[int] = 5
"""Slide count used when the request does not name one."""

SLIDE_TITLE_MAX_CHARS: Final[int] = 60
"""Maximum title length requested per slide."""

SLIDE_CONTENT_MAX_CHARS: Final[int] = 150
"""Maximum body length requested per slide."""

SLIDE_MAX_EMOJIS: Final[int] = 3
"""Upper bound on emojis per slide in the prompt instructions."""

CAROUSEL_TEXT_MAX_LENGTH: Final[int] = 2000
"""max_length passed to the text provider for the carousel JSON."""


# =============================================================================
# PLATFORM LIMITS
# =============================================================================

PLATFORM_CAPTION_LIMITS: Final[dict[SocialPlatform, int]] = {
    SocialPlatform.INSTAGRAM: 2200,
    SocialPlatform.TIKTOK: 300,
    SocialPlatform.LINKEDIN: 3000,
    SocialPlatform.FACEBOOK: 63206,
    SocialPlatform.TWITTER: 280,
    SocialPlatform.YOUTUBE: 5000,
}
"""Maximum caption length in characters per platform."""

PLATFORM_HASHTAG_LIMITS: Final[dict[SocialPlatform, int]] = {
    SocialPlatform.INSTAGRAM: 30,
    SocialPlatform.TIKTOK: 5,
    SocialPlatform.LINKEDIN: 5,
    SocialPlatform.FACEBOOK: 10,
    SocialPlatform.TWITTER: 3,
    SocialPlatform.YOUTUBE: 15,
}
"""Maximum hashtags per post per platform."""

DEFAULT_TEXT_MAX_LENGTH: Final[int] = 500
"""max_length used when no platform limit applies."""

TEXT_MAX_VARIATIONS: Final[int] = 3
"""Maximum text variations per request."""


# =============================================================================
# PROVIDER LIMITS
# =============================================================================

PROVIDER_TIMEOUT_SECONDS: Final[float] = 300.0
"""Upper bound for one provider call (text or image)."""

PROVIDER_MAX_RETRIES: Final[int] = 3
"""Attempts for retryable provider failures (timeouts, rate limits)."""

MAX_CONCURRENT_IMAGES: Final[int] = 4
"""Image generations allowed in flight for one carousel."""

DEFAULT_IMAGE_COST_USD: Final[float] = 0.05
"""Cost assumed per image when the provider does not report one."""

DEFAULT_TEXT_COST_USD: Final[float] = 0.02
"""Cost assumed for a text call when the provider does not report one."""


# =============================================================================
# PROGRESS CHECKPOINTS
# =============================================================================

PROGRESS_TEXT_START: Final[int] = 5
PROGRESS_TEXT_DONE: Final[int] = 30
PROGRESS_IMAGES_SPAN: Final[int] = 50
PROGRESS_CANVASES_START: Final[int] = 85
PROGRESS_COMPLETE: Final[int] = 100


# =============================================================================
# CANVAS FORMATS
# =============================================================================

CANVAS_FORMAT_DIMENSIONS: Final[dict[str, tuple[int, int]]] = {
    "instagram-story": (1080, 1920),
    "instagram-post": (1080, 1080),
    "instagram-reel": (1080, 1920),
    "tiktok": (1080, 1920),
    "facebook-post": (1920, 1080),
    "facebook-story": (1080, 1920),
    "linkedin-post": (1920, 1080),
    "twitter-post": (1600, 900),
    "youtube-thumbnail": (1280, 720),
}
"""Pixel dimensions per canvas format."""

DEFAULT_CANVAS_DIMENSIONS: Final[tuple[int, int]] = (1080, 1920)
"""Dimensions for unknown canvas formats."""


def dimensions_for_format(canvas_format: str) -> tuple[int, int]:
    """Resolve a canvas format name to (width, height)."""
    return CANVAS_FORMAT_DIMENSIONS.get(canvas_format, DEFAULT_CANVAS_DIMENSIONS)


# =============================================================================
# EXPORT LIMITS
# =============================================================================

EXPORT_MIN_FPS: Final[int] = 15
EXPORT_MAX_FPS: Final[int] = 60
EXPORT_DEFAULT_FPS: Final[int] = 30

EXPORT_MIN_TRANSITION_MS: Final[int] = 100
EXPORT_MAX_TRANSITION_MS: Final[int] = 5000
EXPORT_DEFAULT_TRANSITION_MS: Final[int] = 500

EXPORT_SLIDE_DURATION_MS: Final[int] = 2000
"""How long each slide is held in a sequence export."""

EXPORT_EXPIRY_DAYS: Final[int] = 7
"""Days before exported files expire."""

EXPORT_QUALITY_JPEG: Final[dict[str, int]] = {
    "low": 60,
    "medium": 75,
    "high": 90,
    "ultra": 100,
}
"""JPEG quality per export quality tier."""
