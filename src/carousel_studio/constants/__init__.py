"""Global constants package for Carousel Studio.

This package centralizes the enums, limits and lookup tables used across
the project. Import from here for consistency.

PACKAGE STRUCTURE:
-----------------
- status.py   : Generation lifecycle, sub-phases, transition table
- types.py    : Content types, strategies, platforms, export vocabulary
- limits.py   : Slide bounds, platform limits, timeouts, canvas formats

USAGE EXAMPLES:
--------------
    from carousel_studio.constants import GenerationStatus, ContentType
    from carousel_studio.constants import PLATFORM_CAPTION_LIMITS
"""

from .status import (
    ALLOWED_TRANSITIONS,
    COMPLETION_STEPS,
    STEP_ORDER,
    TERMINAL_STATUSES,
    ExportPhase,
    GenerationStatus,
    GenerationStep,
    GenerationType,
    can_complete_from,
    is_transition_allowed,
)
from .types import (
    BackgroundStrategy,
    ColorScheme,
    ContentType,
    ExportFormat,
    ExportQuality,
    ExportType,
    FontSizeTier,
    LayoutType,
    SocialPlatform,
    TextPlacement,
    ToneOfVoice,
    TransitionType,
)
from .limits import (
    CANVAS_FORMAT_DIMENSIONS,
    CAROUSEL_DEFAULT_SLIDES,
    CAROUSEL_MAX_SLIDES,
    CAROUSEL_MIN_SLIDES,
    CAROUSEL_TEXT_MAX_LENGTH,
    DEFAULT_IMAGE_COST_USD,
    DEFAULT_TEXT_COST_USD,
    DEFAULT_TEXT_MAX_LENGTH,
    EXPORT_DEFAULT_FPS,
    EXPORT_DEFAULT_TRANSITION_MS,
    EXPORT_EXPIRY_DAYS,
    EXPORT_MAX_FPS,
    EXPORT_MAX_TRANSITION_MS,
    EXPORT_MIN_FPS,
    EXPORT_MIN_TRANSITION_MS,
    EXPORT_QUALITY_JPEG,
    EXPORT_SLIDE_DURATION_MS,
    MAX_CONCURRENT_IMAGES,
    PLATFORM_CAPTION_LIMITS,
    PLATFORM_HASHTAG_LIMITS,
    PROGRESS_CANVASES_START,
    PROGRESS_COMPLETE,
    PROGRESS_IMAGES_SPAN,
    PROGRESS_TEXT_DONE,
    PROGRESS_TEXT_START,
    PROVIDER_MAX_RETRIES,
    PROVIDER_TIMEOUT_SECONDS,
    SLIDE_CONTENT_MAX_CHARS,
    SLIDE_MAX_EMOJIS,
    SLIDE_TITLE_MAX_CHARS,
    TEXT_MAX_VARIATIONS,
    dimensions_for_format,
)

__all__ = [
    # Status
    "ALLOWED_TRANSITIONS",
    "COMPLETION_STEPS",
    "STEP_ORDER",
    "TERMINAL_STATUSES",
    "ExportPhase",
    "GenerationStatus",
    "GenerationStep",
    "GenerationType",
    "can_complete_from",
    "is_transition_allowed",
    # Types
    "BackgroundStrategy",
    "ColorScheme",
    "ContentType",
    "ExportFormat",
    "ExportQuality",
    "ExportType",
    "FontSizeTier",
    "LayoutType",
    "SocialPlatform",
    "TextPlacement",
    "ToneOfVoice",
    "TransitionType",
    # Limits
    "CANVAS_FORMAT_DIMENSIONS",
    "CAROUSEL_DEFAULT_SLIDES",
    "CAROUSEL_MAX_SLIDES",
    "CAROUSEL_MIN_SLIDES",
    "CAROUSEL_TEXT_MAX_LENGTH",
    "DEFAULT_IMAGE_COST_USD",
    "DEFAULT_TEXT_COST_USD",
    "DEFAULT_TEXT_MAX_LENGTH",
    "EXPORT_DEFAULT_FPS",
    "EXPORT_DEFAULT_TRANSITION_MS",
    "EXPORT_EXPIRY_DAYS",
    "EXPORT_MAX_FPS",
    "EXPORT_MAX_TRANSITION_MS",
    "EXPORT_MIN_FPS",
    "EXPORT_MIN_TRANSITION_MS",
    "EXPORT_QUALITY_JPEG",
    "EXPORT_SLIDE_DURATION_MS",
    "MAX_CONCURRENT_IMAGES",
    "PLATFORM_CAPTION_LIMITS",
    "PLATFORM_HASHTAG_LIMITS",
    "PROGRESS_CANVASES_START",
    "PROGRESS_COMPLETE",
    "PROGRESS_IMAGES_SPAN",
    "PROGRESS_TEXT_DONE",
    "PROGRESS_TEXT_START",
    "PROVIDER_MAX_RETRIES",
    "PROVIDER_TIMEOUT_SECONDS",
    "SLIDE_CONTENT_MAX_CHARS",
    "SLIDE_MAX_EMOJIS",
    "SLIDE_TITLE_MAX_CHARS",
    "TEXT_MAX_VARIATIONS",
    "dimensions_for_format",
]
