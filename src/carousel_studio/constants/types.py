"""Domain enums for carousel generation.

This module contains the vocabulary shared by the prompt composer, the
providers and the export pipeline:
- Content types (narrative templates)
- Background strategies
- Social platforms and tones of voice
- Layout vocabulary for slide suggestions
- Export types, formats and quality tiers

MODIFICATION GUIDE:
------------------
- ContentType values are keys into the carousel template table; adding one
  requires a template, a keyword set and a CTA list
- Keep enum values in sync with what the text provider is told to return
"""

from enum import Enum


# =============================================================================
# CONTENT
# =============================================================================

class ContentType(str, Enum):
    """Narrative template a carousel topic is classified into."""

    EDUCATIONAL = "educational"
    PROMOTIONAL = "promotional"
    INSPIRATIONAL = "inspirational"
    STORYTELLING = "storytelling"
    TIPS = "tips"


class BackgroundStrategy(str, Enum):
    """How slide backgrounds relate to each other."""

    UNIQUE = "unique"
    """Each slide's background is prompted independently."""

    THEMATIC = "thematic"
    """Slides share one cohesive visual theme."""


class SocialPlatform(str, Enum):
    """Target social platform."""

    INSTAGRAM = "instagram"
    TIKTOK = "tiktok"
    FACEBOOK = "facebook"
    LINKEDIN = "linkedin"
    TWITTER = "twitter"
    YOUTUBE = "youtube"


class ToneOfVoice(str, Enum):
    """Tone requested from the text provider."""

    PROFESSIONAL = "professional"
    CASUAL = "casual"
    FRIENDLY = "friendly"
    AUTHORITATIVE = "authoritative"
    PLAYFUL = "playful"
    INSPIRATIONAL = "inspirational"
    EDUCATIONAL = "educational"


# =============================================================================
# LAYOUT
# =============================================================================

class LayoutType(str, Enum):
    TEXT_FOCUSED = "text-focused"
    IMAGE_OVERLAY = "image-overlay"
    SPLIT_SCREEN = "split-screen"
    MINIMAL = "minimal"
    BOLD_STATEMENT = "bold-statement"


class TextPlacement(str, Enum):
    TOP = "top"
    CENTER = "center"
    BOTTOM = "bottom"
    LEFT = "left"
    RIGHT = "right"


class FontSizeTier(str, Enum):
    LARGE = "large"
    MEDIUM = "medium"
    SMALL = "small"


class ColorScheme(str, Enum):
    HIGH_CONTRAST = "high-contrast"
    MONOCHROME = "monochrome"
    VIBRANT = "vibrant"
    SUBTLE = "subtle"


# =============================================================================
# EXPORT
# =============================================================================

class ExportType(str, Enum):
    INDIVIDUAL = "individual"
    SEQUENCE = "sequence"
    GRID = "grid"


class ExportFormat(str, Enum):
    PNG = "png"
    JPG = "jpg"
    GIF = "gif"
    MP4 = "mp4"


class ExportQuality(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    ULTRA = "ultra"


class TransitionType(str, Enum):
    FADE = "fade"
    SLIDE = "slide"
    ZOOM = "zoom"
