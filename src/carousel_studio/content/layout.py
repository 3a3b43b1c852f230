"""Per-slide layout suggestions derived from generated content."""

from __future__ import annotations

import re
from typing import Final

from ..constants import ColorScheme, FontSizeTier, LayoutType, TextPlacement
from .models import SlideLayoutSuggestion

LONG_CONTENT_CHARS: Final[int] = 120
SHORT_CONTENT_CHARS: Final[int] = 60

HIERARCHY_ICONS: Final[str] = "emoji and icon accents"
HIERARCHY_LIST: Final[str] = "list structure"
HIERARCHY_EMPHASIS: Final[str] = "question or exclamation emphasis"
HIERARCHY_MAIN_TEXT: Final[str] = "main text content"
HIERARCHY_CTA: Final[str] = "call-to-action"

_EMOJI_PATTERN = re.compile(
    "["
    "\U0001F300-\U0001FAFF"  # symbols, pictographs, emoticons, transport
    "☀-➿"  # misc symbols, dingbats
    "⭐⭕"  # stars, circles
    "←-⇿"  # arrows
    "✅✔✖❌"  # check and cross marks
    "]"
)
_LIST_PATTERN = re.compile(r"(?m)^\s*(?:[-•*]|\d+[.)])\s+")


def _visual_hierarchy(content: str, is_last: bool) -> list[str]:
    hierarchy: list[str] = []
    if _EMOJI_PATTERN.search(content):
        hierarchy.append(HIERARCHY_ICONS)
    if _LIST_PATTERN.search(content):
        hierarchy.append(HIERARCHY_LIST)
    if "?" in content or "!" in content:
        hierarchy.append(HIERARCHY_EMPHASIS)
    hierarchy.append(HIERARCHY_MAIN_TEXT)
    if is_last:
        hierarchy.append(HIERARCHY_CTA)
    return hierarchy


def derive_layout(content: str, slide_index: int, total_slides: int) -> SlideLayoutSuggestion:
    """Suggest a layout for one slide.

    The first slide is a bold statement and the last slide is text focused.
    Middle slides are chosen by content length: long text goes to the top in
    small type, short text becomes a bold statement, anything in between is
    split screen.

    Args:
        content: The slide body text.
        slide_index: 0-based position of the slide.
        total_slides: Number of slides in the carousel.

    Returns:
        SlideLayoutSuggestion for the slide.
    """
    content = content or ""
    is_first = slide_index == 0
    is_last = slide_index == total_slides - 1
    hierarchy = _visual_hierarchy(content, is_last)

    if is_first:
        return SlideLayoutSuggestion(
            layout_type=LayoutType.BOLD_STATEMENT,
            text_placement=TextPlacement.CENTER,
            font_size=FontSizeTier.LARGE,
            color_scheme=ColorScheme.HIGH_CONTRAST,
            visual_hierarchy=hierarchy,
        )
    if is_last:
        return SlideLayoutSuggestion(
            layout_type=LayoutType.TEXT_FOCUSED,
            text_placement=TextPlacement.CENTER,
            font_size=FontSizeTier.MEDIUM,
            color_scheme=ColorScheme.VIBRANT,
            visual_hierarchy=hierarchy,
        )
    if len(content) > LONG_CONTENT_CHARS:
        return SlideLayoutSuggestion(
            layout_type=LayoutType.TEXT_FOCUSED,
            text_placement=TextPlacement.TOP,
            font_size=FontSizeTier.SMALL,
            color_scheme=ColorScheme.SUBTLE,
            visual_hierarchy=hierarchy,
        )
    if len(content) < SHORT_CONTENT_CHARS:
        return SlideLayoutSuggestion(
            layout_type=LayoutType.BOLD_STATEMENT,
            text_placement=TextPlacement.CENTER,
            font_size=FontSizeTier.LARGE,
            color_scheme=ColorScheme.HIGH_CONTRAST,
            visual_hierarchy=hierarchy,
        )
    return SlideLayoutSuggestion(
        layout_type=LayoutType.SPLIT_SCREEN,
        text_placement=TextPlacement.LEFT,
        font_size=FontSizeTier.MEDIUM,
        color_scheme=ColorScheme.MONOCHROME,
        visual_hierarchy=hierarchy,
    )
