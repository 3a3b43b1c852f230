"""Tests for per-slide layout suggestions."""

from __future__ import annotations

from carousel_studio.constants import ColorScheme, FontSizeTier, LayoutType, TextPlacement
from carousel_studio.content import derive_layout
from carousel_studio.content.layout import (
    HIERARCHY_CTA,
    HIERARCHY_EMPHASIS,
    HIERARCHY_ICONS,
    HIERARCHY_LIST,
    HIERARCHY_MAIN_TEXT,
)

MEDIUM_TEXT = "A sentence that is long enough to land between the short and long limits."
LONG_TEXT = "word " * 40


class TestDeriveLayout:
    """Tests for derive_layout."""

    def test_first_slide_is_bold_statement(self):
        layout = derive_layout(LONG_TEXT, 0, 5)

        assert layout.layout_type is LayoutType.BOLD_STATEMENT
        assert layout.text_placement is TextPlacement.CENTER
        assert layout.font_size is FontSizeTier.LARGE
        assert layout.color_scheme is ColorScheme.HIGH_CONTRAST

    def test_last_slide_is_text_focused_with_cta(self):
        layout = derive_layout("Follow for more", 4, 5)

        assert layout.layout_type is LayoutType.TEXT_FOCUSED
        assert layout.color_scheme is ColorScheme.VIBRANT
        assert layout.visual_hierarchy[-1] == HIERARCHY_CTA

    def test_long_middle_slide(self):
        layout = derive_layout(LONG_TEXT, 2, 5)

        assert layout.layout_type is LayoutType.TEXT_FOCUSED
        assert layout.text_placement is TextPlacement.TOP
        assert layout.font_size is FontSizeTier.SMALL
        assert layout.color_scheme is ColorScheme.SUBTLE

    def test_short_middle_slide(self):
        layout = derive_layout("Drink water first", 1, 5)

        assert layout.layout_type is LayoutType.BOLD_STATEMENT
        assert layout.font_size is FontSizeTier.LARGE

    def test_medium_middle_slide_is_split_screen(self):
        assert 60 <= len(MEDIUM_TEXT) <= 120
        layout = derive_layout(MEDIUM_TEXT, 1, 5)

        assert layout.layout_type is LayoutType.SPLIT_SCREEN
        assert layout.text_placement is TextPlacement.LEFT
        assert layout.color_scheme is ColorScheme.MONOCHROME

    def test_hierarchy_order(self):
        layout = derive_layout("🔥 Ready?\n1. Wake up\n2. Stretch", 1, 5)

        assert layout.visual_hierarchy == [
            HIERARCHY_ICONS,
            HIERARCHY_LIST,
            HIERARCHY_EMPHASIS,
            HIERARCHY_MAIN_TEXT,
        ]

    def test_plain_text_hierarchy(self):
        assert derive_layout("Plain words", 1, 3).visual_hierarchy == [HIERARCHY_MAIN_TEXT]

    def test_empty_content(self):
        layout = derive_layout("", 1, 3)

        assert layout.layout_type is LayoutType.BOLD_STATEMENT

    def test_single_slide_is_first(self):
        layout = derive_layout("Only one", 0, 1)

        assert layout.layout_type is LayoutType.BOLD_STATEMENT
        assert HIERARCHY_CTA in layout.visual_hierarchy
