"""Carousel prompt domain knowledge: templates, classification, prompts, layouts."""

from .classifier import detect_content_type
from .layout import derive_layout
from .models import (
    CarouselContent,
    CarouselMetadata,
    CarouselPromptOptions,
    CarouselSlide,
    CarouselTemplate,
    SlideLayoutSuggestion,
)
from .prompts import (
    build_system_prompt,
    compose_consistency_prompts,
    compose_prompt,
    compose_prompt_from_options,
    optimize_image_prompt,
    temperature_for_style,
)
from .responses import parse_carousel_content
from .templates import CAROUSEL_TEMPLATES, composition_rules, get_template, recommend_ctas

__all__ = [
    "CAROUSEL_TEMPLATES",
    "CarouselContent",
    "CarouselMetadata",
    "CarouselPromptOptions",
    "CarouselSlide",
    "CarouselTemplate",
    "SlideLayoutSuggestion",
    "build_system_prompt",
    "compose_consistency_prompts",
    "compose_prompt",
    "compose_prompt_from_options",
    "composition_rules",
    "derive_layout",
    "detect_content_type",
    "get_template",
    "optimize_image_prompt",
    "parse_carousel_content",
    "recommend_ctas",
    "temperature_for_style",
]
