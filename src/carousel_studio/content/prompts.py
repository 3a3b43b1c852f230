"""Structured prompt composition for carousel generation.

All functions here are pure string transforms: no I/O, no exceptions for
well-typed input.

AI CONTEXT:
-----------
compose_prompt() produces the exact prompt sent to the text provider. The
provider is asked for STRICT JSON with exactly `slide_count` slide objects
(see RESPONSE FORMAT in the prompt); content/responses.py parses it back.
compose_consistency_prompts() turns the per-slide backgroundPrompt values
into image prompts, adding a shared theme clause for the thematic strategy.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

from ..constants import (
    SLIDE_CONTENT_MAX_CHARS,
    SLIDE_TITLE_MAX_CHARS,
    BackgroundStrategy,
    ContentType,
    SocialPlatform,
)
from .models import CarouselPromptOptions
from .templates import PLATFORM_CONFIGS, get_template

if TYPE_CHECKING:
    from ..providers.base import TextGenerationOptions

DEFAULT_BASE_STYLE: Final[str] = "modern and professional"

IMAGE_QUALITY_TAGS: Final[tuple[str, ...]] = (
    "high resolution",
    "professional quality",
    "Instagram optimized",
    "clean composition",
    "vibrant colors",
    "modern aesthetic",
)

_BACKGROUND_INSTRUCTIONS: Final[dict[BackgroundStrategy, str]] = {
    BackgroundStrategy.THEMATIC: (
        "• Create cohesive visual theme with consistent color palette, style, and mood\n"
        "• Background prompts should complement each other visually"
    ),
    BackgroundStrategy.UNIQUE: (
        "• Create unique, varied backgrounds that match each slide's specific content\n"
        "• Ensure visual diversity while maintaining professional quality"
    ),
}


# =============================================================================
# TEXT PROMPT
# =============================================================================

def compose_prompt(
    topic: str,
    slide_count: int,
    background_strategy: BackgroundStrategy | str,
    tone: str,
    target_audience: str,
    style: str,
    content_type: ContentType | str,
) -> str:
    """Build the structured carousel prompt for the text provider.

    Args:
        topic: The user's topic.
        slide_count: Exact number of slides to request.
        background_strategy: unique or thematic.
        tone: Tone of voice.
        target_audience: Who the carousel is for.
        style: Free-text style description.
        content_type: Selects the narrative template.

    Returns:
        The prompt text.
    """
    template = get_template(content_type)
    strategy = BackgroundStrategy(background_strategy)

    structure = "\n".join(
        f"{index}. {item}" for index, item in enumerate(template.structure, start=1)
    )
    patterns = "\n".join(f"• {pattern}" for pattern in template.content_patterns)

    return f"""You are an expert Instagram carousel creator. Create a {slide_count}-slide Instagram carousel on the topic: "{topic}"

CONTENT TYPE: {template.name}
TARGET: {target_audience}
TONE: {tone} ({template.tone_guidelines})
STYLE: {style}

STRUCTURAL GUIDELINES:
{structure}

CONTENT PATTERNS TO FOLLOW:
{patterns}

SLIDE SPECIFICATIONS:
- Each slide must have a clear, specific purpose
- Titles: Attention-grabbing, max {SLIDE_TITLE_MAX_CHARS} characters
- Content: Concise but valuable, max {SLIDE_CONTENT_MAX_CHARS} characters per slide
- Include strategic use of emojis (2-3 per slide max)
- Maintain consistent voice throughout
- Create logical flow between slides

BACKGROUND STRATEGY: {strategy.value}
{_BACKGROUND_INSTRUCTIONS[strategy]}

INSTAGRAM OPTIMIZATION:
- Hook readers within first 2 slides
- Use carousel-specific engagement tactics
- Include clear value proposition
- End with strong call-to-action
- Optimize for mobile viewing
- Consider swipe-through psychology

RESPONSE FORMAT (STRICT JSON):
{{
  "slides": [
    {{
      "slideNumber": 1,
      "title": "Attention-grabbing title",
      "subtitle": "Supporting subtitle (optional)",
      "content": "Main slide content with clear value",
      "cta": "Action-oriented text (if applicable)",
      "backgroundPrompt": "Detailed visual description for {strategy.value} background generation",
      "designNotes": "Layout and visual hierarchy suggestions",
      "engagementTactics": "Psychological or engagement elements for this slide"
    }}
  ],
  "carouselMetadata": {{
    "overallTheme": "Central theme description",
    "contentFlow": "How slides connect and flow",
    "targetEngagement": "Expected user behavior and engagement",
    "hashtagSuggestions": ["#relevant", "#hashtags", "#forContent"],
    "visualConsistency": "Guidelines for visual coherence"
  }}
}}

Create exactly {slide_count} slides following this structure. Ensure each slide builds upon the previous one and creates a cohesive, engaging carousel experience."""


def compose_prompt_from_options(options: CarouselPromptOptions) -> str:
    """compose_prompt() for a validated options model."""
    return compose_prompt(
        topic=options.topic,
        slide_count=options.slide_count,
        background_strategy=options.background_strategy,
        tone=options.tone,
        target_audience=options.target_audience,
        style=options.style,
        content_type=options.content_type,
    )


# =============================================================================
# IMAGE PROMPTS
# =============================================================================

def compose_consistency_prompts(
    slide_prompts: list[str],
    strategy: BackgroundStrategy | str,
    base_style: str = DEFAULT_BASE_STYLE,
) -> list[str]:
    """Turn per-slide background prompts into image prompts.

    unique: each prompt gets the base style and quality tags on its own.
    thematic: every prompt also gets a shared theme clause naming its
    position in the series.
    """
    if BackgroundStrategy(strategy) is BackgroundStrategy.UNIQUE:
        return [
            f"{prompt}, {base_style}, high quality, Instagram-optimized composition"
            for prompt in slide_prompts
        ]

    theme_elements = (
        f"{base_style}, consistent color palette, cohesive visual style, "
        "professional lighting, Instagram carousel optimized"
    )
    return [
        f"{prompt}, {theme_elements}, slide {index} of cohesive series, "
        f"maintaining visual consistency while highlighting: {prompt}"
        for index, prompt in enumerate(slide_prompts, start=1)
    ]


def optimize_image_prompt(prompt: str, slide_context: str | None = None) -> str:
    """Append the image-model quality tags (and slide context) to a prompt."""
    parts = [prompt]
    if slide_context:
        parts.append(slide_context)
    parts.extend(IMAGE_QUALITY_TAGS)
    return ", ".join(parts)


# =============================================================================
# SYSTEM PROMPT
# =============================================================================

def build_system_prompt(options: "TextGenerationOptions") -> str:
    """Platform-aware system prompt sent alongside the composed prompt."""
    platform = SocialPlatform(options.platform)
    config = PLATFORM_CONFIGS[platform]
    tone = getattr(options.tone, "value", options.tone)

    return f"""You are an expert social media content creator specializing in {platform.value}.

Your expertise includes:
- Platform-specific best practices and character limits
- Engagement optimization techniques
- Hashtag research and strategy
- Brand voice consistency
- Current trends and viral content patterns

Always follow these platform guidelines:
- Maximum caption length: {config.max_caption_length} characters
- Maximum hashtags: {config.max_hashtags}
- Hashtag style: {config.hashtag_style}
- Common engagement patterns: {', '.join(config.common_patterns)}
- Engagement triggers: {', '.join(config.engagement_triggers)}

Tone of voice: {tone}
Style: {options.style or 'engaging'}
Language: {options.language or 'English'}
Include emojis: {'Yes' if options.include_emojis else 'No'}

Generate content that is authentic, engaging, and optimized for {platform.value} algorithm.
Always stay within character limits and follow platform best practices."""


def enhance_prompt_with_context(prompt: str, options: "TextGenerationOptions") -> str:
    """Append visual and audience context lines when the options carry them."""
    context = []
    if options.visual_description:
        context.append(f"Visual context: {options.visual_description}")
    if options.target_audience:
        context.append(f"Target audience: {options.target_audience}")
    if not context:
        return prompt

    joined = "\n".join(context)
    return (
        f"{prompt}\n\n{joined}\n\n"
        "Create content that connects the visual elements with the brand message "
        "for maximum engagement."
    )


# =============================================================================
# PROMPT ENHANCEMENT
# =============================================================================

PROMPT_ENHANCER_SYSTEM: Final[str] = (
    "You are an expert at optimizing prompts for social media content creation. "
    "Enhance the given prompt to make it more specific, engaging, and effective "
    "for AI text generation. Reply with the enhanced prompt only."
)

PROMPT_ENHANCER_TEMPERATURE: Final[float] = 0.3


def build_enhance_request(prompt: str) -> str:
    """User message asking a text model to rewrite a prompt."""
    return f'Enhance this prompt for better social media content generation: "{prompt}"'


def clean_enhanced_prompt(text: str, fallback: str) -> str:
    """Strip wrapping quotes from a rewritten prompt; empty replies keep the original."""
    cleaned = text.strip().strip('"').strip()
    return cleaned or fallback


def temperature_for_style(style: str | None) -> float:
    """Sampling temperature for a writing style."""
    if style in ("formal", "professional"):
        return 0.3
    if style in ("creative", "engaging"):
        return 0.8
    if style == "casual":
        return 0.6
    return 0.7
