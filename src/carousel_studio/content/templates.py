"""Carousel templates, CTA tables and platform rules.

This module is the prompt composer's reference data:
- CAROUSEL_TEMPLATES: one narrative template per content type
- CTA_RECOMMENDATIONS: ordered call-to-action suggestions per content type
- COMPOSITION_RULES: visual composition rules recorded with a generation
- PLATFORM_CONFIGS: caption/hashtag rules per social platform

MODIFICATION GUIDE:
------------------
- Every ContentType needs an entry in CAROUSEL_TEMPLATES, CTA_RECOMMENDATIONS
  and COMPOSITION_RULES. Lookups for unknown types fall back to educational.
- Template structure lines are rendered as a numbered list and content
  patterns as bullets in the structured prompt, in the order given here.
"""

from __future__ import annotations

from typing import Final

from ..constants import (
    PLATFORM_CAPTION_LIMITS,
    PLATFORM_HASHTAG_LIMITS,
    ContentType,
    SocialPlatform,
)
from .models import CarouselTemplate, PlatformTextConfig

# =============================================================================
# CAROUSEL TEMPLATES
# =============================================================================

CAROUSEL_TEMPLATES: Final[dict[ContentType, CarouselTemplate]] = {
    ContentType.EDUCATIONAL: CarouselTemplate(
        name="Educational Tips",
        description="Step-by-step learning content",
        structure=(
            "Hook slide with compelling question or statistic",
            "Problem identification slide",
            "Solution steps (3-5 slides)",
            "Implementation slide",
            "Call-to-action slide",
        ),
        tone_guidelines="Clear, authoritative, helpful, encouraging",
        content_patterns=(
            "Use numbered lists for steps",
            "Include actionable takeaways",
            'Start with "How to" or "Why" questions',
            "End with clear next steps",
        ),
    ),
    ContentType.PROMOTIONAL: CarouselTemplate(
        name="Product/Service Promotion",
        description="Showcase benefits and drive conversion",
        structure=(
            "Problem statement or pain point",
            "Solution introduction",
            "Key benefits (2-3 slides)",
            "Social proof or testimonial",
            "Strong call-to-action",
        ),
        tone_guidelines="Persuasive, benefit-focused, urgent but not pushy",
        content_patterns=(
            "Lead with customer pain points",
            "Focus on transformation outcomes",
            "Use power words and emotional triggers",
            "Include specific benefits, not just features",
        ),
    ),
    ContentType.INSPIRATIONAL: CarouselTemplate(
        name="Motivational Content",
        description="Inspire and motivate audience",
        structure=(
            "Relatable struggle or challenge",
            "Mindset shift or reframe",
            "Actionable inspiration (2-3 slides)",
            "Success story or example",
            "Empowering call-to-action",
        ),
        tone_guidelines="Uplifting, empathetic, empowering, authentic",
        content_patterns=(
            "Use personal stories or relatable scenarios",
            "Include motivational quotes or mantras",
            "Focus on possibility and growth",
            "End with encouragement to take action",
        ),
    ),
    ContentType.STORYTELLING: CarouselTemplate(
        name="Story-Based Content",
        description="Engage through narrative",
        structure=(
            "Setting the scene",
            "Character introduction or challenge",
            "Conflict or turning point",
            "Resolution or lesson learned",
            "Takeaway or moral",
        ),
        tone_guidelines="Narrative, engaging, authentic, conversational",
        content_patterns=(
            "Use storytelling arc structure",
            "Include sensory details",
            "Create emotional connection",
            "Extract clear lessons or insights",
        ),
    ),
    ContentType.TIPS: CarouselTemplate(
        name="Quick Tips & Hacks",
        description="Actionable advice and life hacks",
        structure=(
            "Introduction to topic/problem",
            "Quick tip #1 with explanation",
            "Quick tip #2 with explanation",
            "Quick tip #3 with explanation",
            "Summary and encouragement to implement",
        ),
        tone_guidelines="Practical, concise, actionable, friendly",
        content_patterns=(
            "Keep each tip simple and actionable",
            "Use specific examples or scenarios",
            "Include why each tip works",
            "Focus on immediate implementation",
        ),
    ),
}


def get_template(content_type: ContentType | str) -> CarouselTemplate:
    """Template for a content type, educational when unknown."""
    try:
        return CAROUSEL_TEMPLATES[ContentType(content_type)]
    except ValueError:
        return CAROUSEL_TEMPLATES[ContentType.EDUCATIONAL]


# =============================================================================
# CALLS TO ACTION
# =============================================================================

CTA_RECOMMENDATIONS: Final[dict[ContentType, tuple[str, ...]]] = {
    ContentType.EDUCATIONAL: (
        "Try this today!",
        "Which tip will you implement first?",
        "Save this for later!",
        "Share your results in comments",
        "What's your experience?",
    ),
    ContentType.PROMOTIONAL: (
        "Get started today!",
        "Claim your discount now",
        "Link in bio for more info",
        "Don't miss out!",
        "Ready to transform?",
    ),
    ContentType.INSPIRATIONAL: (
        "You've got this!",
        "Start your journey today",
        "Believe in yourself",
        "Take the first step",
        "Your time is now",
    ),
    ContentType.STORYTELLING: (
        "What's your story?",
        "Share your experience",
        "Can you relate?",
        "How does this resonate?",
        "What would you do?",
    ),
    ContentType.TIPS: (
        "Try tip #1 first!",
        "Which tip surprised you?",
        "Bookmark for later",
        "Share your favorite tip",
        "More tips in bio!",
    ),
}


def recommend_ctas(content_type: ContentType | str) -> list[str]:
    """Ordered call-to-action suggestions for a content type.

    Unknown content types get the educational set.
    """
    try:
        key = ContentType(content_type)
    except ValueError:
        key = ContentType.EDUCATIONAL
    return list(CTA_RECOMMENDATIONS[key])


# =============================================================================
# COMPOSITION RULES
# =============================================================================

_BASE_COMPOSITION_RULES: Final[tuple[str, ...]] = (
    "Keep text inside the central 80% safe area",
    "Maintain at least 4.5:1 contrast between text and background",
    "Use at most two font families across the carousel",
    "Repeat the same margins and title position on every slide",
)

COMPOSITION_RULES: Final[dict[ContentType, tuple[str, ...]]] = {
    ContentType.EDUCATIONAL: (
        "Number each step prominently",
        "Reserve the lower third for the takeaway line",
        "Use icons to mark key concepts",
    ),
    ContentType.PROMOTIONAL: (
        "Place the product or benefit visual above the fold",
        "Highlight the offer with the accent colour",
        "Give the final slide a single dominant call-to-action",
    ),
    ContentType.INSPIRATIONAL: (
        "Let the quote or mantra fill most of the slide",
        "Prefer soft gradients and warm light in backgrounds",
        "Keep supporting text small and understated",
    ),
    ContentType.STORYTELLING: (
        "Carry one visual motif through every slide",
        "Shift background mood to follow the story arc",
        "Use the final slide for the moral in large type",
    ),
    ContentType.TIPS: (
        "Give every tip its own slide with a large tip number",
        "Pair each tip with one supporting visual",
        "Keep explanations to two short lines",
    ),
}


def composition_rules(content_type: ContentType | str) -> list[str]:
    """Visual composition rules recorded in a completed generation's metadata."""
    try:
        key = ContentType(content_type)
    except ValueError:
        key = ContentType.EDUCATIONAL
    return list(_BASE_COMPOSITION_RULES) + list(COMPOSITION_RULES[key])


# =============================================================================
# PLATFORM RULES
# =============================================================================

def _platform(
    platform: SocialPlatform,
    hashtag_style: str,
    common_patterns: tuple[str, ...],
    engagement_triggers: tuple[str, ...],
    restrictions: tuple[str, ...],
) -> PlatformTextConfig:
    return PlatformTextConfig(
        platform=platform,
        max_caption_length=PLATFORM_CAPTION_LIMITS[platform],
        max_hashtags=PLATFORM_HASHTAG_LIMITS[platform],
        hashtag_style=hashtag_style,
        common_patterns=common_patterns,
        engagement_triggers=engagement_triggers,
        restrictions=restrictions,
    )


PLATFORM_CONFIGS: Final[dict[SocialPlatform, PlatformTextConfig]] = {
    SocialPlatform.INSTAGRAM: _platform(
        SocialPlatform.INSTAGRAM,
        "separate",
        ("✨", "💫", "🌟"),
        ("Double tap if", "Tag someone who", "Share in your stories"),
        ("No excessive caps", "Avoid spam words"),
    ),
    SocialPlatform.TIKTOK: _platform(
        SocialPlatform.TIKTOK,
        "inline",
        ("POV:", "When you", "How to"),
        ("Duet this", "Try this", "What do you think?"),
        ("Keep it short", "Use trending sounds reference"),
    ),
    SocialPlatform.LINKEDIN: _platform(
        SocialPlatform.LINKEDIN,
        "separate",
        ("Key insight:", "Lessons learned:", "Industry update:"),
        ("What are your thoughts?", "Have you experienced this?", "Share your experience"),
        ("Professional tone", "No excessive emojis"),
    ),
    SocialPlatform.FACEBOOK: _platform(
        SocialPlatform.FACEBOOK,
        "both",
        ("Check this out", "What do you think?", "Share your thoughts"),
        ("React if you agree", "Comment below", "Share with friends"),
        ("Avoid clickbait", "Keep engaging"),
    ),
    SocialPlatform.TWITTER: _platform(
        SocialPlatform.TWITTER,
        "inline",
        ("Thread 🧵", "Hot take:", "Unpopular opinion:"),
        ("Retweet if", "Reply with", "What are your thoughts?"),
        ("Character limit", "No excessive hashtags"),
    ),
    SocialPlatform.YOUTUBE: _platform(
        SocialPlatform.YOUTUBE,
        "separate",
        ("Don't forget to", "Make sure to", "Let me know"),
        ("Like and subscribe", "Comment below", "Hit the notification bell"),
        ("Include call-to-action", "Encourage engagement"),
    ),
}
