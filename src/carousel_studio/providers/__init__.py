"""AI Providers - Text (Agno) and Image (Runware, Midjourney, OpenAI)."""

from .base import (
    AIMetadata,
    GeneratedImage,
    GeneratedText,
    ImageGenerationOptions,
    ImageGenerator,
    TextGenerationOptions,
    TextGenerator,
)
from .config import ProviderConfig, load_provider_config
from .image import (
    ImageProvider,
    MidjourneyImageProvider,
    OpenAIImageProvider,
    RunwareImageProvider,
)
from .registry import ProviderRegistry
from .text import TextProvider

__all__ = [
    "AIMetadata",
    "GeneratedImage",
    "GeneratedText",
    "ImageGenerationOptions",
    "ImageGenerator",
    "ImageProvider",
    "MidjourneyImageProvider",
    "OpenAIImageProvider",
    "ProviderConfig",
    "ProviderRegistry",
    "RunwareImageProvider",
    "TextGenerationOptions",
    "TextGenerator",
    "TextProvider",
    "load_provider_config",
]
