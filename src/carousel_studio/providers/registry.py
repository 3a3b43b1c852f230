"""Configuration-driven provider selection."""

from __future__ import annotations

import logging

import httpx

from .base import AIEventCallback, ImageGenerator, TextGenerator
from .config import ProviderConfig, load_provider_config
from .image import IMAGE_PROVIDER_TYPES, ImageProvider
from .text import TextProvider

_logger = logging.getLogger("ai_calls")

TEXT_TASK = "carousel_text"
IMAGE_TASK = "carousel_images"


class ProviderRegistry:
    """Builds and caches provider instances from a ProviderConfig.

    Selection order for both capabilities: explicit name, then the task
    override, then the enabled provider with the lowest priority number.

    Usage:
        registry = ProviderRegistry()
        text = registry.text_provider()
        image = registry.image_provider("runware")
    """

    def __init__(
        self,
        config: ProviderConfig | None = None,
        event_callback: AIEventCallback = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.config = config or load_provider_config()
        self._event_callback = event_callback
        self._http_client = http_client
        self._text: dict[str, TextGenerator] = {}
        self._image: dict[str, ImageGenerator] = {}

    def text_provider(self, name: str | None = None, task: str = TEXT_TASK) -> TextGenerator:
        """Resolve a text provider.

        Raises:
            ProviderConfigurationError: If the name is unknown or none is enabled.
        """
        resolved, provider_config = self.config.resolve_text_provider(name, task)
        if resolved not in self._text:
            _logger.debug(f"REGISTRY | text | provider:{resolved} | model:{provider_config.model_id}")
            self._text[resolved] = TextProvider(
                resolved,
                provider_config,
                settings=self.config.provider_settings,
                event_callback=self._event_callback,
            )
        return self._text[resolved]

    def image_provider(self, name: str | None = None, task: str = IMAGE_TASK) -> ImageGenerator:
        """Resolve an image provider.

        Raises:
            ProviderConfigurationError: If the name is unknown or none is enabled.
        """
        resolved, provider_config = self.config.resolve_image_provider(name, task)
        if resolved not in self._image:
            provider_class = IMAGE_PROVIDER_TYPES[provider_config.type]
            _logger.debug(f"REGISTRY | image | provider:{resolved} | type:{provider_config.type}")
            self._image[resolved] = provider_class(
                resolved,
                provider_config,
                settings=self.config.provider_settings,
                event_callback=self._event_callback,
                http_client=self._http_client,
            )
        return self._image[resolved]

    def text_temperature(self, task: str = TEXT_TASK) -> float | None:
        return self.config.temperature_for_task(task)

    async def close(self) -> None:
        """Close HTTP clients owned by image providers."""
        for provider in self._image.values():
            if isinstance(provider, ImageProvider):
                await provider.close()
