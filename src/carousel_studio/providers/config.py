"""Provider configuration loading and validation."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

from ..constants import PROVIDER_MAX_RETRIES, PROVIDER_TIMEOUT_SECONDS
from ..errors import ProviderConfigurationError

# Load .env file
load_dotenv()

ImageProviderType = Literal["runware", "midjourney", "openai"]


class ProviderSettings(BaseModel):
    """Global provider settings."""

    timeout_seconds: float = PROVIDER_TIMEOUT_SECONDS
    max_retries: int = PROVIDER_MAX_RETRIES
    retry_delay_seconds: float = 2


class TextProviderConfig(BaseModel):
    """Configuration for a text provider."""

    priority: int
    enabled: bool = True
    litellm_model: str
    base_url: str | None = None
    base_url_env: str | None = None
    api_key: str | None = None
    api_key_env: str | None = None
    timeout: float = 120

    @property
    def model_id(self) -> str:
        """Model id without the vendor prefix ("openai/gpt-4o" -> "gpt-4o")."""
        if "/" in self.litellm_model:
            return self.litellm_model.split("/", 1)[1]
        return self.litellm_model

    def get_api_key(self) -> str | None:
        """Get API key from config or environment."""
        if self.api_key:
            return self.api_key
        if self.api_key_env:
            return os.getenv(self.api_key_env)
        return None

    def get_base_url(self) -> str | None:
        """Get base URL from config or environment."""
        if self.base_url:
            return self.base_url
        if self.base_url_env:
            return os.getenv(self.base_url_env)
        return None


class ImageProviderConfig(BaseModel):
    """Configuration for an image provider."""

    priority: int
    enabled: bool = True
    type: ImageProviderType
    model: str
    api_key: str | None = None
    api_key_env: str | None = None
    base_url: str | None = None
    base_url_env: str | None = None
    timeout: float = 120
    cost_per_image: float = 0.0
    settings: dict[str, Any] = Field(default_factory=dict)

    def get_api_key(self) -> str | None:
        """Get API key from config or environment."""
        if self.api_key:
            return self.api_key
        if self.api_key_env:
            return os.getenv(self.api_key_env)
        return None

    def get_base_url(self) -> str | None:
        """Get base URL from config or environment."""
        if self.base_url:
            return self.base_url
        if self.base_url_env:
            return os.getenv(self.base_url_env)
        return None


class TaskOverride(BaseModel):
    """Task-specific provider override."""

    text_provider: str | None = None
    image_provider: str | None = None
    temperature: float | None = None


class ProviderConfig(BaseModel):
    """Full provider configuration."""

    provider_settings: ProviderSettings = Field(default_factory=ProviderSettings)
    text_providers: dict[str, TextProviderConfig] = Field(default_factory=dict)
    image_providers: dict[str, ImageProviderConfig] = Field(default_factory=dict)
    task_overrides: dict[str, TaskOverride] = Field(default_factory=dict)

    def get_enabled_text_providers(self) -> list[tuple[str, TextProviderConfig]]:
        """Get enabled text providers sorted by priority."""
        enabled = [
            (name, config)
            for name, config in self.text_providers.items()
            if config.enabled
        ]
        return sorted(enabled, key=lambda x: x[1].priority)

    def get_enabled_image_providers(self) -> list[tuple[str, ImageProviderConfig]]:
        """Get enabled image providers sorted by priority."""
        enabled = [
            (name, config)
            for name, config in self.image_providers.items()
            if config.enabled
        ]
        return sorted(enabled, key=lambda x: x[1].priority)

    def resolve_text_provider(
        self, name: str | None = None, task: str | None = None,
    ) -> tuple[str, TextProviderConfig]:
        """Pick a text provider: explicit name, then task override, then priority.

        Raises:
            ProviderConfigurationError: If the name is unknown or nothing is enabled.
        """
        if name:
            config = self.text_providers.get(name.lower())
            if config is None:
                raise ProviderConfigurationError(name, "unknown text provider")
            return (name.lower(), config)

        override = self.task_overrides.get(task) if task else None
        if override and override.text_provider in self.text_providers:
            return (override.text_provider, self.text_providers[override.text_provider])

        # Fall back to priority order
        for name, config in self.get_enabled_text_providers():
            return (name, config)
        raise ProviderConfigurationError("text", "no text providers are enabled")

    def resolve_image_provider(
        self, name: str | None = None, task: str | None = None,
    ) -> tuple[str, ImageProviderConfig]:
        """Pick an image provider: explicit name, then task override, then priority.

        Raises:
            ProviderConfigurationError: If the name is unknown or nothing is enabled.
        """
        if name:
            config = self.image_providers.get(name.lower())
            if config is None:
                raise ProviderConfigurationError(name, "unknown image provider")
            return (name.lower(), config)

        override = self.task_overrides.get(task) if task else None
        if override and override.image_provider in self.image_providers:
            return (override.image_provider, self.image_providers[override.image_provider])

        for name, config in self.get_enabled_image_providers():
            return (name, config)
        raise ProviderConfigurationError("image", "no image providers are enabled")

    def temperature_for_task(self, task: str) -> float | None:
        override = self.task_overrides.get(task)
        return override.temperature if override else None


def load_provider_config(config_path: Path | None = None) -> ProviderConfig:
    """Load provider configuration from YAML file."""
    if config_path is None:
        # Default to config/providers.yaml relative to project root
        config_path = Path(__file__).parent.parent.parent.parent / "config" / "providers.yaml"

    if not config_path.exists():
        # Return default config if file doesn't exist
        return ProviderConfig()

    with open(config_path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    return ProviderConfig(**data)
