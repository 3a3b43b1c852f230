"""Tests for provider configuration and the provider registry."""

from __future__ import annotations

from pathlib import Path

import pytest

from carousel_studio.errors import ProviderConfigurationError
from carousel_studio.providers import (
    MidjourneyImageProvider,
    ProviderConfig,
    ProviderRegistry,
    RunwareImageProvider,
    TextProvider,
    load_provider_config,
)
from carousel_studio.providers.config import (
    ImageProviderConfig,
    TaskOverride,
    TextProviderConfig,
)


@pytest.fixture
def provider_config() -> ProviderConfig:
    return ProviderConfig(
        text_providers={
            "openai": TextProviderConfig(priority=2, litellm_model="openai/gpt-4o-mini", api_key="k"),
            "lmstudio": TextProviderConfig(priority=1, litellm_model="lm_studio/local-model"),
            "groq": TextProviderConfig(priority=0, enabled=False, litellm_model="groq/llama"),
        },
        image_providers={
            "runware": ImageProviderConfig(priority=1, type="runware", model="runware:100@1", api_key="k"),
            "midjourney": ImageProviderConfig(priority=2, type="midjourney", model="v6", api_key="k"),
        },
        task_overrides={
            "text": TaskOverride(text_provider="openai", temperature=0.2),
            "carousel_images": TaskOverride(image_provider="midjourney"),
        },
    )


class TestProviderConfig:
    """Tests for provider resolution rules."""

    def test_priority_order_skips_disabled(self, provider_config: ProviderConfig):
        name, _ = provider_config.resolve_text_provider()

        assert name == "lmstudio"

    def test_explicit_name_wins(self, provider_config: ProviderConfig):
        name, config = provider_config.resolve_text_provider("OpenAI", task="text")

        assert name == "openai"
        assert config.model_id == "gpt-4o-mini"

    def test_task_override(self, provider_config: ProviderConfig):
        assert provider_config.resolve_text_provider(task="text")[0] == "openai"
        assert provider_config.resolve_image_provider(task="carousel_images")[0] == "midjourney"
        assert provider_config.resolve_image_provider(task="other")[0] == "runware"

    def test_unknown_name(self, provider_config: ProviderConfig):
        with pytest.raises(ProviderConfigurationError) as exc_info:
            provider_config.resolve_image_provider("dalle")

        assert exc_info.value.error_type == "configuration_error"
        assert exc_info.value.retryable is False

    def test_nothing_enabled(self):
        with pytest.raises(ProviderConfigurationError):
            ProviderConfig().resolve_text_provider()

    def test_temperature_for_task(self, provider_config: ProviderConfig):
        assert provider_config.temperature_for_task("text") == 0.2
        assert provider_config.temperature_for_task("carousel_text") is None

    def test_api_key_from_environment(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("TEST_RUNWARE_KEY", "from-env")
        config = ImageProviderConfig(priority=1, type="runware", model="m", api_key_env="TEST_RUNWARE_KEY")

        assert config.get_api_key() == "from-env"

    def test_model_id_without_prefix(self):
        assert TextProviderConfig(priority=1, litellm_model="plain-model").model_id == "plain-model"


class TestLoadProviderConfig:
    """Tests for YAML loading."""

    def test_missing_file_gives_empty_config(self, tmp_path: Path):
        config = load_provider_config(tmp_path / "missing.yaml")

        assert config.text_providers == {}
        assert config.provider_settings.max_retries == 3

    def test_loads_yaml(self, tmp_path: Path):
        path = tmp_path / "providers.yaml"
        path.write_text(
            "provider_settings:\n"
            "  max_retries: 5\n"
            "text_providers:\n"
            "  openai:\n"
            "    priority: 1\n"
            "    litellm_model: openai/gpt-4o\n"
            "image_providers:\n"
            "  runware:\n"
            "    priority: 1\n"
            "    type: runware\n"
            "    model: runware:100@1\n"
            "    settings:\n"
            "      steps: 30\n",
            encoding="utf-8",
        )

        config = load_provider_config(path)

        assert config.provider_settings.max_retries == 5
        assert config.text_providers["openai"].model_id == "gpt-4o"
        assert config.image_providers["runware"].settings == {"steps": 30}

    def test_bundled_config_loads(self):
        config = load_provider_config()

        assert config.text_providers
        assert config.image_providers


class TestProviderRegistry:
    """Tests for ProviderRegistry."""

    def test_text_provider_cached(self, provider_config: ProviderConfig):
        registry = ProviderRegistry(provider_config)

        first = registry.text_provider()
        second = registry.text_provider("lmstudio")

        assert isinstance(first, TextProvider)
        assert first is second
        assert first.name == "lmstudio"

    def test_image_provider_type(self, provider_config: ProviderConfig):
        registry = ProviderRegistry(provider_config)

        assert isinstance(registry.image_provider("runware"), RunwareImageProvider)
        assert isinstance(registry.image_provider(), MidjourneyImageProvider)

    def test_text_temperature(self, provider_config: ProviderConfig):
        registry = ProviderRegistry(provider_config)

        assert registry.text_temperature("text") == 0.2

    @pytest.mark.asyncio
    async def test_close_closes_owned_clients(self, provider_config: ProviderConfig):
        registry = ProviderRegistry(provider_config)
        provider = registry.image_provider("runware")
        client = await provider._get_http_client()

        await registry.close()

        assert client.is_closed
