"""Shared test fixtures and configuration.

Provides file-backed stores under tmp_path, a deterministic clock and fake
text/image providers. Provider fakes are async-compatible so they can be
driven by the orchestrator exactly like the real ones.
"""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable
from unittest.mock import AsyncMock

import pytest

from carousel_studio.generation import GenerationService, JsonGenerationStore
from carousel_studio.projects import ProjectStore
from carousel_studio.providers import (
    AIMetadata,
    GeneratedImage,
    GeneratedText,
    ImageGenerationOptions,
)
from carousel_studio.settings import Settings


# =============================================================================
# Clock
# =============================================================================

class FakeClock:
    """Returns a strictly increasing timestamp on every call."""

    def __init__(self, start: datetime | None = None, step: timedelta = timedelta(seconds=1)):
        self.current = start or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
        self.step = step

    def __call__(self) -> datetime:
        self.current += self.step
        return self.current


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# =============================================================================
# Stores and services
# =============================================================================

@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings pointing every directory into tmp_path."""
    return Settings(
        data_dir=tmp_path / "data",
        export_dir=tmp_path / "exports",
        log_dir=tmp_path / "logs",
        provider_timeout_seconds=5,
        max_concurrent_images=2,
    )


@pytest.fixture
def project_store(settings: Settings, clock: FakeClock) -> ProjectStore:
    return ProjectStore(settings.projects_dir, clock=clock)


@pytest.fixture
def generation_store(settings: Settings) -> JsonGenerationStore:
    return JsonGenerationStore(settings.generations_dir)


@pytest.fixture
def service(
    generation_store: JsonGenerationStore,
    project_store: ProjectStore,
    clock: FakeClock,
) -> GenerationService:
    return GenerationService(generation_store, project_store, clock=clock)


# =============================================================================
# Carousel content
# =============================================================================

def make_carousel_json(slide_count: int, hashtags: list[str] | None = None) -> str:
    """Carousel JSON shaped like a text provider response (camelCase keys)."""
    slides = []
    for number in range(1, slide_count + 1):
        slides.append({
            "slideNumber": number,
            "title": f"Slide {number} title",
            "subtitle": f"Subtitle {number}" if number == 1 else None,
            "content": f"Content for slide {number}. Keep it short!",
            "cta": "Save this for later!" if number == slide_count else None,
            "backgroundPrompt": f"Background for slide {number}",
            "designNotes": "Centered text",
            "engagementTactics": "Curiosity gap",
        })
    return json.dumps({
        "slides": slides,
        "carouselMetadata": {
            "overallTheme": "Morning energy",
            "contentFlow": "Problem to solution",
            "targetEngagement": "Saves and shares",
            "hashtagSuggestions": hashtags if hashtags is not None else ["#morning", "#routine"],
            "visualConsistency": "Warm sunrise palette",
        },
    })


@pytest.fixture
def carousel_json() -> Callable[..., str]:
    return make_carousel_json


def make_generated_text(content: str, cost: float = 0.01, provider: str = "mock-text") -> GeneratedText:
    return GeneratedText(
        content=content,
        suggestions=[content],
        hashtags=[],
        ai_metadata=AIMetadata(provider=provider, model="mock-model", cost=cost, generation_time=0.1),
    )


# =============================================================================
# Providers
# =============================================================================

class FakeImageProvider:
    """Image provider that fails for chosen slides.

    Slides are recognised by the "Background for slide N," fragment that
    make_carousel_json puts into every background prompt.
    """

    def __init__(
        self,
        name: str = "mock-image",
        failures: dict[int, Exception] | None = None,
        cost: float = 0.04,
    ):
        self.name = name
        self.failures = failures or {}
        self.cost = cost
        self.prompts: list[str] = []

    async def enhance_prompt(self, prompt: str) -> str:
        return f"{prompt}, enhanced"

    async def generate_image(self, prompt: str, options: ImageGenerationOptions) -> GeneratedImage:
        self.prompts.append(prompt)
        for slide_number, error in self.failures.items():
            if f"Background for slide {slide_number}," in prompt:
                raise error

        index = len(self.prompts)
        width, height = options.dimensions
        return GeneratedImage(
            id=f"img-{index}",
            url=f"https://cdn.example.com/{index}.png",
            width=width,
            height=height,
            seed=options.seed,
            ai_metadata=AIMetadata(
                provider=self.name, model="mock-image-model", cost=self.cost, prompt=prompt
            ),
        )


class FakeRegistry:
    """Stands in for ProviderRegistry, handing out fixed providers."""

    def __init__(self, text: Any, image: Any):
        self.text = text
        self.image = image
        self.text_requests: list[tuple[str | None, str]] = []
        self.image_requests: list[tuple[str | None, str]] = []
        self.closed = False

    def text_provider(self, name: str | None = None, task: str = "carousel_text") -> Any:
        self.text_requests.append((name, task))
        return self.text

    def image_provider(self, name: str | None = None, task: str = "carousel_images") -> Any:
        self.image_requests.append((name, task))
        return self.image

    def text_temperature(self, task: str = "carousel_text") -> float | None:
        return None

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def mock_text_provider() -> AsyncMock:
    """Text provider returning a 5-slide carousel."""
    provider = AsyncMock()
    provider.name = "mock-text"
    provider.generate_text.return_value = make_generated_text(make_carousel_json(5))
    return provider


@pytest.fixture
def fake_image_provider() -> FakeImageProvider:
    return FakeImageProvider()


@pytest.fixture
def fake_registry(mock_text_provider: AsyncMock, fake_image_provider: FakeImageProvider) -> FakeRegistry:
    return FakeRegistry(mock_text_provider, fake_image_provider)


@pytest.fixture
def mock_progress_callback() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def generated_text() -> Callable[..., GeneratedText]:
    return make_generated_text


@pytest.fixture
def image_provider_factory() -> Callable[..., FakeImageProvider]:
    return FakeImageProvider


@pytest.fixture
def registry_factory() -> Callable[..., FakeRegistry]:
    return FakeRegistry
