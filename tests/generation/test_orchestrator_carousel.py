"""Tests for carousel generations driven by GenerationOrchestrator.

Providers are fakes from conftest; stores are real JSON stores under tmp_path.
"""

from __future__ import annotations

import asyncio

import pytest

from carousel_studio.constants import GenerationStatus, GenerationStep
from carousel_studio.content import parse_carousel_content
from carousel_studio.errors import (
    AuthorizationError,
    ContentPolicyViolationError,
    InvalidTransitionError,
    NotFoundError,
    PersistenceError,
    ProviderTimeoutError,
    RateLimitedError,
)
from carousel_studio.generation import GenerationOrchestrator, GenerationService

OWNER = "user-1"
PROMPT = "5 tips for morning routines"


@pytest.fixture
def orchestrator(service, fake_registry, settings, mock_progress_callback) -> GenerationOrchestrator:
    return GenerationOrchestrator(
        service, fake_registry, settings=settings, progress_callback=mock_progress_callback
    )


def _create(service: GenerationService, slide_count: int = 5, **options):
    return service.create_generation(
        OWNER,
        {"type": "carousel", "prompt": PROMPT, "options": {"slide_count": slide_count, **options}},
    )


# =============================================================================
# Success paths
# =============================================================================

class TestCarouselSuccess:
    """Carousel generations that complete."""

    @pytest.mark.asyncio
    async def test_five_slides(self, orchestrator, service, project_store, fake_image_provider):
        record = _create(service)

        result = await orchestrator.run(OWNER, record.id)

        assert result.status is GenerationStatus.COMPLETED
        assert result.progress == 100
        assert result.current_step is GenerationStep.COMPLETE
        assert result.cost == pytest.approx(0.01 + 5 * 0.04)
        assert result.completed_time is not None
        assert len(fake_image_provider.prompts) == 5

        data = result.result_data
        assert [slide["slide_number"] for slide in data["slides"]] == [1, 2, 3, 4, 5]
        assert all(slide["background_image"] for slide in data["slides"])
        assert data["image_errors"] == []

        metadata = data["metadata"]
        assert metadata["content_type"] == "tips"
        assert metadata["background_strategy"] == "thematic"
        assert metadata["text_provider"] == "mock-text"
        assert metadata["image_provider"] == "mock-image"
        assert metadata["text_cost"] == pytest.approx(0.01)
        assert metadata["image_cost"] == pytest.approx(0.2)
        assert metadata["total_cost"] == pytest.approx(0.21)
        assert metadata["hashtag_suggestions"] == ["#morning", "#routine"]
        assert metadata["total_generation_time"] >= 0

        project = project_store.get_project(OWNER, data["project_id"])
        assert project.name == PROMPT
        assert project.carousel_metadata.slide_count == 5
        assert project.carousel_metadata.aspect_ratio == "1:1"

        canvases = project_store.get_canvases(OWNER, project.id)
        assert [canvas.slide_number for canvas in canvases] == [1, 2, 3, 4, 5]
        assert canvases[0].slide_metadata.title == "Slide 1 title"
        assert canvases[0].slide_metadata.layout["layout_type"]
        assert (canvases[0].format.width, canvases[0].format.height) == (1080, 1080)
        assert [slide["canvas_id"] for slide in data["slides"]] == [c.id for c in canvases]

        media = project_store.get_media_items(OWNER, project.id)
        assert len(media) == 5
        assert {item.canvas_id for item in media} == {c.id for c in canvases}
        assert all(item.ai_metadata.provider == "mock-image" for item in media)

    @pytest.mark.asyncio
    async def test_one_slide_background_fails(
        self,
        service,
        project_store,
        settings,
        mock_text_provider,
        generated_text,
        carousel_json,
        image_provider_factory,
        registry_factory,
    ):
        mock_text_provider.generate_text.return_value = generated_text(carousel_json(7))
        images = image_provider_factory(failures={4: ContentPolicyViolationError("mock-image", "blocked")})
        orchestrator = GenerationOrchestrator(
            service, registry_factory(mock_text_provider, images), settings=settings
        )
        record = _create(service, slide_count=7)

        result = await orchestrator.run(OWNER, record.id)

        assert result.status is GenerationStatus.COMPLETED
        slides = result.result_data["slides"]
        assert len(slides) == 7
        assert [s["slide_number"] for s in slides if s["background_image"]] == [1, 2, 3, 5, 6, 7]
        assert slides[3]["background_image"] is None

        errors = result.result_data["image_errors"]
        assert len(errors) == 1
        assert errors[0]["slide_number"] == 4
        assert errors[0]["error_type"] == "content_policy_violation"
        assert errors[0]["retryable"] is False
        assert result.cost == pytest.approx(0.01 + 6 * 0.04)

        project_id = result.result_data["project_id"]
        assert len(project_store.get_canvases(OWNER, project_id)) == 7
        assert len(project_store.get_media_items(OWNER, project_id)) == 6

    @pytest.mark.asyncio
    async def test_skip_images(self, orchestrator, service, project_store, fake_image_provider):
        record = _create(service, skip_images=True)

        result = await orchestrator.run(OWNER, record.id)

        assert result.status is GenerationStatus.COMPLETED
        assert fake_image_provider.prompts == []
        assert all(slide["background_image"] is None for slide in result.result_data["slides"])
        assert result.result_data["metadata"]["image_provider"] is None
        assert result.cost == pytest.approx(0.01)
        assert project_store.get_media_items(OWNER, result.result_data["project_id"]) == []

    @pytest.mark.asyncio
    async def test_uses_existing_project(self, orchestrator, service, project_store):
        project = project_store.create_project(OWNER, "Launch week")
        record = service.create_generation(
            OWNER, {"type": "carousel", "prompt": PROMPT, "project_id": project.id}
        )

        result = await orchestrator.run(OWNER, record.id)

        assert result.result_data["project_id"] == project.id
        assert project_store.list_projects(OWNER) == [project_store.get_project(OWNER, project.id)]
        assert len(project_store.get_canvases(OWNER, project.id)) == 5

    @pytest.mark.asyncio
    async def test_requested_providers_forwarded(self, orchestrator, service, fake_registry):
        record = _create(service, text_provider="lmstudio", image_provider="runware")

        await orchestrator.run(OWNER, record.id)

        assert fake_registry.text_requests == [("lmstudio", "carousel_text")]
        assert fake_registry.image_requests == [("runware", "carousel_images")]

    @pytest.mark.asyncio
    async def test_unique_strategy_prompts(self, orchestrator, service, fake_image_provider):
        record = _create(service, background_strategy="unique")

        await orchestrator.run(OWNER, record.id)

        assert not any("cohesive series" in prompt for prompt in fake_image_provider.prompts)

    @pytest.mark.asyncio
    async def test_topic_not_enhanced_by_default(self, orchestrator, service, mock_text_provider):
        record = _create(service)

        result = await orchestrator.run(OWNER, record.id)

        mock_text_provider.enhance_prompt.assert_not_awaited()
        assert result.result_data["metadata"]["enhanced_prompt"] is None

    @pytest.mark.asyncio
    async def test_enhanced_topic_drives_text(self, orchestrator, service, mock_text_provider):
        mock_text_provider.enhance_prompt.return_value = "Five calm habits for slow mornings"
        record = _create(service, enhance_prompt=True)

        result = await orchestrator.run(OWNER, record.id)

        assert result.status is GenerationStatus.COMPLETED
        mock_text_provider.enhance_prompt.assert_awaited_once_with(PROMPT)
        text_prompt = mock_text_provider.generate_text.await_args.args[0]
        assert '"Five calm habits for slow mornings"' in text_prompt
        assert result.result_data["metadata"]["enhanced_prompt"] == "Five calm habits for slow mornings"
        assert result.prompt == PROMPT

    @pytest.mark.asyncio
    async def test_enhancement_failure_keeps_topic(self, orchestrator, service, mock_text_provider):
        mock_text_provider.enhance_prompt.side_effect = ProviderTimeoutError("mock-text", "slow")
        record = _create(service, enhance_prompt=True)

        result = await orchestrator.run(OWNER, record.id)

        assert result.status is GenerationStatus.COMPLETED
        text_prompt = mock_text_provider.generate_text.await_args.args[0]
        assert f'"{PROMPT}"' in text_prompt
        assert result.result_data["metadata"]["enhanced_prompt"] is None


# =============================================================================
# Failures
# =============================================================================

class TestCarouselFailures:
    """Provider failures end the generation as failed, never as an exception."""

    @pytest.mark.asyncio
    async def test_all_backgrounds_fail(
        self, service, settings, mock_text_provider, image_provider_factory, registry_factory
    ):
        blocked = {n: ContentPolicyViolationError("mock-image", "blocked") for n in range(1, 6)}
        orchestrator = GenerationOrchestrator(
            service,
            registry_factory(mock_text_provider, image_provider_factory(failures=blocked)),
            settings=settings,
        )
        record = _create(service)

        result = await orchestrator.run(OWNER, record.id)

        assert result.status is GenerationStatus.FAILED
        assert result.result_data["error_type"] == "content_policy_violation"
        assert result.result_data["retryable"] is False
        assert len(result.result_data["slides"]) == 5
        assert len(result.result_data["image_errors"]) == 5
        assert result.completed_time is not None

    @pytest.mark.asyncio
    async def test_text_rate_limited(self, orchestrator, service, mock_text_provider):
        mock_text_provider.generate_text.side_effect = RateLimitedError("mock-text", "429 Too Many Requests")
        record = _create(service)

        result = await orchestrator.run(OWNER, record.id)

        assert result.status is GenerationStatus.FAILED
        assert result.result_data == {
            "error": "429 Too Many Requests",
            "error_type": "rate_limited",
            "retryable": True,
            "provider": "mock-text",
        }
        assert result.progress < 100

    @pytest.mark.asyncio
    async def test_invalid_json(self, orchestrator, service, mock_text_provider, generated_text):
        mock_text_provider.generate_text.return_value = generated_text("Sorry, I cannot help with that.")
        record = _create(service)

        result = await orchestrator.run(OWNER, record.id)

        assert result.status is GenerationStatus.FAILED
        assert result.result_data["error_type"] == "unknown"
        assert result.result_data["retryable"] is False

    @pytest.mark.asyncio
    async def test_wrong_slide_count(self, orchestrator, service, mock_text_provider, generated_text, carousel_json):
        mock_text_provider.generate_text.return_value = generated_text(carousel_json(3))
        record = _create(service)

        result = await orchestrator.run(OWNER, record.id)

        assert result.status is GenerationStatus.FAILED
        assert "expected 5 slides" in result.result_data["error"]

    @pytest.mark.asyncio
    async def test_text_timeout(
        self, service, settings, mock_text_provider, fake_image_provider, registry_factory
    ):
        async def never_answers(*args, **kwargs):
            await asyncio.sleep(5)

        mock_text_provider.generate_text.side_effect = never_answers
        orchestrator = GenerationOrchestrator(
            service,
            registry_factory(mock_text_provider, fake_image_provider),
            settings=settings.model_copy(update={"provider_timeout_seconds": 0.05}),
        )
        record = _create(service)

        result = await orchestrator.run(OWNER, record.id)

        assert result.status is GenerationStatus.FAILED
        assert result.result_data["error_type"] == "timeout"
        assert result.result_data["retryable"] is True

    @pytest.mark.asyncio
    async def test_failure_reported_to_callback(
        self, orchestrator, service, mock_text_provider, mock_progress_callback
    ):
        mock_text_provider.generate_text.side_effect = RateLimitedError("mock-text", "429")
        record = _create(service)

        await orchestrator.run(OWNER, record.id)

        last = mock_progress_callback.await_args_list[-1].args[0]
        assert last.status is GenerationStatus.FAILED
        assert last.errors == ["429"]


# =============================================================================
# Project store failures
# =============================================================================

def _raise(error: Exception):
    def fail(*args, **kwargs):
        raise error

    return fail


class TestProjectStoreFailures:
    """Store errors in the canvases phase fail the record and reach the caller."""

    @pytest.mark.asyncio
    async def test_add_slides_write_fails(
        self, orchestrator, service, project_store, monkeypatch: pytest.MonkeyPatch
    ):
        monkeypatch.setattr(project_store, "add_slides", _raise(PersistenceError("store unreachable")))
        record = _create(service)

        with pytest.raises(PersistenceError, match="store unreachable"):
            await orchestrator.run(OWNER, record.id)

        stored = service.get_generation(OWNER, record.id)
        assert stored.status is GenerationStatus.FAILED
        assert stored.completed_time is not None
        assert stored.current_step is GenerationStep.CANVASES
        assert stored.result_data["error"] == "store unreachable"
        assert stored.result_data["error_type"] == "persistence_error"
        assert stored.result_data["retryable"] is True
        # Partial results survive next to the error
        assert len(stored.result_data["slides"]) == 5
        assert stored.result_data["project_id"]

    @pytest.mark.asyncio
    async def test_create_project_fails(
        self, orchestrator, service, project_store, monkeypatch: pytest.MonkeyPatch
    ):
        monkeypatch.setattr(project_store, "create_project", _raise(PersistenceError("disk full")))
        record = _create(service)

        with pytest.raises(PersistenceError):
            await orchestrator.run(OWNER, record.id)

        stored = service.get_generation(OWNER, record.id)
        assert stored.status is GenerationStatus.FAILED
        assert stored.result_data["error_type"] == "persistence_error"
        assert "project_id" not in stored.result_data

    @pytest.mark.asyncio
    async def test_project_removed_mid_run(
        self, orchestrator, service, project_store, monkeypatch: pytest.MonkeyPatch, mock_progress_callback
    ):
        project = project_store.create_project(OWNER, "Launch week")
        record = service.create_generation(
            OWNER, {"type": "carousel", "prompt": PROMPT, "project_id": project.id}
        )
        monkeypatch.setattr(project_store, "add_slides", _raise(NotFoundError("project", project.id)))

        with pytest.raises(NotFoundError):
            await orchestrator.run(OWNER, record.id)

        stored = service.get_generation(OWNER, record.id)
        assert stored.status is GenerationStatus.FAILED
        assert stored.result_data["retryable"] is False
        assert mock_progress_callback.await_args_list[-1].args[0].status is GenerationStatus.FAILED

    @pytest.mark.asyncio
    async def test_record_write_failure_propagates_unchanged(
        self, orchestrator, service, generation_store, monkeypatch: pytest.MonkeyPatch
    ):
        record = _create(service)
        monkeypatch.setattr(generation_store, "save", _raise(PersistenceError("generations offline")))

        with pytest.raises(PersistenceError, match="generations offline"):
            await orchestrator.run(OWNER, record.id)

        assert service.get_generation(OWNER, record.id).status is GenerationStatus.PENDING


# =============================================================================
# Lifecycle
# =============================================================================

class TestCarouselLifecycle:
    """Progress, resumption and ownership."""

    @pytest.mark.asyncio
    async def test_progress_is_monotonic(
        self, orchestrator, service, mock_progress_callback, monkeypatch: pytest.MonkeyPatch
    ):
        stored: list[int] = []
        update = service.update_generation_status

        def spy(owner_id, generation_id, patch):
            record = update(owner_id, generation_id, patch)
            stored.append(record.progress)
            return record

        monkeypatch.setattr(service, "update_generation_status", spy)
        record = _create(service)

        await orchestrator.run(OWNER, record.id)

        reported = [call.args[0].progress for call in mock_progress_callback.await_args_list]
        assert reported == sorted(reported)
        assert reported[-1] == 100
        assert stored == sorted(stored)
        assert stored[0] == 5
        assert stored[-1] == 100
        assert 30 in stored and 85 in stored

    @pytest.mark.asyncio
    async def test_completed_generation_cannot_rerun(self, orchestrator, service):
        record = _create(service)
        await orchestrator.run(OWNER, record.id)

        with pytest.raises(InvalidTransitionError):
            await orchestrator.run(OWNER, record.id)

    @pytest.mark.asyncio
    async def test_other_owner_cannot_run(self, orchestrator, service, mock_text_provider):
        record = _create(service)

        with pytest.raises(AuthorizationError):
            await orchestrator.run("user-2", record.id)

        mock_text_provider.generate_text.assert_not_awaited()
        assert service.get_generation(OWNER, record.id).status is GenerationStatus.PENDING

    @pytest.mark.asyncio
    async def test_resume_skips_text_phase(
        self, orchestrator, service, mock_text_provider, fake_image_provider, carousel_json
    ):
        content = parse_carousel_content(carousel_json(3), 3)
        record = _create(service, slide_count=3)
        service.update_generation_status(
            OWNER,
            record.id,
            {
                "status": "generating",
                "current_step": "images",
                "progress": 30,
                "cost": 0.01,
                "result_data": {
                    "slides": [slide.model_dump(mode="json") for slide in content.slides],
                    "carousel_metadata": content.carousel_metadata.model_dump(mode="json"),
                    "text": {
                        "content_type": "tips",
                        "provider": "mock-text",
                        "model": "mock-model",
                        "cost": 0.01,
                        "generation_time": 1.5,
                    },
                },
            },
        )

        result = await orchestrator.run(OWNER, record.id)

        mock_text_provider.generate_text.assert_not_awaited()
        assert len(fake_image_provider.prompts) == 3
        assert result.status is GenerationStatus.COMPLETED
        assert result.cost == pytest.approx(0.01 + 3 * 0.04)
        assert result.result_data["metadata"]["text_generation_time"] == 1.5
