"""Generation orchestrator: drives one generation record through its phases.

    carousel:    text -> images -> canvases -> complete
    text:        text -> complete
    background:  images -> complete

Every checkpoint goes through GenerationService, so the stored record is the
durable state and the only thing pollers see. ProgressManager events are
for live display.

Provider failures never escape run(): retryable ones have already been
retried by the provider, so whatever reaches this module fails the record
with the error recorded in result_data. A single slide's background
failing is recorded per slide; only when every slide fails does the
generation fail.

A project store failure (write error, project deleted or handed to another
owner mid-run) also fails the record, then the store error is re-raised.
Errors from writing the record itself always propagate untouched.
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from typing import Any, Awaitable, Callable, TypeVar

from pydantic import BaseModel

from ..constants import (
    CAROUSEL_TEXT_MAX_LENGTH,
    DEFAULT_TEXT_COST_USD,
    PLATFORM_CAPTION_LIMITS,
    PROGRESS_CANVASES_START,
    PROGRESS_IMAGES_SPAN,
    PROGRESS_TEXT_DONE,
    PROGRESS_TEXT_START,
    GenerationStatus,
    GenerationStep,
    GenerationType,
    dimensions_for_format,
)
from ..content import (
    CarouselContent,
    CarouselSlide,
    compose_consistency_prompts,
    compose_prompt,
    composition_rules,
    derive_layout,
    detect_content_type,
    optimize_image_prompt,
    parse_carousel_content,
)
from ..content.prompts import DEFAULT_BASE_STYLE
from ..errors import (
    AuthorizationError,
    CarouselStudioError,
    InvalidTransitionError,
    NotFoundError,
    PersistenceError,
    ProviderError,
    ProviderTimeoutError,
)
from ..projects import (
    Canvas,
    CanvasFormat,
    CarouselProjectMetadata,
    MediaAIMetadata,
    MediaItem,
    ProjectStore,
    SlideMetadata,
)
from ..providers import (
    GeneratedImage,
    ImageGenerationOptions,
    ProviderRegistry,
    TextGenerationOptions,
)
from ..providers.image import aspect_ratio
from ..services.progress import ProgressCallback, ProgressManager
from ..settings import Settings, get_settings
from .models import CarouselOptions, GenerationPatch, GenerationRecord
from .service import GenerationService, validate_model

_logger = logging.getLogger("generation")

T = TypeVar("T")

TEXT_ONLY_TASK = "text"


def _error_data(error: ProviderError) -> dict[str, Any]:
    return {
        "error": error.message,
        "error_type": error.error_type,
        "retryable": error.retryable,
        "provider": error.provider,
    }


class _ProjectWriteFailed(Exception):
    """Carries a project store error out of a phase so run() can fail the record."""

    def __init__(self, error: CarouselStudioError):
        self.error = error
        super().__init__(str(error))


def _store_error_data(error: CarouselStudioError) -> dict[str, Any]:
    return {
        "error": str(error),
        "error_type": "persistence_error",
        "retryable": isinstance(error, PersistenceError),
    }


def _known_fields(model: type[BaseModel], options: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in options.items() if key in model.model_fields}


class GenerationOrchestrator:
    """Runs generations end to end.

    Usage:
        orchestrator = GenerationOrchestrator(service, ProviderRegistry())
        record = await orchestrator.run(owner_id, generation_id)
    """

    def __init__(
        self,
        service: GenerationService,
        registry: ProviderRegistry,
        settings: Settings | None = None,
        progress_callback: ProgressCallback | None = None,
        project_store: ProjectStore | None = None,
    ):
        """Initialize the orchestrator.

        Args:
            service: Generation lifecycle service (record store access).
            registry: Resolves text and image providers from configuration.
            settings: Timeouts and concurrency limits.
            progress_callback: Optional async callback for live progress.
            project_store: Where canvases and media items are written.
                Defaults to the service's project store.
        """
        self.service = service
        self.registry = registry
        self.settings = settings or get_settings()
        self.progress_callback = progress_callback
        self.project_store = project_store or service.project_store

    # =========================================================================
    # ENTRY POINT
    # =========================================================================

    async def run(self, owner_id: str, generation_id: str) -> GenerationRecord:
        """Run (or resume) a generation and return the final record.

        Raises:
            InvalidTransitionError: The generation already finished.
            NotFoundError / AuthorizationError: Unknown or foreign generation.
            ValidationError: Stored options are invalid.
            PersistenceError: A checkpoint could not be written, or the
                project store failed (the record is failed first).
        """
        record = self.service.get_generation(owner_id, generation_id)
        if record.is_terminal:
            raise InvalidTransitionError(
                f"Generation {record.id} is already {record.status.value}",
                details={"current_status": record.status.value},
            )

        progress = ProgressManager(record.id, self.progress_callback)
        _logger.info(
            f"GEN:{record.id} | RUN | type:{record.type.value} | status:{record.status.value}"
        )

        try:
            if record.type is GenerationType.CAROUSEL:
                return await self._run_carousel(owner_id, record, progress)
            if record.type is GenerationType.TEXT:
                return await self._run_text(owner_id, record, progress)
            return await self._run_background(owner_id, record, progress)
        except ProviderError as e:
            return await self._fail(owner_id, record.id, progress, _error_data(e))
        except _ProjectWriteFailed as e:
            _logger.error(f"GEN:{record.id} | PROJECT_WRITE_FAILED | error:{e.error}")
            await self._fail(owner_id, record.id, progress, _store_error_data(e.error))
            raise e.error from None

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _patch(self, owner_id: str, generation_id: str, **fields: Any) -> GenerationRecord:
        return self.service.update_generation_status(
            owner_id, generation_id, GenerationPatch(**fields)
        )

    def _project_write(self, call: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Run a project store call; its failures end the generation."""
        try:
            return call(*args, **kwargs)
        except (PersistenceError, NotFoundError, AuthorizationError) as e:
            raise _ProjectWriteFailed(e) from e

    async def _bounded(self, provider: str, call: Awaitable[T]) -> T:
        """Await a provider call under the configured upper bound."""
        timeout = self.settings.provider_timeout_seconds
        try:
            return await asyncio.wait_for(call, timeout=timeout)
        except asyncio.TimeoutError as e:
            raise ProviderTimeoutError(provider, f"no response within {timeout:.0f}s") from e

    async def _enhanced(self, generation_id: str, provider: Any, prompt: str) -> str:
        """Prompt rewritten by the provider, or the prompt itself if that fails."""
        try:
            enhanced = await self._bounded(provider.name, provider.enhance_prompt(prompt))
        except ProviderError as e:
            _logger.warning(f"GEN:{generation_id} | ENHANCE_SKIPPED | provider:{provider.name} | error:{e.message}")
            return prompt
        _logger.info(f"GEN:{generation_id} | ENHANCED_PROMPT | provider:{provider.name}")
        return enhanced

    async def _fail(
        self,
        owner_id: str,
        generation_id: str,
        progress: ProgressManager,
        error: dict[str, Any],
        partial: dict[str, Any] | None = None,
    ) -> GenerationRecord:
        """Move the record to failed, keeping any partial result next to the error."""
        if partial is None:
            partial = self.service.get_generation(owner_id, generation_id).result_data or {}
        result_data = {**partial, **error}

        record = self._patch(
            owner_id, generation_id, status=GenerationStatus.FAILED, result_data=result_data
        )
        await progress.fail(error["error"])
        return record

    # =========================================================================
    # CAROUSEL
    # =========================================================================

    async def _run_carousel(
        self,
        owner_id: str,
        record: GenerationRecord,
        progress: ProgressManager,
    ) -> GenerationRecord:
        options: CarouselOptions = validate_model(
            CarouselOptions, record.options, "carousel options"
        )
        data = dict(record.result_data or {})

        if record.status is GenerationStatus.GENERATING and "slides" in data:
            _logger.info(f"GEN:{record.id} | RESUME | skip:text")
        else:
            data = await self._carousel_text(owner_id, record, options, progress)

        if options.skip_images:
            data.setdefault("images", {})
            data.setdefault("image_errors", [])
        elif "images" in data:
            _logger.info(f"GEN:{record.id} | RESUME | skip:images")
        else:
            data = await self._carousel_images(owner_id, record, options, data, progress)
            if not data["images"]:
                errors = data["image_errors"]
                return await self._fail(
                    owner_id,
                    record.id,
                    progress,
                    {
                        "error": f"All {len(errors)} slide backgrounds failed",
                        "error_type": errors[0]["error_type"] if errors else "unknown",
                        "retryable": all(error["retryable"] for error in errors),
                    },
                    partial=data,
                )

        return await self._carousel_canvases(owner_id, record, options, data, progress)

    async def _carousel_text(
        self,
        owner_id: str,
        record: GenerationRecord,
        options: CarouselOptions,
        progress: ProgressManager,
    ) -> dict[str, Any]:
        """Text phase: composed prompt -> text provider -> parsed slides."""
        content_type = options.content_type or detect_content_type(record.prompt)

        self._patch(
            owner_id,
            record.id,
            status=GenerationStatus.GENERATING,
            current_step=GenerationStep.TEXT,
            progress=PROGRESS_TEXT_START,
        )
        await progress.start_phase(
            GenerationStep.TEXT,
            progress=PROGRESS_TEXT_START,
            message=f"Writing {options.slide_count} slides ({content_type.value})",
        )

        provider = self.registry.text_provider(options.text_provider)
        topic = record.prompt
        if options.enhance_prompt:
            topic = await self._enhanced(record.id, provider, record.prompt)

        prompt = compose_prompt(
            topic=topic,
            slide_count=options.slide_count,
            background_strategy=options.background_strategy,
            tone=options.tone,
            target_audience=options.target_audience,
            style=options.style,
            content_type=content_type,
        )
        text_options = TextGenerationOptions(
            canvas_format=options.canvas_format,
            platform=options.platform,
            content_type=content_type,
            tone=options.tone,
            style=options.style,
            max_length=min(CAROUSEL_TEXT_MAX_LENGTH, PLATFORM_CAPTION_LIMITS[options.platform]),
            include_hashtags=options.include_hashtags,
            target_audience=options.target_audience,
            visual_description=(
                f"{options.slide_count}-slide carousel with "
                f"{options.background_strategy.value} backgrounds"
            ),
            temperature=self.registry.text_temperature(),
        )

        _logger.info(
            f"GEN:{record.id} | TEXT | provider:{provider.name} | "
            f"content_type:{content_type.value} | slides:{options.slide_count}"
        )

        started = time.monotonic()
        generated = await self._bounded(provider.name, provider.generate_text(prompt, text_options))
        content = parse_carousel_content(generated.content, options.slide_count, provider=provider.name)
        elapsed = time.monotonic() - started
        cost = generated.ai_metadata.cost or DEFAULT_TEXT_COST_USD

        data = {
            "slides": [slide.model_dump(mode="json") for slide in content.slides],
            "carousel_metadata": content.carousel_metadata.model_dump(mode="json"),
            "text": {
                "content_type": content_type.value,
                "provider": provider.name,
                "model": generated.ai_metadata.model,
                "cost": cost,
                "generation_time": elapsed,
            },
        }
        if topic != record.prompt:
            data["text"]["enhanced_prompt"] = topic
        self._patch(
            owner_id,
            record.id,
            status=GenerationStatus.GENERATING,
            current_step=GenerationStep.IMAGES,
            progress=PROGRESS_TEXT_DONE,
            cost=cost,
            result_data=data,
        )
        await progress.complete_phase(GenerationStep.TEXT, progress=PROGRESS_TEXT_DONE, cost=cost)
        return data

    async def _carousel_images(
        self,
        owner_id: str,
        record: GenerationRecord,
        options: CarouselOptions,
        data: dict[str, Any],
        progress: ProgressManager,
    ) -> dict[str, Any]:
        """Images phase: one background per slide, concurrently, failures kept per slide."""
        slides = [CarouselSlide.model_validate(slide) for slide in data["slides"]]
        total = len(slides)
        text_cost = data["text"]["cost"]

        await progress.start_phase(
            GenerationStep.IMAGES, message=f"Generating {total} slide backgrounds"
        )
        await progress.set_total_slides(total)

        prompts = compose_consistency_prompts(
            [slide.background_prompt or slide.title for slide in slides],
            options.background_strategy,
            options.image_style or DEFAULT_BASE_STYLE,
        )
        prompts = [optimize_image_prompt(prompt) for prompt in prompts]
        image_options = ImageGenerationOptions(
            canvas_format=options.canvas_format,
            style=options.image_style,
            model=options.image_model,
            seed=options.seed,
        )
        provider = self.registry.image_provider(options.image_provider)

        semaphore = asyncio.Semaphore(self.settings.max_concurrent_images)
        lock = asyncio.Lock()
        images: dict[int, GeneratedImage] = {}
        errors: list[dict[str, Any]] = []
        started = time.monotonic()

        async def generate(slide: CarouselSlide, prompt: str) -> None:
            image: GeneratedImage | None = None
            failure: ProviderError | None = None
            async with semaphore:
                try:
                    image = await self._bounded(
                        provider.name, provider.generate_image(prompt, image_options)
                    )
                except ProviderError as e:
                    failure = e

            # One writer at a time keeps stored progress monotonic
            async with lock:
                finished = len(images) + len(errors) + 1
                percent = PROGRESS_TEXT_DONE + PROGRESS_IMAGES_SPAN * finished // total
                if failure is None and image is not None:
                    images[slide.slide_number] = image
                    await progress.complete_slide(slide.slide_number, percent)
                else:
                    errors.append({"slide_number": slide.slide_number, **_error_data(failure)})
                    await progress.fail_slide(slide.slide_number, failure.message, percent)

                image_cost = sum(item.ai_metadata.cost for item in images.values())
                self._patch(
                    owner_id,
                    record.id,
                    status=GenerationStatus.GENERATING,
                    current_step=GenerationStep.IMAGES,
                    progress=percent,
                    cost=text_cost + image_cost,
                )

        await asyncio.gather(*(generate(slide, prompt) for slide, prompt in zip(slides, prompts)))

        elapsed = time.monotonic() - started
        image_cost = sum(item.ai_metadata.cost for item in images.values())
        errors.sort(key=lambda error: error["slide_number"])

        _logger.info(
            f"GEN:{record.id} | IMAGES_DONE | provider:{provider.name} | "
            f"ok:{len(images)} | failed:{len(errors)} | cost:${image_cost:.4f} | "
            f"duration:{elapsed:.2f}s"
        )

        return {
            **data,
            "images": {str(number): image.model_dump(mode="json") for number, image in images.items()},
            "image_prompts": {
                str(slide.slide_number): prompt for slide, prompt in zip(slides, prompts)
            },
            "image_errors": errors,
            "image_phase": {
                "provider": provider.name,
                "cost": image_cost,
                "generation_time": elapsed,
            },
        }

    async def _carousel_canvases(
        self,
        owner_id: str,
        record: GenerationRecord,
        options: CarouselOptions,
        data: dict[str, Any],
        progress: ProgressManager,
    ) -> GenerationRecord:
        """Canvases phase: persist slides as canvases + media items, then complete."""
        content = CarouselContent.model_validate(
            {"slides": data["slides"], "carousel_metadata": data.get("carousel_metadata", {})}
        )
        slides = content.slides
        images = {
            int(number): GeneratedImage.model_validate(image)
            for number, image in data.get("images", {}).items()
        }
        prompts: dict[str, str] = data.get("image_prompts", {})
        text_phase = data["text"]
        image_phase = data.get("image_phase", {"cost": 0.0, "generation_time": 0.0})
        text_cost = text_phase["cost"]
        image_cost = image_phase["cost"]

        self._patch(
            owner_id,
            record.id,
            status=GenerationStatus.GENERATING,
            current_step=GenerationStep.CANVASES,
            progress=PROGRESS_CANVASES_START,
            cost=text_cost + image_cost,
            result_data=data,
        )
        await progress.start_phase(GenerationStep.CANVASES, progress=PROGRESS_CANVASES_START)
        started = time.monotonic()

        width, height = dimensions_for_format(options.canvas_format)
        ratio = aspect_ratio(width, height)

        project_id = record.project_id or data.get("project_id")
        if project_id is None:
            project = self._project_write(
                self.project_store.create_project,
                owner_id,
                name=record.prompt[:60],
                tags=["ai-generated", "carousel"],
                carousel_metadata=CarouselProjectMetadata(
                    slide_count=len(slides),
                    background_strategy=options.background_strategy,
                    target_platform=options.platform,
                    aspect_ratio=ratio,
                ),
            )
            project_id = project.id
            data = {**data, "project_id": project_id}
            self._patch(
                owner_id,
                record.id,
                status=GenerationStatus.GENERATING,
                current_step=GenerationStep.CANVASES,
                result_data=data,
            )

        now = self.service.now()
        canvas_format = CanvasFormat(
            width=width, height=height, aspect_ratio=ratio, platform=options.platform
        )
        canvases: list[Canvas] = []
        media_items: list[MediaItem] = []
        result_slides: list[dict[str, Any]] = []

        for index, slide in enumerate(slides):
            image = images.get(slide.slide_number)
            layout = derive_layout(slide.content, index, len(slides)).model_dump(mode="json")
            canvas = Canvas(
                id=str(uuid.uuid4()),
                project_id=project_id,
                slide_number=slide.slide_number,
                background_image=image.url if image else None,
                thumbnail_url=image.url if image else None,
                slide_metadata=SlideMetadata(
                    slide_number=slide.slide_number,
                    title=slide.title,
                    subtitle=slide.subtitle,
                    content=slide.content,
                    cta=slide.cta,
                    background_prompt=slide.background_prompt,
                    layout=layout,
                ),
                format=canvas_format,
                created_at=now,
            )
            canvases.append(canvas)

            if image is not None:
                media_items.append(
                    MediaItem(
                        id=str(uuid.uuid4()),
                        project_id=project_id,
                        canvas_id=canvas.id,
                        name=f"Slide {slide.slide_number} background",
                        url=image.url,
                        width=image.width,
                        height=image.height,
                        generation_prompt=prompts.get(str(slide.slide_number)),
                        ai_metadata=MediaAIMetadata(
                            cost=image.ai_metadata.cost,
                            model=image.ai_metadata.model,
                            provider=image.ai_metadata.provider,
                            parameters=image.ai_metadata.parameters,
                        ),
                        slide_number=slide.slide_number,
                        background_strategy=options.background_strategy,
                        created_at=now,
                    )
                )

            result_slides.append({
                **slide.model_dump(mode="json"),
                "canvas_id": canvas.id,
                "background_image": image.url if image else None,
                "image_prompt": prompts.get(str(slide.slide_number)),
                "layout": layout,
            })

        self._project_write(
            self.project_store.add_slides, owner_id, project_id, canvases, media_items
        )
        canvas_time = time.monotonic() - started

        total_cost = text_cost + image_cost
        result_data = {
            "slides": result_slides,
            "image_errors": data.get("image_errors", []),
            "project_id": project_id,
            "metadata": {
                "content_type": text_phase["content_type"],
                "background_strategy": options.background_strategy.value,
                "text_provider": text_phase["provider"],
                "enhanced_prompt": text_phase.get("enhanced_prompt"),
                "image_provider": image_phase.get("provider"),
                "text_generation_time": text_phase["generation_time"],
                "image_generation_time": image_phase["generation_time"],
                "total_generation_time": (
                    text_phase["generation_time"] + image_phase["generation_time"] + canvas_time
                ),
                "text_cost": text_cost,
                "image_cost": image_cost,
                "total_cost": total_cost,
                "hashtag_suggestions": content.carousel_metadata.hashtag_suggestions,
                "composition_rules": composition_rules(text_phase["content_type"]),
            },
        }

        completed = self._patch(
            owner_id,
            record.id,
            status=GenerationStatus.COMPLETED,
            cost=total_cost,
            result_data=result_data,
        )
        await progress.complete(cost=total_cost)
        _logger.info(
            f"GEN:{record.id} | COMPLETE | project:{project_id} | canvases:{len(canvases)} | "
            f"media:{len(media_items)} | cost:${total_cost:.4f}"
        )
        return completed

    # =========================================================================
    # SINGLE-ASSET GENERATIONS
    # =========================================================================

    async def _run_text(
        self,
        owner_id: str,
        record: GenerationRecord,
        progress: ProgressManager,
    ) -> GenerationRecord:
        """Plain text generation: caption, hook or slide copy from the prompt."""
        text_options: TextGenerationOptions = validate_model(
            TextGenerationOptions,
            _known_fields(TextGenerationOptions, record.options),
            "text options",
        )

        self._patch(
            owner_id,
            record.id,
            status=GenerationStatus.GENERATING,
            current_step=GenerationStep.TEXT,
            progress=PROGRESS_TEXT_START,
        )
        await progress.start_phase(GenerationStep.TEXT, progress=PROGRESS_TEXT_START)

        provider = self.registry.text_provider(
            record.options.get("text_provider"), task=TEXT_ONLY_TASK
        )
        started = time.monotonic()
        generated = await self._bounded(
            provider.name, provider.generate_text(record.prompt, text_options)
        )
        elapsed = time.monotonic() - started
        cost = generated.ai_metadata.cost

        completed = self._patch(
            owner_id,
            record.id,
            status=GenerationStatus.COMPLETED,
            cost=cost,
            result_data={
                "content": generated.content,
                "hashtags": generated.hashtags,
                "suggestions": generated.suggestions,
                "metadata": {
                    "provider": generated.ai_metadata.provider,
                    "model": generated.ai_metadata.model,
                    "text_cost": cost,
                    "text_generation_time": elapsed,
                    "total_cost": cost,
                },
            },
        )
        await progress.complete(cost=cost)
        return completed

    async def _run_background(
        self,
        owner_id: str,
        record: GenerationRecord,
        progress: ProgressManager,
    ) -> GenerationRecord:
        """Single background image, attached to the record's project when it has one."""
        image_options: ImageGenerationOptions = validate_model(
            ImageGenerationOptions,
            _known_fields(ImageGenerationOptions, record.options),
            "image options",
        )

        self._patch(
            owner_id,
            record.id,
            status=GenerationStatus.GENERATING,
            current_step=GenerationStep.IMAGES,
            progress=PROGRESS_TEXT_START,
        )
        await progress.start_phase(GenerationStep.IMAGES, progress=PROGRESS_TEXT_START)

        provider = self.registry.image_provider(record.options.get("image_provider"))
        base_prompt = record.prompt
        if record.options.get("enhance_prompt"):
            base_prompt = await self._enhanced(record.id, provider, record.prompt)
        prompt = optimize_image_prompt(base_prompt)
        started = time.monotonic()
        image = await self._bounded(provider.name, provider.generate_image(prompt, image_options))
        elapsed = time.monotonic() - started
        cost = image.ai_metadata.cost

        if record.project_id:
            self._project_write(
                self.project_store.add_slides,
                owner_id,
                record.project_id,
                [],
                [
                    MediaItem(
                        id=str(uuid.uuid4()),
                        project_id=record.project_id,
                        canvas_id=record.canvas_id,
                        name="AI background",
                        url=image.url,
                        width=image.width,
                        height=image.height,
                        generation_prompt=prompt,
                        ai_metadata=MediaAIMetadata(
                            cost=cost,
                            model=image.ai_metadata.model,
                            provider=image.ai_metadata.provider,
                            parameters=image.ai_metadata.parameters,
                        ),
                        created_at=self.service.now(),
                    )
                ],
            )

        completed = self._patch(
            owner_id,
            record.id,
            status=GenerationStatus.COMPLETED,
            cost=cost,
            result_data={
                "image_url": image.url,
                "image_id": image.id,
                "width": image.width,
                "height": image.height,
                "seed": image.seed,
                "prompt": prompt,
                "metadata": {
                    "provider": image.ai_metadata.provider,
                    "model": image.ai_metadata.model,
                    "image_cost": cost,
                    "image_generation_time": elapsed,
                    "total_cost": cost,
                },
            },
        )
        await progress.complete(cost=cost)
        return completed
