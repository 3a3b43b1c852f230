"""CLI commands - thin wrappers around the generation service, orchestrator and exporter."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import typer
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn, TimeElapsedColumn

from ..constants import (
    CAROUSEL_DEFAULT_SLIDES,
    CAROUSEL_MAX_SLIDES,
    CAROUSEL_MIN_SLIDES,
    EXPORT_DEFAULT_FPS,
    EXPORT_DEFAULT_TRANSITION_MS,
    EXPORT_MAX_FPS,
    EXPORT_MAX_TRANSITION_MS,
    EXPORT_MIN_FPS,
    EXPORT_MIN_TRANSITION_MS,
    BackgroundStrategy,
    ExportFormat,
    ExportQuality,
    ExportType,
    GenerationStatus,
    SocialPlatform,
    TransitionType,
)
from ..errors import CarouselStudioError
from ..export import CarouselExporter, ExportProgress, ExportRequest, ExportResult, SlideRenderer
from ..generation import (
    CarouselOptions,
    GenerationFilter,
    GenerationOrchestrator,
    GenerationProgress,
    GenerationRecord,
    GenerationService,
    JsonGenerationStore,
)
from ..projects import Canvas, ProjectStore
from ..providers import ProviderRegistry, load_provider_config
from ..settings import Settings, get_settings
from .console import console, print_studio_error, print_success
from .display import (
    show_export_config,
    show_export_result,
    show_generation_config,
    show_generation_detail,
    show_generation_result,
    show_generations_table,
)


def _build_service(settings: Settings) -> GenerationService:
    return GenerationService(
        JsonGenerationStore(settings.generations_dir),
        ProjectStore(settings.projects_dir),
    )


def _progress_bar() -> Progress:
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
        TimeElapsedColumn(),
        console=console,
    )


async def _run_generation(
    service: GenerationService,
    settings: Settings,
    generation_id: str,
) -> GenerationRecord:
    """Run the orchestrator with a live progress bar."""
    registry = ProviderRegistry(load_provider_config(settings.provider_config_path))

    with _progress_bar() as progress:
        task = progress.add_task("Starting...", total=100)

        async def on_progress(event: GenerationProgress) -> None:
            progress.update(task, completed=event.progress, description=event.message[:60])

        orchestrator = GenerationOrchestrator(
            service, registry, settings=settings, progress_callback=on_progress
        )
        try:
            return await orchestrator.run(settings.user_id, generation_id)
        finally:
            await registry.close()


async def _run_export(
    canvases: list[Canvas],
    request: ExportRequest,
    project_name: str,
    output_dir: Path,
    settings: Settings,
) -> ExportResult:
    """Run the exporter with a live progress bar."""
    renderer = SlideRenderer()

    with _progress_bar() as progress:
        task = progress.add_task("Preparing...", total=100)

        async def on_progress(event: ExportProgress) -> None:
            progress.update(task, completed=event.progress, description=event.message[:60])

        exporter = CarouselExporter(
            output_dir, renderer=renderer, progress_callback=on_progress, settings=settings
        )
        try:
            return await exporter.export(canvases, request, project_name=project_name)
        finally:
            await renderer.close()


def generate(
    prompt: str = typer.Argument(..., help="Carousel topic"),
    slides: int = typer.Option(
        CAROUSEL_DEFAULT_SLIDES,
        "--slides",
        "-s",
        min=CAROUSEL_MIN_SLIDES,
        max=CAROUSEL_MAX_SLIDES,
        help="Number of slides",
    ),
    strategy: BackgroundStrategy = typer.Option(
        BackgroundStrategy.THEMATIC, "--strategy", help="Background strategy"
    ),
    tone: str = typer.Option("friendly", "--tone", help="Tone of voice"),
    audience: str = typer.Option("Instagram users", "--audience", help="Target audience"),
    style: str = typer.Option("engaging and modern", "--style", help="Writing style"),
    platform: SocialPlatform = typer.Option(SocialPlatform.INSTAGRAM, "--platform", help="Target platform"),
    project: Optional[str] = typer.Option(None, "--project", "-p", help="Existing project ID"),
    skip_images: bool = typer.Option(False, "--skip-images", help="Generate text only"),
    text_ai: Optional[str] = typer.Option(None, "--text-ai", help="Text AI provider"),
    image_ai: Optional[str] = typer.Option(None, "--image-ai", help="Image AI provider"),
    enhance: bool = typer.Option(False, "--enhance-prompt", help="Let the text AI sharpen the topic first"),
) -> None:
    """Generate a carousel from a topic: text, slide backgrounds and canvases."""
    settings = get_settings()
    service = _build_service(settings)

    try:
        record = service.create_generation(
            settings.user_id,
            {
                "type": "carousel",
                "prompt": prompt,
                "project_id": project,
                "options": {
                    "slide_count": slides,
                    "background_strategy": strategy.value,
                    "tone": tone,
                    "target_audience": audience,
                    "style": style,
                    "platform": platform.value,
                    "skip_images": skip_images,
                    "text_provider": text_ai,
                    "image_provider": image_ai,
                    "enhance_prompt": enhance,
                },
            },
        )
        show_generation_config(
            console, record.prompt, CarouselOptions.model_validate(record.options), record.project_id
        )
        record = asyncio.run(_run_generation(service, settings, record.id))
    except CarouselStudioError as e:
        print_studio_error(e)
        raise typer.Exit(1)

    show_generation_result(console, record)
    if record.status is GenerationStatus.FAILED:
        raise typer.Exit(1)


def status(
    generation_id: str = typer.Argument(..., help="Generation ID"),
) -> None:
    """Show one generation."""
    settings = get_settings()
    try:
        record = _build_service(settings).get_generation(settings.user_id, generation_id)
    except CarouselStudioError as e:
        print_studio_error(e)
        raise typer.Exit(1)
    show_generation_detail(console, record)


def list_generations(
    project: Optional[str] = typer.Option(None, "--project", "-p", help="Filter by project ID"),
    state: Optional[GenerationStatus] = typer.Option(None, "--status", help="Filter by status"),
    limit: int = typer.Option(50, "--limit", "-n", min=1, max=100, help="Page size"),
    offset: int = typer.Option(0, "--offset", min=0, help="Records to skip"),
) -> None:
    """List your generations, newest first."""
    settings = get_settings()
    try:
        records = _build_service(settings).list_generations(
            settings.user_id,
            GenerationFilter(project_id=project, status=state, limit=limit, offset=offset),
        )
    except CarouselStudioError as e:
        print_studio_error(e)
        raise typer.Exit(1)
    show_generations_table(console, records)


def delete(
    generation_id: str = typer.Argument(..., help="Generation ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete a generation record."""
    if not yes and not typer.confirm(f"Delete generation {generation_id}?"):
        raise typer.Exit(0)

    settings = get_settings()
    try:
        _build_service(settings).delete_generation(settings.user_id, generation_id)
    except CarouselStudioError as e:
        print_studio_error(e)
        raise typer.Exit(1)
    print_success(f"Deleted generation {generation_id}")


def export(
    project_id: str = typer.Argument(..., help="Project ID"),
    export_type: ExportType = typer.Option(ExportType.INDIVIDUAL, "--type", "-t", help="Export type"),
    fmt: ExportFormat = typer.Option(ExportFormat.PNG, "--format", "-f", help="Output format"),
    quality: ExportQuality = typer.Option(ExportQuality.HIGH, "--quality", "-q", help="Quality tier"),
    fps: int = typer.Option(
        EXPORT_DEFAULT_FPS, "--fps", min=EXPORT_MIN_FPS, max=EXPORT_MAX_FPS, help="Sequence frame rate"
    ),
    transition: Optional[TransitionType] = typer.Option(
        None, "--transition", help="Transition between slides (sequence only)"
    ),
    transition_ms: int = typer.Option(
        EXPORT_DEFAULT_TRANSITION_MS,
        "--transition-ms",
        min=EXPORT_MIN_TRANSITION_MS,
        max=EXPORT_MAX_TRANSITION_MS,
        help="Transition duration in milliseconds",
    ),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Export directory"),
) -> None:
    """Export a project's slides as files, a GIF/MP4 sequence or a grid."""
    settings = get_settings()
    project_store = ProjectStore(settings.projects_dir)

    try:
        project = project_store.get_project(settings.user_id, project_id)
        canvases = project_store.get_canvases(settings.user_id, project_id)
        request = ExportRequest(
            export_type=export_type,
            format=fmt,
            quality=quality,
            include_transitions=transition is not None,
            transition_type=transition,
            transition_duration=transition_ms,
            fps=fps,
        )
        show_export_config(console, project.name, request, len(canvases))
        result = asyncio.run(
            _run_export(canvases, request, project.name, output or settings.export_dir, settings)
        )
    except CarouselStudioError as e:
        print_studio_error(e)
        raise typer.Exit(1)

    show_export_result(console, result)
