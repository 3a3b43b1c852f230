"""Display functions for CLI commands - pure functions for Rich output."""

from __future__ import annotations

from datetime import datetime

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..constants import GenerationStatus
from ..export.models import ExportRequest, ExportResult
from ..generation.models import CarouselOptions, GenerationRecord

STATUS_STYLES = {
    GenerationStatus.PENDING: "dim",
    GenerationStatus.GENERATING: "yellow",
    GenerationStatus.COMPLETED: "green",
    GenerationStatus.FAILED: "red",
}


def format_status(status: GenerationStatus) -> str:
    style = STATUS_STYLES.get(status, "white")
    return f"[{style}]{status.value}[/{style}]"


def format_timestamp(value: datetime | None) -> str:
    return value.strftime("%Y-%m-%d %H:%M:%S") if value else "-"


def show_generation_config(
    console: Console,
    prompt: str,
    options: CarouselOptions,
    project_id: str | None,
) -> None:
    """Display carousel generation configuration panel."""
    images_info = "[dim]Skipped[/dim]" if options.skip_images else (
        f"[yellow]{options.image_provider or 'default'}[/yellow]"
    )
    console.print(Panel(
        f"Topic: [green]{prompt}[/green]\n"
        f"Slides: [yellow]{options.slide_count}[/yellow]\n"
        f"Backgrounds: [yellow]{options.background_strategy.value}[/yellow]\n"
        f"Tone: [yellow]{options.tone}[/yellow]  Audience: [yellow]{options.target_audience}[/yellow]\n"
        f"Platform: [yellow]{options.platform.value}[/yellow] ({options.canvas_format})\n"
        f"Text AI: [yellow]{options.text_provider or 'default'}[/yellow]\n"
        f"Image AI: {images_info}\n"
        f"Project: [cyan]{project_id or 'new'}[/cyan]",
        title="Carousel Generation",
    ))


def show_generation_result(console: Console, record: GenerationRecord) -> None:
    """Display the outcome of a generation run."""
    result = record.result_data or {}

    if record.status is GenerationStatus.FAILED:
        console.print(Panel(
            f"[red]{result.get('error', 'Unknown error')}[/red]\n"
            f"Type: [yellow]{result.get('error_type', 'unknown')}[/yellow]\n"
            f"Retryable: [yellow]{result.get('retryable', False)}[/yellow]\n"
            f"Generation: [cyan]{record.id}[/cyan]",
            title="[red]Generation Failed[/red]",
            border_style="red",
        ))
        return

    metadata = result.get("metadata", {})
    slides = result.get("slides", [])
    image_errors = result.get("image_errors", [])

    table = Table(show_header=True, header_style="bold")
    table.add_column("#", justify="right", width=3)
    table.add_column("Title")
    table.add_column("Layout")
    table.add_column("Background")
    for slide in slides:
        layout = slide.get("layout") or {}
        background = "[green]yes[/green]" if slide.get("background_image") else "[red]no[/red]"
        table.add_row(
            str(slide.get("slide_number", "")),
            slide.get("title", ""),
            layout.get("layout_type", "-"),
            background,
        )
    if slides:
        console.print(table)

    for error in image_errors:
        console.print(
            f"  [yellow]Slide {error['slide_number']} background failed:[/yellow] "
            f"{error['error']} [dim]({error['error_type']})[/dim]"
        )

    hashtags = " ".join(metadata.get("hashtag_suggestions", []))
    console.print(Panel(
        f"Generation: [cyan]{record.id}[/cyan]\n"
        f"Project: [cyan]{result.get('project_id', '-')}[/cyan]\n"
        f"Content type: [yellow]{metadata.get('content_type', '-')}[/yellow]\n"
        f"Slides: [yellow]{len(slides)}[/yellow] "
        f"([red]{len(image_errors)}[/red] without background)\n"
        f"Cost: [green]${record.cost:.4f}[/green]\n"
        f"Time: [yellow]{metadata.get('total_generation_time', 0):.1f}s[/yellow]"
        + (f"\nHashtags: [dim]{hashtags}[/dim]" if hashtags else ""),
        title="[green]Carousel Ready[/green]",
        border_style="green",
    ))


def show_generation_detail(console: Console, record: GenerationRecord) -> None:
    """Display one generation record."""
    step = record.current_step.value if record.current_step else "-"
    eta = f"{record.estimated_time_remaining:.0f}s" if record.estimated_time_remaining else "-"
    console.print(Panel(
        f"ID: [cyan]{record.id}[/cyan]\n"
        f"Type: [yellow]{record.type.value}[/yellow]\n"
        f"Status: {format_status(record.status)}  Step: [yellow]{step}[/yellow]\n"
        f"Progress: [yellow]{record.progress}%[/yellow]  ETA: [yellow]{eta}[/yellow]\n"
        f"Cost: [green]${record.cost:.4f}[/green]\n"
        f"Project: [cyan]{record.project_id or '-'}[/cyan]\n"
        f"Prompt: {record.prompt}\n"
        f"Created: {format_timestamp(record.created_at)}\n"
        f"Started: {format_timestamp(record.start_time)}\n"
        f"Finished: {format_timestamp(record.completed_time)}",
        title="Generation",
    ))
    if record.status is GenerationStatus.FAILED and record.result_data:
        console.print(f"[red]{record.result_data.get('error', '')}[/red]")


def show_generations_table(console: Console, records: list[GenerationRecord]) -> None:
    """Display a list of generations."""
    if not records:
        console.print("[dim]No generations found[/dim]")
        return

    table = Table(title="Generations", show_header=True, header_style="bold")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Type")
    table.add_column("Status")
    table.add_column("Progress", justify="right")
    table.add_column("Cost", justify="right")
    table.add_column("Created")
    table.add_column("Prompt")

    for record in records:
        table.add_row(
            record.id[:8],
            record.type.value,
            format_status(record.status),
            f"{record.progress}%",
            f"${record.cost:.4f}",
            format_timestamp(record.created_at),
            record.prompt[:40],
        )
    console.print(table)


def show_export_config(
    console: Console,
    project_name: str,
    request: ExportRequest,
    slide_count: int,
) -> None:
    transition = request.transition.value if request.transition else "none"
    console.print(Panel(
        f"Project: [cyan]{project_name}[/cyan] ({slide_count} slides)\n"
        f"Type: [yellow]{request.export_type.value}[/yellow]\n"
        f"Format: [yellow]{request.format.value}[/yellow]  Quality: [yellow]{request.quality.value}[/yellow]\n"
        f"Transition: [yellow]{transition}[/yellow]  FPS: [yellow]{request.fps}[/yellow]",
        title="Carousel Export",
    ))


def show_export_result(console: Console, result: ExportResult) -> None:
    lines = "\n".join(f"  [green]{path}[/green]" for path in result.files)
    console.print(Panel(
        f"Export: [cyan]{result.export_id}[/cyan]\n"
        f"Files:\n{lines}\n"
        f"Expires: [yellow]{format_timestamp(result.metadata.expires_at)}[/yellow]",
        title="[green]Export Complete[/green]",
        border_style="green",
    ))
