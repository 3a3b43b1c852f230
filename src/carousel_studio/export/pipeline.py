"""Carousel export pipeline.

Turns a finished set of canvases into one of three outputs, reporting
phased progress (preparing -> rendering -> combining -> finalizing):

    individual: one file per slide, progress i/n*100, no combining phase
    sequence:   frames rendered over 0-50%, combined at 75%, done at 100%
    grid:       slides rendered over 0-70%, composited at 85%, done at 100%
"""

from __future__ import annotations

import asyncio
import logging
import math
import re
import uuid
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Awaitable, Callable

from PIL import Image
from pydantic import ValidationError as PydanticValidationError

from ..constants import ExportFormat, ExportPhase, ExportType
from ..errors import ExportError, ValidationError
from ..projects.models import Canvas
from ..settings import Settings, get_settings
from .models import ExportMetadata, ExportProgress, ExportRequest, ExportResult
from .renderer import (
    SlideRenderer,
    build_timeline,
    combine_gif,
    combine_mp4,
    compose_grid,
    save_image,
)

_logger = logging.getLogger("export")

ExportProgressCallback = Callable[[ExportProgress], Awaitable[None]]

_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-zA-Z0-9]")


def grid_dimensions(slide_count: int) -> tuple[int, int]:
    """(cols, rows) for a grid of `slide_count` slides.

    cols = ceil(sqrt(n)), rows = ceil(n / cols), so cols * rows >= n.
    """
    if slide_count < 1:
        raise ValidationError("A grid needs at least one slide", details={"slide_count": slide_count})
    cols = math.ceil(math.sqrt(slide_count))
    rows = math.ceil(slide_count / cols)
    return cols, rows


def slide_filename(slide_number: int, title: str, fmt: ExportFormat) -> str:
    """slide_<n>_<title with non-alphanumerics replaced by _>.<fmt>"""
    return f"slide_{slide_number}_{_UNSAFE_FILENAME_CHARS.sub('_', title)}.{fmt.value}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CarouselExporter:
    """Exports canvases as individual files, a sequence or a grid.

    Usage:
        exporter = CarouselExporter(Path("exports"), progress_callback=show)
        result = await exporter.export(canvases, ExportRequest(export_type="grid"))
    """

    def __init__(
        self,
        output_dir: Path | None = None,
        renderer: SlideRenderer | None = None,
        progress_callback: ExportProgressCallback | None = None,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        """Initialize the exporter.

        Args:
            output_dir: Root directory for export folders. Defaults to settings.export_dir.
            renderer: Slide renderer. A default SlideRenderer is created when omitted.
            progress_callback: Optional async callback for every progress event.
            settings: Expiry and output settings.
            clock: Timestamp source for file names and expiry.
        """
        self.settings = settings or get_settings()
        self.output_dir = Path(output_dir or self.settings.export_dir)
        self.renderer = renderer or SlideRenderer()
        self.progress_callback = progress_callback
        self._clock = clock
        self._progress: ExportProgress | None = None

    @property
    def progress(self) -> ExportProgress | None:
        """Last progress event emitted."""
        return self._progress

    async def _report(
        self,
        phase: ExportPhase,
        total: int,
        progress: float,
        message: str,
        current_slide: int | None = None,
    ) -> None:
        self._progress = ExportProgress(
            phase=phase,
            current_slide=current_slide,
            total_slides=total,
            progress=progress,
            message=message,
        )
        _logger.debug(
            f"EXPORT | {phase.value.upper()} | progress:{progress:.0f} | {message}"
        )
        if self.progress_callback:
            await self.progress_callback(self._progress)

    def _timestamp(self) -> int:
        return int(self._clock().timestamp() * 1000)

    @staticmethod
    def _size(canvas: Canvas, request: ExportRequest) -> tuple[int, int]:
        if request.aspect_ratio_override is not None:
            return (request.aspect_ratio_override.width, request.aspect_ratio_override.height)
        return (canvas.format.width, canvas.format.height)

    async def _render(self, canvas: Canvas, request: ExportRequest) -> Image.Image:
        try:
            return await self.renderer.render(canvas, self._size(canvas, request))
        except (OSError, ValueError) as e:
            raise ExportError(f"Failed to render slide {canvas.slide_number}: {e}") from e

    # =========================================================================
    # EXPORT TYPES
    # =========================================================================

    async def export_individual(
        self,
        canvases: list[Canvas],
        request: ExportRequest,
        output_dir: Path,
    ) -> list[Path]:
        """Render each canvas to its own file."""
        total = len(canvases)
        await self._report(
            ExportPhase.PREPARING, total, 0, "Preparing individual canvas exports..."
        )

        files = []
        for index, canvas in enumerate(canvases):
            await self._report(
                ExportPhase.RENDERING,
                total,
                index / total * 100,
                f"Rendering slide {index + 1} of {total}...",
                current_slide=index + 1,
            )
            image = await self._render(canvas, request)
            path = output_dir / slide_filename(
                index + 1, canvas.slide_metadata.title, request.format
            )
            files.append(await asyncio.to_thread(save_image, image, path, request.format, request.quality))

        await self._report(ExportPhase.FINALIZING, total, 100, "Individual exports complete!")
        return files

    async def export_sequence(
        self,
        canvases: list[Canvas],
        request: ExportRequest,
        output_dir: Path,
    ) -> Path:
        """Render every frame, then combine them into one GIF or MP4."""
        total = len(canvases)
        await self._report(ExportPhase.PREPARING, total, 0, "Preparing sequence export...")

        frames = []
        for index, canvas in enumerate(canvases):
            await self._report(
                ExportPhase.RENDERING,
                total,
                index / total * 50,
                f"Rendering frame {index + 1} of {total}...",
                current_slide=index + 1,
            )
            frames.append(await self._render(canvas, request))

        await self._report(ExportPhase.COMBINING, total, 75, "Combining frames into sequence...")

        path = output_dir / f"carousel_sequence_{self._timestamp()}.{request.format.value}"
        try:
            timeline = await asyncio.to_thread(
                build_timeline,
                frames,
                fps=request.fps,
                transition=request.transition,
                transition_ms=request.transition_duration,
            )
            if request.format is ExportFormat.MP4:
                await asyncio.to_thread(combine_mp4, timeline, path, request.fps)
            else:
                await asyncio.to_thread(combine_gif, timeline, path)
        except (OSError, ValueError) as e:
            raise ExportError(f"Failed to combine {total} frames: {e}") from e

        await self._report(ExportPhase.FINALIZING, total, 100, "Sequence export complete!")
        return path

    async def export_grid(
        self,
        canvases: list[Canvas],
        request: ExportRequest,
        output_dir: Path,
    ) -> Path:
        """Render every slide, then lay them out on one image."""
        total = len(canvases)
        await self._report(ExportPhase.PREPARING, total, 0, "Preparing grid export...")
        cols, rows = grid_dimensions(total)

        rendered = []
        for index, canvas in enumerate(canvases):
            await self._report(
                ExportPhase.RENDERING,
                total,
                index / total * 70,
                f"Rendering canvas {index + 1} for grid...",
                current_slide=index + 1,
            )
            rendered.append(await self._render(canvas, request))

        await self._report(
            ExportPhase.COMBINING,
            total,
            85,
            f"Combining {total} slides into {cols}x{rows} grid...",
        )
        path = output_dir / f"carousel_grid_{cols}x{rows}_{self._timestamp()}.{request.format.value}"
        try:
            grid = await asyncio.to_thread(compose_grid, rendered, cols, rows)
            await asyncio.to_thread(save_image, grid, path, request.format, request.quality)
        except (OSError, ValueError) as e:
            raise ExportError(f"Failed to compose {cols}x{rows} grid: {e}") from e

        await self._report(ExportPhase.FINALIZING, total, 100, "Grid export complete!")
        return path

    # =========================================================================
    # ENTRY POINT
    # =========================================================================

    async def export(
        self,
        canvases: list[Canvas],
        request: ExportRequest | dict[str, Any],
        project_name: str = "Instagram Carousel",
    ) -> ExportResult:
        """Export canvases (ordered by slide number) as requested.

        Raises:
            ValidationError: Invalid request or nothing to export.
            ExportError: Rendering or combining failed.
        """
        if not isinstance(request, ExportRequest):
            try:
                request = ExportRequest.model_validate(request)
            except PydanticValidationError as e:
                fields = [".".join(str(part) for part in err["loc"]) for err in e.errors()]
                raise ValidationError(
                    f"Invalid export request: {', '.join(fields) or 'payload'}",
                    details={"errors": e.errors(include_url=False, include_context=False)},
                ) from e

        if not canvases:
            raise ValidationError("Nothing to export: the project has no active canvases")

        canvases = sorted(canvases, key=lambda c: c.slide_number)
        export_id = f"export_{self._timestamp()}_{uuid.uuid4().hex[:9]}"
        output_dir = self.output_dir / export_id
        try:
            output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ExportError(f"Cannot create export directory {output_dir}: {e}") from e

        if request.include_audio:
            _logger.warning(f"EXPORT:{export_id} | AUDIO_IGNORED | canvases carry no audio")

        _logger.info(
            f"EXPORT:{export_id} | START | type:{request.export_type.value} | "
            f"format:{request.format.value} | quality:{request.quality.value} | slides:{len(canvases)}"
        )

        if request.export_type is ExportType.INDIVIDUAL:
            files = await self.export_individual(canvases, request, output_dir)
        elif request.export_type is ExportType.SEQUENCE:
            files = [await self.export_sequence(canvases, request, output_dir)]
        else:
            files = [await self.export_grid(canvases, request, output_dir)]

        exported_at = self._clock()
        result = ExportResult(
            export_id=export_id,
            export_type=request.export_type,
            files=files,
            metadata=ExportMetadata(
                project_name=project_name,
                slide_count=len(canvases),
                format=request.format,
                quality=request.quality,
                exported_at=exported_at,
                expires_at=exported_at + timedelta(days=self.settings.export_expiry_days),
            ),
            progress=self._progress,
        )

        _logger.info(f"EXPORT:{export_id} | DONE | files:{len(files)} | dir:{output_dir}")
        return result
