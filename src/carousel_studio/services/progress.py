"""Progress management service.

Replaces shared mutable progress state with an explicit event channel:
each phase of the orchestrator reports through one ProgressManager, which
keeps the latest GenerationProgress snapshot and hands it to an optional
async callback. The persisted generation record stays the durable
checkpoint; these events are for live display only.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Awaitable, Callable

from ..constants import GenerationStatus, GenerationStep

if TYPE_CHECKING:
    from ..generation.models import GenerationProgress

_logger = logging.getLogger("generation")

ProgressCallback = Callable[["GenerationProgress"], Awaitable[None]]


class ProgressManager:
    """Tracks and reports progress for one generation.

    Usage:
        manager = ProgressManager(generation_id, callback=display_progress)
        await manager.start_phase(GenerationStep.TEXT, progress=5)
        await manager.complete_phase(GenerationStep.TEXT, progress=30)
        await manager.complete()
    """

    def __init__(
        self,
        generation_id: str,
        callback: ProgressCallback | None = None,
    ):
        """Initialize the progress manager.

        Args:
            generation_id: Generation being tracked.
            callback: Optional async callback receiving every snapshot.
        """
        self.generation_id = generation_id
        self.callback = callback

        from ..generation.models import GenerationProgress

        self._progress = GenerationProgress(generation_id=generation_id)

    @property
    def progress(self) -> "GenerationProgress":
        """Latest progress snapshot."""
        return self._progress

    async def emit(self, progress: "GenerationProgress | None" = None) -> None:
        """Emit a progress update.

        Args:
            progress: Optional snapshot to emit. Uses internal state if not provided.
        """
        if progress:
            self._progress = progress

        if self.callback:
            await self.callback(self._progress)

    async def update(self, **kwargs: Any) -> None:
        """Update the snapshot and emit it.

        Progress and cost only ever move forward.
        """
        if "progress" in kwargs:
            kwargs["progress"] = max(self._progress.progress, kwargs["progress"])
        if "cost" in kwargs:
            kwargs["cost"] = max(self._progress.cost, kwargs["cost"])
        self._progress = self._progress.model_copy(update=kwargs)
        await self.emit()

    async def start_phase(
        self,
        step: GenerationStep,
        progress: int | None = None,
        message: str | None = None,
    ) -> None:
        """Start a generation phase.

        Args:
            step: Phase being entered.
            progress: Checkpoint reached on entry.
            message: Description shown to the user.
        """
        updates: dict[str, Any] = {
            "status": GenerationStatus.GENERATING,
            "current_step": step,
            "message": message or f"Starting {step.value}",
        }
        if progress is not None:
            updates["progress"] = progress

        _logger.info(f"GEN:{self.generation_id} | PHASE_START | step:{step.value}")
        await self.update(**updates)

    async def complete_phase(
        self,
        step: GenerationStep,
        progress: int | None = None,
        cost: float | None = None,
    ) -> None:
        """Mark a phase complete."""
        updates: dict[str, Any] = {"message": f"Finished {step.value}"}
        if progress is not None:
            updates["progress"] = progress
        if cost is not None:
            updates["cost"] = cost

        await self.update(**updates)
        _logger.info(
            f"GEN:{self.generation_id} | PHASE_END | step:{step.value} | "
            f"progress:{self._progress.progress} | cost:${self._progress.cost:.4f}"
        )

    async def set_total_slides(self, count: int) -> None:
        await self.update(total_slides=count)

    async def complete_slide(self, slide_number: int, progress: int) -> None:
        """Record one slide's background as generated."""
        completed = self._progress.completed_slides + 1
        await self.update(
            completed_slides=completed,
            progress=progress,
            message=f"Slide {slide_number} background ready ({completed}/{self._progress.total_slides})",
        )

    async def fail_slide(self, slide_number: int, error: str, progress: int) -> None:
        """Record one slide's background as failed without failing the run."""
        errors = list(self._progress.errors) + [f"slide {slide_number}: {error}"]
        await self.update(
            failed_slides=self._progress.failed_slides + 1,
            errors=errors,
            progress=progress,
        )
        _logger.warning(
            f"GEN:{self.generation_id} | SLIDE_FAILED | slide:{slide_number} | error:{error}"
        )

    async def complete(self, cost: float | None = None) -> None:
        """Mark generation as complete."""
        updates: dict[str, Any] = {
            "status": GenerationStatus.COMPLETED,
            "current_step": GenerationStep.COMPLETE,
            "progress": 100,
            "message": "Done",
        }
        if cost is not None:
            updates["cost"] = cost
        await self.update(**updates)

        _logger.info(
            f"GEN:{self.generation_id} | GENERATION_COMPLETE | "
            f"slides:{self._progress.completed_slides}/{self._progress.total_slides} | "
            f"cost:${self._progress.cost:.4f}"
        )

    async def fail(self, error: str) -> None:
        """Mark generation as failed.

        Args:
            error: Error message.
        """
        errors = list(self._progress.errors) + [error]
        await self.update(
            status=GenerationStatus.FAILED,
            errors=errors,
            message=error,
        )

        _logger.error(f"GEN:{self.generation_id} | GENERATION_FAILED | error:{error}")
