"""Status enums and the generation state machine.

This module contains the lifecycle definitions for a generation record:
- Generation status (pending, generating, completed, failed)
- Sub-phase markers used while a generation is in progress
- The allowed-transition table enforced by the generation service

AI CONTEXT:
-----------
Status enums represent the state machine for a generation:
  PENDING -> GENERATING -> COMPLETED
     |           |
     v           v
   FAILED      FAILED

While GENERATING, the record also carries a sub-phase:
  TEXT -> IMAGES -> CANVASES -> COMPLETE

MODIFICATION GUIDE:
------------------
- Add new enum values at the END to maintain backwards compatibility
- Any new status must be added to ALLOWED_TRANSITIONS, otherwise every
  transition into it is rejected
"""

from enum import Enum
from typing import Final


# =============================================================================
# GENERATION LIFECYCLE STATUS
# =============================================================================

class GenerationStatus(str, Enum):
    """Status of a generation record through its lifecycle."""

    PENDING = "pending"
    """Record created, no work started yet."""

    GENERATING = "generating"
    """Orchestrator is working through the phases."""

    COMPLETED = "completed"
    """All phases finished, result_data holds the carousel."""

    FAILED = "failed"
    """An unrecoverable error ended the generation."""

    @property
    def is_terminal(self) -> bool:
        """Whether no further work will happen on the record."""
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES: Final[frozenset[GenerationStatus]] = frozenset({
    GenerationStatus.COMPLETED,
    GenerationStatus.FAILED,
})


# Re-applying the current status is always allowed so that repeated
# terminal updates are idempotent.
ALLOWED_TRANSITIONS: Final[dict[GenerationStatus, frozenset[GenerationStatus]]] = {
    GenerationStatus.PENDING: frozenset({
        GenerationStatus.PENDING,
        GenerationStatus.GENERATING,
        GenerationStatus.FAILED,
    }),
    GenerationStatus.GENERATING: frozenset({
        GenerationStatus.GENERATING,
        GenerationStatus.COMPLETED,
        GenerationStatus.FAILED,
    }),
    GenerationStatus.COMPLETED: frozenset({GenerationStatus.COMPLETED}),
    GenerationStatus.FAILED: frozenset({GenerationStatus.FAILED}),
}


def is_transition_allowed(current: GenerationStatus, target: GenerationStatus) -> bool:
    """Check a status change against the transition table."""
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


# =============================================================================
# GENERATION SUB-PHASE
# =============================================================================

class GenerationStep(str, Enum):
    """Sub-phase of a generation while it is GENERATING."""

    TEXT = "text"
    """Text provider is writing the slide content."""

    IMAGES = "images"
    """Image provider is producing one background per slide."""

    CANVASES = "canvases"
    """Slides are being persisted as canvases and media items."""

    COMPLETE = "complete"
    """All phases done."""

    @property
    def order(self) -> int:
        """Position of the step in the pipeline."""
        return STEP_ORDER.index(self)


STEP_ORDER: Final[tuple[GenerationStep, ...]] = (
    GenerationStep.TEXT,
    GenerationStep.IMAGES,
    GenerationStep.CANVASES,
    GenerationStep.COMPLETE,
)


# =============================================================================
# GENERATION TYPE
# =============================================================================

class GenerationType(str, Enum):
    """What a generation produces."""

    CAROUSEL = "carousel"
    """Full multi-slide carousel (text + backgrounds + canvases)."""

    BACKGROUND = "background"
    """A single background image."""

    TEXT = "text"
    """Text content only."""


# Steps a generation may be completed from, per type. The orchestrator moves
# each type through its own phases before finishing.
COMPLETION_STEPS: Final[dict[GenerationType, frozenset[GenerationStep]]] = {
    GenerationType.CAROUSEL: frozenset({GenerationStep.CANVASES, GenerationStep.COMPLETE}),
    GenerationType.TEXT: frozenset({GenerationStep.TEXT, GenerationStep.COMPLETE}),
    GenerationType.BACKGROUND: frozenset({GenerationStep.IMAGES, GenerationStep.COMPLETE}),
}


def can_complete_from(generation_type: GenerationType, step: GenerationStep | None) -> bool:
    """Check whether a generation of this type may complete at this step."""
    return step in COMPLETION_STEPS.get(generation_type, frozenset())


# =============================================================================
# EXPORT PHASES
# =============================================================================

class ExportPhase(str, Enum):
    """Phases reported by the export pipeline."""

    PREPARING = "preparing"
    RENDERING = "rendering"
    COMBINING = "combining"
    FINALIZING = "finalizing"
