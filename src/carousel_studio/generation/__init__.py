"""Generation records, their state machine and the orchestrator that drives them."""

from .models import (
    CarouselOptions,
    GenerationCreate,
    GenerationFilter,
    GenerationPatch,
    GenerationProgress,
    GenerationRecord,
)
from .orchestrator import GenerationOrchestrator
from .service import GenerationService
from .state import apply_patch
from .store import GenerationRepository, JsonGenerationStore

__all__ = [
    "CarouselOptions",
    "GenerationCreate",
    "GenerationFilter",
    "GenerationOrchestrator",
    "GenerationPatch",
    "GenerationProgress",
    "GenerationRecord",
    "GenerationRepository",
    "GenerationService",
    "JsonGenerationStore",
    "apply_patch",
]
