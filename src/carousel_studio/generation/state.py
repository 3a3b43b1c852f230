"""Generation state machine: applying a status patch to a record.

Rules enforced here (and only here):
- Status changes must be in ALLOWED_TRANSITIONS. Completed and failed are
  terminal; re-applying the same terminal status is a no-op.
- The sub-phase (current_step) never moves backwards.
- Progress and cost never decrease; lower values are clamped, not rejected.
- start_time is written on the first entry into generating and
  completed_time on the first entry into a terminal status. Neither is
  overwritten afterwards.
- A record completes only from its type's last step (canvases for a
  carousel, text for text, images for a background).
- Completing forces progress=100 and current_step=complete.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from ..constants import GenerationStatus, GenerationStep, can_complete_from, is_transition_allowed
from ..errors import InvalidTransitionError
from .models import GenerationPatch, GenerationRecord

_logger = logging.getLogger("generation")


def _check_step(record: GenerationRecord, step: GenerationStep | None) -> None:
    if step is None or record.current_step is None:
        return
    if step.order < record.current_step.order:
        raise InvalidTransitionError(
            f"Cannot move generation {record.id} back from step "
            f"'{record.current_step.value}' to '{step.value}'",
            details={"current_step": record.current_step.value, "requested_step": step.value},
        )


def _check_completion(record: GenerationRecord, step: GenerationStep | None) -> None:
    step = step or record.current_step
    if not can_complete_from(record.type, step):
        step_name = step.value if step else None
        raise InvalidTransitionError(
            f"Cannot complete {record.type.value} generation {record.id} at step '{step_name}'",
            details={"type": record.type.value, "current_step": step_name},
        )


def apply_patch(record: GenerationRecord, patch: GenerationPatch, now: datetime) -> GenerationRecord:
    """Apply a status patch and return the updated record.

    Args:
        record: Current stored record.
        patch: Requested update.
        now: Timestamp for start/completed/updated times.

    Returns:
        A new GenerationRecord. The input is not modified.

    Raises:
        InvalidTransitionError: For a status change outside the transition
            table, a sub-phase regression or completion before the
            type's last step.
    """
    if not is_transition_allowed(record.status, patch.status):
        raise InvalidTransitionError(
            f"Cannot transition generation {record.id} from "
            f"'{record.status.value}' to '{patch.status.value}'",
            details={"current_status": record.status.value, "requested_status": patch.status.value},
        )

    # Terminal records are frozen; repeating the terminal status changes nothing
    if record.is_terminal:
        _logger.debug(f"GEN:{record.id} | STATUS_REPEAT | status:{record.status.value}")
        return record

    _check_step(record, patch.current_step)
    if patch.status is GenerationStatus.COMPLETED:
        _check_completion(record, patch.current_step)

    updates: dict[str, Any] = {"status": patch.status, "updated_at": now}

    if patch.current_step is not None:
        updates["current_step"] = patch.current_step
    if patch.progress is not None:
        updates["progress"] = max(record.progress, patch.progress)
    if patch.cost is not None:
        updates["cost"] = max(record.cost, patch.cost)
    if patch.estimated_time_remaining is not None:
        updates["estimated_time_remaining"] = patch.estimated_time_remaining
    if patch.result_data is not None:
        updates["result_data"] = patch.result_data

    if patch.status is GenerationStatus.GENERATING and record.start_time is None:
        updates["start_time"] = now

    if patch.status.is_terminal:
        if record.completed_time is None:
            updates["completed_time"] = now
        updates["estimated_time_remaining"] = None

    if patch.status is GenerationStatus.COMPLETED:
        updates["progress"] = 100
        updates["current_step"] = GenerationStep.COMPLETE

    if record.status is not patch.status:
        _logger.info(
            f"GEN:{record.id} | STATUS | from:{record.status.value} | to:{patch.status.value}"
        )

    return record.model_copy(update=updates)
