"""Tests for apply_patch, the generation state machine."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from carousel_studio.constants import GenerationStatus, GenerationStep, GenerationType
from carousel_studio.errors import InvalidTransitionError, ValidationError
from carousel_studio.generation import GenerationPatch, GenerationRecord, apply_patch

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _at(seconds: int) -> datetime:
    return T0 + timedelta(seconds=seconds)


@pytest.fixture
def pending() -> GenerationRecord:
    return GenerationRecord(
        id="gen-1",
        owner_id="user-1",
        type=GenerationType.CAROUSEL,
        prompt="5 tips for morning routines",
        created_at=T0,
        updated_at=T0,
    )


def _generating(record: GenerationRecord, **fields) -> GenerationRecord:
    return apply_patch(record, GenerationPatch(status=GenerationStatus.GENERATING, **fields), _at(1))


class TestTransitions:
    """Status changes against the transition table."""

    @pytest.mark.parametrize("target", [GenerationStatus.GENERATING, GenerationStatus.FAILED])
    def test_pending_can_start_or_fail(self, pending: GenerationRecord, target: GenerationStatus):
        assert apply_patch(pending, GenerationPatch(status=target), _at(1)).status is target

    def test_pending_cannot_complete(self, pending: GenerationRecord):
        with pytest.raises(InvalidTransitionError) as exc_info:
            apply_patch(pending, GenerationPatch(status=GenerationStatus.COMPLETED), _at(1))

        assert exc_info.value.details == {"current_status": "pending", "requested_status": "completed"}

    def test_invalid_transition_is_a_validation_error(self, pending: GenerationRecord):
        with pytest.raises(ValidationError):
            apply_patch(pending, GenerationPatch(status=GenerationStatus.COMPLETED), _at(1))

    @pytest.mark.parametrize("terminal", [GenerationStatus.COMPLETED, GenerationStatus.FAILED])
    def test_terminal_cannot_restart(self, pending: GenerationRecord, terminal: GenerationStatus):
        record = apply_patch(
            _generating(pending, current_step=GenerationStep.CANVASES), GenerationPatch(status=terminal), _at(2)
        )

        with pytest.raises(InvalidTransitionError):
            apply_patch(record, GenerationPatch(status=GenerationStatus.GENERATING), _at(3))

    def test_completed_cannot_become_failed(self, pending: GenerationRecord):
        record = apply_patch(
            _generating(pending, current_step=GenerationStep.CANVASES),
            GenerationPatch(status=GenerationStatus.COMPLETED),
            _at(2),
        )

        with pytest.raises(InvalidTransitionError):
            apply_patch(record, GenerationPatch(status=GenerationStatus.FAILED), _at(3))

    def test_input_record_not_modified(self, pending: GenerationRecord):
        _generating(pending, progress=10)

        assert pending.status is GenerationStatus.PENDING
        assert pending.progress == 0


class TestCompletionStep:
    """A record completes only from its type's last phase."""

    @pytest.mark.parametrize("step", [None, GenerationStep.TEXT, GenerationStep.IMAGES])
    def test_carousel_cannot_complete_before_canvases(self, pending: GenerationRecord, step):
        record = _generating(pending, current_step=step)

        with pytest.raises(InvalidTransitionError) as exc_info:
            apply_patch(record, GenerationPatch(status=GenerationStatus.COMPLETED), _at(2))

        assert exc_info.value.details == {
            "type": "carousel",
            "current_step": step.value if step else None,
        }

    def test_rejected_completion_leaves_record_generating(self, pending: GenerationRecord):
        record = _generating(pending, current_step=GenerationStep.TEXT, progress=5)

        with pytest.raises(InvalidTransitionError):
            apply_patch(record, GenerationPatch(status=GenerationStatus.COMPLETED), _at(2))

        assert record.status is GenerationStatus.GENERATING
        assert record.current_step is GenerationStep.TEXT

    def test_carousel_completes_when_patch_reaches_canvases(self, pending: GenerationRecord):
        record = _generating(pending, current_step=GenerationStep.IMAGES)

        record = apply_patch(
            record,
            GenerationPatch(status=GenerationStatus.COMPLETED, current_step=GenerationStep.CANVASES),
            _at(2),
        )

        assert record.status is GenerationStatus.COMPLETED
        assert record.current_step is GenerationStep.COMPLETE

    @pytest.mark.parametrize(
        "generation_type,last_step",
        [(GenerationType.TEXT, GenerationStep.TEXT), (GenerationType.BACKGROUND, GenerationStep.IMAGES)],
    )
    def test_single_asset_types_complete_from_their_own_step(
        self, pending: GenerationRecord, generation_type, last_step
    ):
        record = _generating(pending.model_copy(update={"type": generation_type}), current_step=last_step)

        record = apply_patch(record, GenerationPatch(status=GenerationStatus.COMPLETED), _at(2))

        assert record.status is GenerationStatus.COMPLETED

    def test_background_cannot_complete_from_text(self, pending: GenerationRecord):
        record = _generating(
            pending.model_copy(update={"type": GenerationType.BACKGROUND}), current_step=GenerationStep.TEXT
        )

        with pytest.raises(InvalidTransitionError):
            apply_patch(record, GenerationPatch(status=GenerationStatus.COMPLETED), _at(2))


class TestTimestamps:
    """start_time and completed_time are written once."""

    def test_start_time_set_once(self, pending: GenerationRecord):
        record = _generating(pending)
        record = apply_patch(record, GenerationPatch(status=GenerationStatus.GENERATING, progress=40), _at(5))

        assert record.start_time == _at(1)
        assert record.updated_at == _at(5)

    def test_completing_twice_keeps_first_completed_time(self, pending: GenerationRecord):
        record = _generating(pending, current_step=GenerationStep.CANVASES)
        completed = apply_patch(record, GenerationPatch(status=GenerationStatus.COMPLETED), _at(2))
        again = apply_patch(
            completed,
            GenerationPatch(status=GenerationStatus.COMPLETED, result_data={"late": True}),
            _at(9),
        )

        assert completed.completed_time == _at(2)
        assert again is completed
        assert again.completed_time == _at(2)
        assert again.result_data is None

    def test_failing_from_pending_sets_completed_time(self, pending: GenerationRecord):
        record = apply_patch(pending, GenerationPatch(status=GenerationStatus.FAILED), _at(4))

        assert record.completed_time == _at(4)
        assert record.start_time is None


class TestProgressAndSteps:
    """Progress, cost and sub-phase rules."""

    def test_progress_never_decreases(self, pending: GenerationRecord):
        record = _generating(pending, progress=50)
        record = apply_patch(record, GenerationPatch(status=GenerationStatus.GENERATING, progress=30), _at(2))

        assert record.progress == 50

    def test_cost_never_decreases(self, pending: GenerationRecord):
        record = _generating(pending, cost=0.2)
        record = apply_patch(record, GenerationPatch(status=GenerationStatus.GENERATING, cost=0.1), _at(2))

        assert record.cost == pytest.approx(0.2)

    def test_step_cannot_go_back(self, pending: GenerationRecord):
        record = _generating(pending, current_step=GenerationStep.IMAGES)

        with pytest.raises(InvalidTransitionError):
            apply_patch(
                record,
                GenerationPatch(status=GenerationStatus.GENERATING, current_step=GenerationStep.TEXT),
                _at(2),
            )

    def test_same_step_allowed(self, pending: GenerationRecord):
        record = _generating(pending, current_step=GenerationStep.IMAGES, progress=35)
        record = apply_patch(
            record,
            GenerationPatch(status=GenerationStatus.GENERATING, current_step=GenerationStep.IMAGES, progress=55),
            _at(2),
        )

        assert record.progress == 55

    def test_completion_forces_100_and_complete_step(self, pending: GenerationRecord):
        record = _generating(pending, progress=85, current_step=GenerationStep.CANVASES, estimated_time_remaining=12)
        record = apply_patch(record, GenerationPatch(status=GenerationStatus.COMPLETED, progress=90), _at(2))

        assert record.progress == 100
        assert record.current_step is GenerationStep.COMPLETE
        assert record.estimated_time_remaining is None

    def test_failure_keeps_progress(self, pending: GenerationRecord):
        record = _generating(pending, progress=45, current_step=GenerationStep.IMAGES)
        record = apply_patch(
            record,
            GenerationPatch(status=GenerationStatus.FAILED, result_data={"error": "boom"}),
            _at(2),
        )

        assert record.status is GenerationStatus.FAILED
        assert record.progress == 45
        assert record.result_data == {"error": "boom"}


class TestGenerationPatch:
    """Validation of the patch model itself."""

    def test_status_required(self):
        with pytest.raises(ValueError):
            GenerationPatch(progress=10)

    def test_progress_bounds(self):
        with pytest.raises(ValueError):
            GenerationPatch(status=GenerationStatus.GENERATING, progress=101)

    def test_unknown_fields_rejected(self):
        with pytest.raises(ValueError):
            GenerationPatch(status=GenerationStatus.GENERATING, owner_id="someone-else")
