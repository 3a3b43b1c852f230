"""Generation lifecycle operations with ownership checks.

Every operation takes the caller's owner id; a record owned by someone
else raises AuthorizationError, an unknown id raises NotFoundError.
Callers must serialize updates per generation id (one writer per id).
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Callable

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from ..constants import GenerationType
from ..errors import AuthorizationError, NotFoundError, ValidationError
from ..projects.store import ProjectStore
from .models import (
    CarouselOptions,
    GenerationCreate,
    GenerationFilter,
    GenerationPatch,
    GenerationRecord,
)
from .state import apply_patch
from .store import GenerationRepository

_logger = logging.getLogger("generation")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def validate_model(model: type[BaseModel], payload: BaseModel | dict[str, Any], what: str) -> Any:
    """Validate a payload into `model`, raising our ValidationError."""
    if isinstance(payload, model):
        return payload
    if isinstance(payload, BaseModel):
        payload = payload.model_dump()
    try:
        return model.model_validate(payload)
    except PydanticValidationError as e:
        fields = [".".join(str(part) for part in err["loc"]) for err in e.errors()]
        raise ValidationError(
            f"Invalid {what}: {', '.join(fields) or 'payload'}",
            details={"errors": e.errors(include_url=False, include_context=False)},
        ) from e


class GenerationService:
    """Create, read, update, list and delete generation records."""

    def __init__(
        self,
        store: GenerationRepository,
        project_store: ProjectStore,
        clock: Callable[[], datetime] | None = None,
    ):
        """Initialize the service.

        Args:
            store: Generation record repository.
            project_store: Used to check project ownership.
            clock: Timestamp source, defaults to UTC now.
        """
        self.store = store
        self.project_store = project_store
        self._clock = clock or _utcnow

    def now(self) -> datetime:
        return self._clock()

    def create_generation(
        self,
        owner_id: str,
        payload: GenerationCreate | dict[str, Any],
    ) -> GenerationRecord:
        """Create a pending generation.

        Args:
            owner_id: Caller creating the generation.
            payload: Type, prompt, optional project/canvas and options.

        Returns:
            The stored record with status pending.

        Raises:
            ValidationError: Missing type/prompt or invalid carousel options.
            NotFoundError: project_id does not resolve.
            AuthorizationError: project_id belongs to someone else.
        """
        request: GenerationCreate = validate_model(GenerationCreate, payload, "generation request")

        options = dict(request.options)
        if request.type is GenerationType.CAROUSEL:
            carousel_options: CarouselOptions = validate_model(
                CarouselOptions, options, "carousel options"
            )
            options = carousel_options.model_dump(mode="json")

        if request.project_id:
            self.project_store.get_project(owner_id, request.project_id)

        now = self._clock()
        record = GenerationRecord(
            id=str(uuid.uuid4()),
            owner_id=owner_id,
            project_id=request.project_id,
            canvas_id=request.canvas_id,
            type=request.type,
            prompt=request.prompt,
            options=options,
            created_at=now,
            updated_at=now,
        )
        self.store.save(record)

        _logger.info(
            f"GEN:{record.id} | CREATED | type:{record.type.value} | owner:{owner_id} | "
            f"prompt:{record.prompt[:80]}"
        )
        return record

    def get_generation(self, owner_id: str, generation_id: str) -> GenerationRecord:
        record = self.store.get(generation_id)
        if record is None:
            raise NotFoundError("generation", generation_id)
        if record.owner_id != owner_id:
            raise AuthorizationError("generation", generation_id, owner_id)
        return record

    def update_generation_status(
        self,
        owner_id: str,
        generation_id: str,
        patch: GenerationPatch | dict[str, Any],
    ) -> GenerationRecord:
        """Apply a status patch to an owned generation and persist it.

        Raises:
            ValidationError: Malformed patch or a transition not allowed.
            NotFoundError: Unknown id.
            AuthorizationError: Caller does not own the generation.
            PersistenceError: The store write failed.
        """
        update: GenerationPatch = validate_model(GenerationPatch, patch, "status update")
        record = self.get_generation(owner_id, generation_id)

        updated = apply_patch(record, update, self._clock())
        if updated is record:
            return record

        self.store.save(updated)
        return updated

    def list_generations(
        self,
        owner_id: str,
        filters: GenerationFilter | dict[str, Any] | None = None,
    ) -> list[GenerationRecord]:
        """Caller's generations, newest first."""
        if filters is None:
            filters = GenerationFilter()
        criteria: GenerationFilter = validate_model(GenerationFilter, filters, "filter")
        return self.store.list(owner_id, criteria)

    def delete_generation(self, owner_id: str, generation_id: str) -> None:
        self.get_generation(owner_id, generation_id)
        if not self.store.delete(generation_id):
            raise NotFoundError("generation", generation_id)
        _logger.info(f"GEN:{generation_id} | DELETED | owner:{owner_id}")
