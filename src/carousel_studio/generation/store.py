"""Persistence for generation records.

The record store is the single source of truth for a generation's status;
progress is observed by re-reading it.

Storage structure:
    <data_dir>/generations/
        <generation_id>.json
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Protocol, runtime_checkable

from pydantic import ValidationError as PydanticValidationError

from ..errors import PersistenceError
from .models import GenerationFilter, GenerationRecord

_logger = logging.getLogger("store")


@runtime_checkable
class GenerationRepository(Protocol):
    """Storage interface the generation service depends on."""

    def get(self, generation_id: str) -> GenerationRecord | None:
        ...

    def save(self, record: GenerationRecord) -> None:
        ...

    def delete(self, generation_id: str) -> bool:
        ...

    def list(self, owner_id: str, filters: GenerationFilter) -> list[GenerationRecord]:
        ...


class JsonGenerationStore:
    """Generation records as one JSON file each."""

    def __init__(self, directory: Path):
        """Initialize the store.

        Args:
            directory: Directory holding the record files. Created on demand.
        """
        self.directory = Path(directory)

    def _path(self, generation_id: str) -> Path:
        # Ids are generated internally, but never let one escape the directory
        safe_id = Path(generation_id).name
        return self.directory / f"{safe_id}.json"

    def _read(self, path: Path) -> GenerationRecord:
        try:
            with open(path, encoding="utf-8") as f:
                return GenerationRecord.model_validate(json.load(f))
        except (OSError, json.JSONDecodeError, PydanticValidationError) as e:
            raise PersistenceError(f"Failed to read generation file {path.name}: {e}") from e

    def get(self, generation_id: str) -> GenerationRecord | None:
        path = self._path(generation_id)
        if not path.exists():
            return None
        return self._read(path)

    def save(self, record: GenerationRecord) -> None:
        """Write a record atomically (temp file + rename)."""
        path = self._path(record.id)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(record.model_dump(mode="json"), f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, path)
        except OSError as e:
            raise PersistenceError(f"Failed to write generation {record.id}: {e}") from e

        _logger.debug(
            f"GEN:{record.id} | SAVED | status:{record.status.value} | progress:{record.progress}"
        )

    def delete(self, generation_id: str) -> bool:
        path = self._path(generation_id)
        if not path.exists():
            return False
        try:
            path.unlink()
        except OSError as e:
            raise PersistenceError(f"Failed to delete generation {generation_id}: {e}") from e
        return True

    def list(self, owner_id: str, filters: GenerationFilter) -> list[GenerationRecord]:
        """Owner's records matching the filters, newest first, paginated."""
        if not self.directory.exists():
            return []

        records = []
        for path in self.directory.glob("*.json"):
            record = self._read(path)
            if record.owner_id != owner_id:
                continue
            if filters.project_id and record.project_id != filters.project_id:
                continue
            if filters.status and record.status is not filters.status:
                continue
            records.append(record)

        records.sort(key=lambda r: r.created_at, reverse=True)
        return records[filters.offset:filters.offset + filters.limit]
