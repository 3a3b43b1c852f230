"""JSON file storage for projects, canvases and media items.

Storage structure:
    <data_dir>/projects/
        <project_id>.json   # ProjectDocument: project + canvases + media items
"""

from __future__ import annotations

import json
import logging
import os
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

from pydantic import ValidationError as PydanticValidationError

from ..errors import AuthorizationError, NotFoundError, PersistenceError
from .models import (
    Canvas,
    CarouselProjectMetadata,
    MediaItem,
    Project,
    ProjectDocument,
)

_logger = logging.getLogger("store")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ProjectStore:
    """Persists projects with their canvases and media items."""

    def __init__(self, directory: Path, clock: Callable[[], datetime] = _utcnow):
        """Initialize the store.

        Args:
            directory: Directory holding one JSON document per project.
            clock: Timestamp source.
        """
        self.directory = Path(directory)
        self._clock = clock

    def _path(self, project_id: str) -> Path:
        return self.directory / f"{Path(project_id).name}.json"

    def _load(self, project_id: str) -> ProjectDocument:
        path = self._path(project_id)
        if not path.exists():
            raise NotFoundError("project", project_id)
        try:
            with open(path, encoding="utf-8") as f:
                return ProjectDocument.model_validate(json.load(f))
        except (OSError, json.JSONDecodeError, PydanticValidationError) as e:
            raise PersistenceError(f"Failed to read project {project_id}: {e}") from e

    def _save(self, document: ProjectDocument) -> None:
        path = self._path(document.project.id)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(document.model_dump(mode="json"), f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, path)
        except OSError as e:
            raise PersistenceError(f"Failed to write project {document.project.id}: {e}") from e

    def _load_owned(self, owner_id: str, project_id: str) -> ProjectDocument:
        document = self._load(project_id)
        if document.project.owner_id != owner_id:
            raise AuthorizationError("project", project_id, owner_id)
        return document

    def create_project(
        self,
        owner_id: str,
        name: str,
        tags: list[str] | None = None,
        carousel_metadata: CarouselProjectMetadata | None = None,
    ) -> Project:
        """Create an empty project."""
        now = self._clock()
        project = Project(
            id=str(uuid.uuid4()),
            owner_id=owner_id,
            name=name,
            tags=tags or [],
            carousel_metadata=carousel_metadata,
            created_at=now,
            updated_at=now,
        )
        self._save(ProjectDocument(project=project))
        _logger.info(f"PROJECT:{project.id} | CREATED | owner:{owner_id} | name:{name[:60]}")
        return project

    def get_project(self, owner_id: str, project_id: str) -> Project:
        """Get a project the caller owns.

        Raises:
            NotFoundError: Unknown project id.
            AuthorizationError: Project belongs to someone else.
        """
        return self._load_owned(owner_id, project_id).project

    def list_projects(self, owner_id: str) -> list[Project]:
        if not self.directory.exists():
            return []
        projects = []
        for path in self.directory.glob("*.json"):
            project = self._load(path.stem).project
            if project.owner_id == owner_id:
                projects.append(project)
        return sorted(projects, key=lambda p: p.created_at, reverse=True)

    def add_slides(
        self,
        owner_id: str,
        project_id: str,
        canvases: list[Canvas],
        media_items: list[MediaItem],
    ) -> None:
        """Attach canvases and their media items to a project in one write.

        Existing active canvases with the same slide numbers are deactivated.
        """
        document = self._load_owned(owner_id, project_id)
        replaced = {canvas.slide_number for canvas in canvases}
        for existing in document.canvases:
            if existing.is_active and existing.slide_number in replaced:
                existing.is_active = False

        document.canvases.extend(canvases)
        document.media_items.extend(media_items)
        document.project.updated_at = self._clock()
        self._save(document)
        _logger.info(
            f"PROJECT:{project_id} | SLIDES_ADDED | canvases:{len(canvases)} | media:{len(media_items)}"
        )

    def get_canvases(self, owner_id: str, project_id: str) -> list[Canvas]:
        """Active canvases of a project, ordered by slide number."""
        document = self._load_owned(owner_id, project_id)
        active = [canvas for canvas in document.canvases if canvas.is_active]
        return sorted(active, key=lambda c: c.slide_number)

    def get_media_items(self, owner_id: str, project_id: str) -> list[MediaItem]:
        return list(self._load_owned(owner_id, project_id).media_items)
