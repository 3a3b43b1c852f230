"""Data models for carousel export requests and results."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from pydantic import BaseModel, Field, model_validator

from ..constants import (
    EXPORT_DEFAULT_FPS,
    EXPORT_DEFAULT_TRANSITION_MS,
    EXPORT_MAX_FPS,
    EXPORT_MAX_TRANSITION_MS,
    EXPORT_MIN_FPS,
    EXPORT_MIN_TRANSITION_MS,
    ExportFormat,
    ExportPhase,
    ExportQuality,
    ExportType,
    TransitionType,
)
from ..errors import ValidationError

SEQUENCE_FORMATS = frozenset({ExportFormat.GIF, ExportFormat.MP4})
IMAGE_FORMATS = frozenset({ExportFormat.PNG, ExportFormat.JPG, ExportFormat.GIF})


class AspectRatioOverride(BaseModel):
    """Output size forced on every slide instead of the canvas format."""

    width: int = Field(gt=0)
    height: int = Field(gt=0)


class ExportRequest(BaseModel):
    """What to export and how."""

    export_type: ExportType
    format: ExportFormat = ExportFormat.PNG
    quality: ExportQuality = ExportQuality.HIGH
    include_transitions: bool = False
    transition_type: TransitionType | None = None
    transition_duration: int = Field(
        default=EXPORT_DEFAULT_TRANSITION_MS,
        ge=EXPORT_MIN_TRANSITION_MS,
        le=EXPORT_MAX_TRANSITION_MS,
    )
    """Milliseconds."""
    aspect_ratio_override: AspectRatioOverride | None = None
    include_audio: bool = False
    fps: int = Field(default=EXPORT_DEFAULT_FPS, ge=EXPORT_MIN_FPS, le=EXPORT_MAX_FPS)

    @model_validator(mode="after")
    def _check_format(self) -> "ExportRequest":
        if self.export_type is ExportType.SEQUENCE and self.format not in SEQUENCE_FORMATS:
            raise ValidationError(
                f"A sequence export needs gif or mp4, not {self.format.value}",
                details={"export_type": self.export_type.value, "format": self.format.value},
            )
        if self.export_type is not ExportType.SEQUENCE and self.format not in IMAGE_FORMATS:
            raise ValidationError(
                f"An {self.export_type.value} export needs png, jpg or gif, not {self.format.value}",
                details={"export_type": self.export_type.value, "format": self.format.value},
            )
        return self

    @property
    def transition(self) -> TransitionType | None:
        """Transition to render between slides, or None."""
        if not self.include_transitions:
            return None
        return self.transition_type or TransitionType.FADE


class ExportProgress(BaseModel):
    """Progress event emitted while an export runs."""

    phase: ExportPhase
    current_slide: int | None = None
    total_slides: int
    progress: float = Field(ge=0, le=100)
    message: str = ""


class ExportMetadata(BaseModel):
    project_name: str
    slide_count: int
    format: ExportFormat
    quality: ExportQuality
    exported_at: datetime
    expires_at: datetime


class ExportResult(BaseModel):
    """Files written by one export."""

    export_id: str
    export_type: ExportType
    files: list[Path]
    metadata: ExportMetadata
    progress: ExportProgress
