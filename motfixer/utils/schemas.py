"""
Pydantic schemas for tracks, detections and the exchanged dataset document.

Field names follow the JSON document (camelCase aliases), attribute names
are snake_case. All models are frozen: edits replace objects wholesale.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from datetime import datetime, timezone
from typing import Optional


def _require_number(value, field: str):
    # bool is an int subclass but never a coordinate
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{field} must be a number")
    return value


class BoundingBox(BaseModel):
    """Bounding box as percentages of the frame (x, y = top-left corner)."""
    model_config = ConfigDict(frozen=True)

    x: float
    y: float
    w: float
    h: float

    @field_validator("x", "y", "w", "h", mode="before")
    @classmethod
    def _numeric(cls, value, info):
        return _require_number(value, info.field_name)

    def to_pixels(self, width: int, height: int) -> tuple[float, float, float, float]:
        """Return (left, top, width, height) in pixels for a frame of the given size."""
        return (
            self.x * width / 100,
            self.y * height / 100,
            self.w * width / 100,
            self.h * height / 100,
        )


class Track(BaseModel):
    """A persistent object identity across frames."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    label: str = Field(min_length=1)
    color: str = Field(min_length=1)


class SelectableTrack(Track):
    """Track row as shown in a selection panel."""
    is_selected: bool = False


class Detection(BaseModel):
    """One frame-localized observation bound to a track."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(min_length=1)
    track_id: str = Field(alias="trackId", min_length=1)
    box: BoundingBox
    label: str = Field(min_length=1)
    frame: int = Field(ge=0)

    @field_validator("frame", mode="before")
    @classmethod
    def _integral_frame(cls, value):
        _require_number(value, "frame")
        if isinstance(value, float):
            if not value.is_integer():
                raise ValueError("frame must be an integer")
            return int(value)
        return value


class DatasetMetadata(BaseModel):
    """Export metadata. Informational only, ignored on import."""
    model_config = ConfigDict(populate_by_name=True)

    exported_at: datetime = Field(
        alias="exportedAt",
        default_factory=lambda: datetime.now(timezone.utc),
    )
    total_frames: int = Field(alias="totalFrames")
    version: str = "1.0"


class DatasetDocument(BaseModel):
    """Persisted/exchanged form of the dataset."""
    model_config = ConfigDict(populate_by_name=True)

    tracks: list[Track] = []
    detections: list[Detection] = []
    metadata: Optional[DatasetMetadata] = None

    @field_validator("tracks", "detections", mode="before")
    @classmethod
    def _missing_as_empty(cls, value):
        return [] if value is None else value

    def to_dict(self) -> dict:
        """Serialize to a JSON-compatible dict using the document's key names."""
        return self.model_dump(mode="json", by_alias=True)
