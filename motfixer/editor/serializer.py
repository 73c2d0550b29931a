"""
Dataset Serializer

Converts editor state to the persisted JSON document and back.

Document shape:
    {
      "tracks":     [{"id", "label", "color"}, ...],
      "detections": [{"id", "trackId", "box": {"x","y","w","h"}, "label", "frame"}, ...],
      "metadata":   {"exportedAt", "totalFrames", "version"}
    }

Import goes through the validator, so ``import_document(export_document(s))``
reproduces the same tracks and detections.
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from loguru import logger

from config.settings import settings
from motfixer.editor.errors import DatasetValidationError
from motfixer.editor.state import EditorState
from motfixer.editor.validator import validate_document
from motfixer.utils.schemas import DatasetDocument, DatasetMetadata, Detection, Track


def export_document(
    state: EditorState,
    total_frames: int | None = None,
    exported_at: datetime | None = None,
) -> dict:
    """Build the exchange document for the current tracks and detections."""
    doc = DatasetDocument(
        tracks=list(state.tracks),
        detections=list(state.detections),
        metadata=DatasetMetadata(
            exported_at=exported_at or datetime.now(timezone.utc),
            total_frames=total_frames or state.total_frames,
            version=settings.dataset_version,
        ),
    )
    return doc.to_dict()


def dumps_document(state: EditorState, **kwargs) -> str:
    return json.dumps(export_document(state, **kwargs), indent=2)


def import_document(raw: Any) -> tuple[list[Track], list[Detection]]:
    """Parse and validate a document (text, bytes or dict)."""
    return validate_document(raw)


def save_document(state: EditorState, path: str | Path, **kwargs) -> Path:
    """Write the exported document to ``path`` as JSON."""
    path = Path(path)
    if path.parent != Path("."):
        path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dumps_document(state, **kwargs), encoding="utf-8")
    logger.info(f"Saved {len(state.tracks)} tracks, {len(state.detections)} detections -> {path}")
    return path


def read_document(path: str | Path) -> str:
    """Read a dataset file; an unreadable file is reported like a malformed one."""
    path = Path(path)
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise DatasetValidationError(f"Cannot read dataset file {path}: {e}") from e
