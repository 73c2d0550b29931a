"""
Dataset Validator

Gates an externally supplied document before it may replace the store's
collections. Accepts raw JSON text/bytes or an already-parsed object and
returns typed ``(tracks, detections)``, or raises DatasetValidationError
carrying a single human-readable message for the first failure found.

Checks (in order):
    1. document is a JSON object
    2. missing / null ``tracks`` and ``detections`` are treated as empty
    3. every track has non-empty id, label, color
    4. every detection has non-empty id, trackId, label, numeric frame and
       a box with four numeric fields
    5. track ids and detection ids are unique
    6. every detection's trackId references a loaded track
"""

import json
from collections import Counter
from typing import Any, Iterable

from loguru import logger
from pydantic import ValidationError

from motfixer.editor.errors import DatasetValidationError
from motfixer.utils.schemas import DatasetDocument, Detection, Track


def _format_location(loc: tuple) -> str:
    """('detections', 3, 'box', 'w') -> 'detections[3].box.w'"""
    out = ""
    for part in loc:
        if isinstance(part, int):
            out += f"[{part}]"
        else:
            out += f".{part}" if out else str(part)
    return out


def _first_error(exc: ValidationError) -> str:
    err = exc.errors()[0]
    msg = err["msg"].removeprefix("Value error, ")
    return f"{_format_location(err['loc'])}: {msg}"


def parse_document(raw: Any) -> Any:
    """Decode JSON text/bytes; anything else is returned unchanged."""
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DatasetValidationError(f"Dataset is not valid UTF-8: {e}") from e
    if isinstance(raw, str):
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise DatasetValidationError(f"Dataset is not valid JSON: {e}") from e
    return raw


def _check_unique(ids: list[str], kind: str):
    dupes = [i for i, n in Counter(ids).items() if n > 1]
    if dupes:
        raise DatasetValidationError(f"Duplicate {kind} id(s): {', '.join(sorted(dupes))}")


def _check_references(tracks: list[Track], detections: list[Detection]):
    known = {t.id for t in tracks}
    dangling = [d for d in detections if d.track_id not in known]
    if dangling:
        first = dangling[0]
        raise DatasetValidationError(
            f"{len(dangling)} detection(s) reference unknown tracks "
            f"(e.g. detection {first.id} -> {first.track_id})"
        )


def check_integrity(tracks: Iterable[Track], detections: Iterable[Detection]):
    """
    Raise DatasetValidationError unless track ids and detection ids are
    unique and every detection references one of ``tracks``.
    """
    tracks, detections = list(tracks), list(detections)
    _check_unique([t.id for t in tracks], "track")
    _check_unique([d.id for d in detections], "detection")
    _check_references(tracks, detections)


def validate_document(raw: Any) -> tuple[list[Track], list[Detection]]:
    """
    Validate an untyped dataset document.

    Args:
        raw: JSON text, bytes, or a parsed object

    Returns:
        (tracks, detections) ready to be loaded into the store

    Raises:
        DatasetValidationError: on the first failed check
    """
    data = parse_document(raw)

    if not isinstance(data, dict):
        raise DatasetValidationError("Dataset must be a JSON object with 'tracks' and 'detections'")

    try:
        # metadata is informational only
        doc = DatasetDocument.model_validate({
            "tracks": data.get("tracks"),
            "detections": data.get("detections"),
        })
    except ValidationError as e:
        raise DatasetValidationError(f"Invalid dataset: {_first_error(e)}") from e

    check_integrity(doc.tracks, doc.detections)

    logger.debug(f"Validated dataset: {len(doc.tracks)} tracks, {len(doc.detections)} detections")
    return doc.tracks, doc.detections
