"""
Edit Operations

Pure transformations ``(state, args) -> new state``. Every operation
either returns a complete new EditorState or raises PreconditionError
before building anything, so a failed edit never leaves a partially
rewritten track/detection collection behind.

Label changes (relabel, merge) are applied as one rewrite of the whole
detection collection keyed by trackId, keeping the denormalized
Detection.label equal to its track's label.
"""

from typing import Iterable, Optional

from config.settings import settings
from motfixer.editor.errors import PreconditionError
from motfixer.editor.state import EditorState
from motfixer.utils.schemas import Track


def _require_tracks(state: EditorState, track_ids: Iterable[str]):
    missing = [tid for tid in track_ids if not state.has_track(tid)]
    if missing:
        raise PreconditionError(f"Track(s) not found: {', '.join(missing)}")


# ── Selection ────────────────────────────────────────────────────────

def toggle_selection(state: EditorState, track_id: str) -> EditorState:
    """Add ``track_id`` to the selection, or remove it if present. Focus follows."""
    if track_id in state.selected_ids:
        selected = tuple(tid for tid in state.selected_ids if tid != track_id)
    else:
        selected = state.selected_ids + (track_id,)
    return state.model_copy(update={"selected_ids": selected, "focused_id": track_id})


def clear_selection(state: EditorState) -> EditorState:
    return state.model_copy(update={"selected_ids": (), "focused_id": None})


# ── Frame navigation ─────────────────────────────────────────────────

def go_to_frame(state: EditorState, frame: int) -> EditorState:
    """Move to ``frame``, clamped to [0, total_frames - 1]."""
    frame = max(0, min(int(frame), state.total_frames - 1))
    return state.model_copy(update={"current_frame": frame})


def next_frame(state: EditorState) -> EditorState:
    return go_to_frame(state, state.current_frame + 1)


def prev_frame(state: EditorState) -> EditorState:
    return go_to_frame(state, state.current_frame - 1)


# ── Merge ────────────────────────────────────────────────────────────

def merge_tracks(state: EditorState, track_ids: Optional[Iterable[str]] = None) -> EditorState:
    """
    Merge two or more tracks into the lexicographically smallest id.

    Detections of the other (source) tracks are moved to the target and
    take the target's label; source tracks are removed. Selection collapses
    to the target, which also receives focus.

    Args:
        state: current editor state
        track_ids: ids to merge, defaults to the current selection

    Raises:
        PreconditionError: fewer than two distinct ids, or an unknown id
    """
    ids = sorted(set(state.selected_ids if track_ids is None else track_ids))
    if len(ids) < 2:
        raise PreconditionError("Select at least two tracks to merge.")
    _require_tracks(state, ids)

    target_id, sources = ids[0], set(ids[1:])
    target = state.get_track(target_id)

    detections = tuple(
        d.model_copy(update={"track_id": target_id, "label": target.label})
        if d.track_id in sources else d
        for d in state.detections
    )
    tracks = tuple(t for t in state.tracks if t.id not in sources)

    return state.model_copy(update={
        "tracks": tracks,
        "detections": detections,
        "selected_ids": (target_id,),
        "focused_id": target_id,
    })


# ── Split ────────────────────────────────────────────────────────────

def split_track(
    state: EditorState,
    track_ids: Optional[Iterable[str]] = None,
    frame: Optional[int] = None,
) -> EditorState:
    """
    Split one track at ``frame``: detections with ``frame >= split frame``
    move to a newly allocated track that inherits the label and gets the
    next palette colour. The original track stays selected and focused.

    Args:
        state: current editor state
        track_ids: must hold exactly one id, defaults to the current selection
        frame: split frame, defaults to the current frame

    Raises:
        PreconditionError: not exactly one id, unknown id, or nothing to move
    """
    ids = list(state.selected_ids if track_ids is None else track_ids)
    if len(ids) != 1:
        raise PreconditionError("Select exactly one track to split.")
    source_id = ids[0]
    _require_tracks(state, ids)
    split_frame = state.current_frame if frame is None else frame

    def moves(d) -> bool:
        return d.track_id == source_id and d.frame >= split_frame

    if not any(moves(d) for d in state.detections):
        raise PreconditionError(
            f"No detections for track {source_id} at or after frame {split_frame} "
            f"to move to a new track."
        )

    source = state.get_track(source_id)
    new_id, allocator = state.allocator.next_track_id()
    color, allocator = allocator.next_color()
    new_track = Track(id=new_id, label=source.label, color=color)

    detections = tuple(
        d.model_copy(update={"track_id": new_id, "label": new_track.label})
        if moves(d) else d
        for d in state.detections
    )

    return state.model_copy(update={
        "tracks": state.tracks + (new_track,),
        "detections": detections,
        "allocator": allocator,
        "selected_ids": (source_id,),
        "focused_id": source_id,
    })


# ── Relabel ──────────────────────────────────────────────────────────

def relabel_track(state: EditorState, track_id: str, new_label: str) -> EditorState:
    """
    Set a track's label (trimmed) and cascade it to all of its detections.

    Raises:
        PreconditionError: empty/whitespace-only label or unknown track
    """
    label = new_label.strip() if isinstance(new_label, str) else ""
    if not label:
        raise PreconditionError("Label must be a non-empty string.")
    _require_tracks(state, [track_id])

    tracks = tuple(
        t.model_copy(update={"label": label}) if t.id == track_id else t
        for t in state.tracks
    )
    detections = tuple(
        d.model_copy(update={"label": label}) if d.track_id == track_id else d
        for d in state.detections
    )
    return state.model_copy(update={"tracks": tracks, "detections": detections})


# ── Label suggestion ─────────────────────────────────────────────────

def suggest_labels(text: str, labels: Iterable[str], limit: int | None = None) -> list[str]:
    """
    Labels that contain ``text`` case-insensitively but are not an exact
    (case-insensitive) match, in first-occurrence order, capped at ``limit``.

    >>> suggest_labels("Pe", ["Car", "Pedestrian", "Bicycle"])
    ['Pedestrian']
    """
    if limit is None:
        limit = settings.suggestion_limit
    if not text or limit <= 0:
        return []
    needle = text.lower()
    suggestions: list[str] = []
    for label in dict.fromkeys(labels):
        lowered = label.lower()
        if needle in lowered and lowered != needle:
            suggestions.append(label)
            if len(suggestions) >= limit:
                break
    return suggestions
