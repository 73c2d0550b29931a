"""
Track/Detection Store

The single state container of the editor. Every mutation goes through
``dispatch``: the operation computes a new EditorState from the current
one, the store commits it and notifies subscribers. Operations that raise
leave the committed state untouched.

Imports are two-step so that reading a file can happen off the mutation
path: ``begin_import()`` hands out a token, ``complete_import(token, raw)``
commits only if no newer import was started in the meantime.
"""

from typing import Any, Callable, Iterable

from loguru import logger

from config.settings import settings
from motfixer.editor import operations as ops
from motfixer.editor.errors import EditorError
from motfixer.editor.sample_data import build_sample_dataset
from motfixer.editor.serializer import export_document, import_document, read_document
from motfixer.editor.state import EditorState
from motfixer.utils.schemas import Detection, Track

Subscriber = Callable[[EditorState], None]


class TrackStore:
    """Authoritative holder of tracks, detections, frame and selection."""

    def __init__(
        self,
        tracks: Iterable[Track] | None = None,
        detections: Iterable[Detection] | None = None,
        total_frames: int | None = None,
        palette: Iterable[str] | None = None,
    ):
        """
        Create a store. Without collections it starts from the bundled dataset.

        Args:
            tracks: initial tracks
            detections: initial detections
            total_frames: frame count, defaults to settings.total_frames
            palette: colours for new tracks, defaults to settings.track_colors

        Raises:
            DatasetValidationError: duplicate ids or dangling detections
        """
        self.total_frames = total_frames or settings.total_frames
        self.palette = tuple(palette or settings.track_colors)
        self._subscribers: list[Subscriber] = []
        self._import_token = 0

        if tracks is None and detections is None:
            tracks, detections = build_sample_dataset(self.total_frames)
        self._state = self._fresh_state(tracks or [], detections or [])

        logger.info(
            f"TrackStore initialized: {len(self._state.tracks)} tracks, "
            f"{len(self._state.detections)} detections, {self.total_frames} frames"
        )

    def _fresh_state(self, tracks, detections) -> EditorState:
        return EditorState.from_collections(
            tracks, detections, total_frames=self.total_frames, palette=self.palette
        )

    # ── State container ──────────────────────────────────────────────

    @property
    def state(self) -> EditorState:
        return self._state

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register ``callback(state)`` for every commit. Returns an unsubscribe function."""
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _commit(self, new_state: EditorState) -> EditorState:
        self._state = new_state
        for callback in list(self._subscribers):
            callback(new_state)
        return new_state

    def dispatch(self, operation: Callable[..., EditorState], *args, **kwargs) -> EditorState:
        """Apply a pure operation to the current state and commit the result."""
        try:
            new_state = operation(self._state, *args, **kwargs)
        except EditorError as e:
            logger.warning(f"{operation.__name__} rejected: {e}")
            raise
        return self._commit(new_state)

    # ── Selection & navigation ───────────────────────────────────────

    def toggle_selection(self, track_id: str) -> EditorState:
        return self.dispatch(ops.toggle_selection, track_id)

    def clear_selection(self) -> EditorState:
        return self.dispatch(ops.clear_selection)

    def go_to_frame(self, frame: int) -> EditorState:
        return self.dispatch(ops.go_to_frame, frame)

    def next_frame(self) -> EditorState:
        return self.dispatch(ops.next_frame)

    def prev_frame(self) -> EditorState:
        return self.dispatch(ops.prev_frame)

    # ── Edits ────────────────────────────────────────────────────────

    def merge(self) -> EditorState:
        """Merge the selected tracks into the lexicographically smallest id."""
        sources = sorted(self._state.selected_ids)[1:]
        state = self.dispatch(ops.merge_tracks)
        logger.info(f"Tracks {', '.join(sources)} merged into {state.selected_ids[0]}")
        return state

    def split(self, frame: int | None = None) -> EditorState:
        """Split the single selected track at ``frame`` (default: the current frame)."""
        before = {t.id for t in self._state.tracks}
        frame = self._state.current_frame if frame is None else frame
        state = self.dispatch(ops.split_track, frame=frame)
        new_id = next(t.id for t in state.tracks if t.id not in before)
        logger.info(
            f"Track {state.selected_ids[0]} split: detections from frame "
            f"{frame} onwards moved to new track {new_id}"
        )
        return state

    def relabel(self, track_id: str, new_label: str) -> EditorState:
        state = self.dispatch(ops.relabel_track, track_id, new_label)
        logger.info(f"Track {track_id} relabelled -> {state.get_track(track_id).label!r}")
        return state

    def suggest_labels(self, text: str, limit: int | None = None) -> list[str]:
        """Suggestions for the relabel input, drawn from labels currently in use."""
        return ops.suggest_labels(text, self._state.unique_labels(), limit)

    # ── Load / reset / export ────────────────────────────────────────

    def load(self, raw: Any) -> EditorState:
        """
        Validate a document and replace all tracks and detections with it.
        Resets frame and selection and re-seeds the identity allocator.

        Raises:
            DatasetValidationError: the store is left untouched
        """
        try:
            tracks, detections = import_document(raw)
        except EditorError as e:
            logger.warning(f"Import rejected: {e}")
            raise
        state = self._commit(self._fresh_state(tracks, detections))
        logger.info(f"Loaded dataset: {len(tracks)} tracks, {len(detections)} detections")
        return state

    def load_file(self, path) -> EditorState:
        return self.load(read_document(path))

    def reset(self) -> EditorState:
        """Restore the bundled default dataset."""
        tracks, detections = build_sample_dataset(self.total_frames)
        state = self._commit(self._fresh_state(tracks, detections))
        logger.info("Store reset to bundled dataset")
        return state

    def export(self) -> dict:
        return export_document(self._state, total_frames=self.total_frames)

    # ── Asynchronous import ──────────────────────────────────────────

    def begin_import(self) -> int:
        """Start an import; only the most recently issued token may commit."""
        self._import_token += 1
        return self._import_token

    def complete_import(self, token: int, raw: Any) -> bool:
        """
        Finish an import started with ``begin_import``.

        Returns:
            True if committed, False if a newer import superseded this one

        Raises:
            DatasetValidationError: the document is invalid (store untouched)
        """
        if token != self._import_token:
            logger.warning(f"Discarding stale import #{token} (latest is #{self._import_token})")
            return False
        self.load(raw)
        return True
