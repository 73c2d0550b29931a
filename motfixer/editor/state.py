"""
Editor State

Immutable snapshot of everything the editor knows: tracks, detections,
the current frame, the selection/focus, and the identity allocator.
Edit operations take a state and return a new one; read-only queries
used by presentation layers live here as methods.
"""

from typing import Iterable, Optional

from pydantic import BaseModel, ConfigDict

from config.settings import settings
from motfixer.editor.allocator import IdentityAllocator, track_number
from motfixer.editor.validator import check_integrity
from motfixer.utils.schemas import Detection, SelectableTrack, Track


class EditorState(BaseModel):
    """Snapshot of the editor. Selection and focus are transient UI state."""
    model_config = ConfigDict(frozen=True)

    tracks: tuple[Track, ...] = ()
    detections: tuple[Detection, ...] = ()
    total_frames: int
    current_frame: int = 0
    selected_ids: tuple[str, ...] = ()
    focused_id: Optional[str] = None
    allocator: IdentityAllocator

    @classmethod
    def from_collections(
        cls,
        tracks: Iterable[Track],
        detections: Iterable[Detection],
        total_frames: int | None = None,
        palette: Iterable[str] | None = None,
        prefix: str | None = None,
    ) -> "EditorState":
        """
        Fresh state for a loaded dataset: frame 0, empty selection, re-seeded allocator.

        Raises:
            DatasetValidationError: duplicate ids or a detection referencing a missing track
        """
        tracks = tuple(tracks)
        detections = tuple(detections)
        check_integrity(tracks, detections)
        return cls(
            tracks=tracks,
            detections=detections,
            total_frames=total_frames or settings.total_frames,
            allocator=IdentityAllocator.seed(tracks, palette=palette, prefix=prefix),
        )

    # ── Lookups ──────────────────────────────────────────────────────

    def get_track(self, track_id: str) -> Optional[Track]:
        for track in self.tracks:
            if track.id == track_id:
                return track
        return None

    def has_track(self, track_id: str) -> bool:
        return self.get_track(track_id) is not None

    def detections_for_track(self, track_id: str) -> list[Detection]:
        return [d for d in self.detections if d.track_id == track_id]

    def detections_for_frame(self, frame: int) -> list[Detection]:
        """Detections drawn on a given frame."""
        return [d for d in self.detections if d.frame == frame]

    # ── Presentation queries ─────────────────────────────────────────

    def track_rows(self) -> list[SelectableTrack]:
        """Tracks flagged with selection, ordered by numeric id suffix."""
        selected = set(self.selected_ids)
        prefix = self.allocator.prefix

        def sort_key(track: Track):
            number = track_number(track.id, prefix)
            # ids without a number sort after numbered ones, by string
            return (0, number, "") if number else (1, 0, track.id)

        return [
            SelectableTrack(**t.model_dump(), is_selected=t.id in selected)
            for t in sorted(self.tracks, key=sort_key)
        ]

    def unique_labels(self) -> list[str]:
        """Sorted distinct labels currently in use by tracks."""
        return sorted({t.label for t in self.tracks})

    def dangling_detections(self) -> list[Detection]:
        """Detections whose track no longer exists. Empty for every reachable state."""
        known = {t.id for t in self.tracks}
        return [d for d in self.detections if d.track_id not in known]

    @property
    def summary(self) -> dict:
        return {
            "tracks": len(self.tracks),
            "detections": len(self.detections),
            "current_frame": self.current_frame,
            "total_frames": self.total_frames,
            "selected": list(self.selected_ids),
        }
