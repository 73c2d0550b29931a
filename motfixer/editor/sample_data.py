"""
Bundled default dataset.

Four synthetic tracks over ``total_frames`` frames, built to exercise the
editor: T2 and T3 are one pedestrian falsely split at the halfway frame
(and T3 carries the wrong label), T1 and T4 are complete.
"""

from config.settings import settings
from motfixer.utils.schemas import BoundingBox, Detection, Track


def _clamped_box(x: float, y: float, w: float, h: float) -> BoundingBox:
    """Keep the box inside the frame on the right/bottom edges."""
    return BoundingBox(
        x=max(0.0, min(100 - w, x)),
        y=max(0.0, min(100 - h, y)),
        w=w,
        h=h,
    )


def _linear_track(track_id, label, frames, start, step, size) -> list[Detection]:
    x0, y0 = start
    dx, dy = step
    w, h = size
    first = frames[0] if frames else 0
    return [
        Detection(
            id=f"{track_id}_F{f}",
            track_id=track_id,
            box=_clamped_box(x0 + dx * (f - first), y0 + dy * (f - first), w, h),
            label=label,
            frame=f,
        )
        for f in frames
    ]


def build_sample_dataset(total_frames: int | None = None) -> tuple[list[Track], list[Detection]]:
    """Return the default ``(tracks, detections)``."""
    n = total_frames or settings.total_frames
    half = n // 2
    colors = settings.track_colors

    def color(i: int) -> str:
        return colors[i % len(colors)]

    tracks = [
        Track(id="T1", label="Pedestrian", color=color(0)),
        Track(id="T2", label="Pedestrian", color=color(1)),
        Track(id="T3", label="Cyclist", color=color(2)),
        Track(id="T4", label="Vehicle", color=color(3)),
    ]

    # T3 continues T2's motion with a small offset
    t3_start = (40 + 1.8 * half + 5, 30 + 0.8 * half + 5)

    detections = (
        _linear_track("T1", "Pedestrian", list(range(n)), (10, 20), (1.5, 0.5), (5, 15))
        + _linear_track("T2", "Pedestrian", list(range(half)), (40, 30), (1.8, 0.8), (6, 16))
        + _linear_track("T3", "Cyclist", list(range(half, n)), t3_start, (1.8, 0.8), (6, 16))
        + _linear_track("T4", "Vehicle", list(range(n)), (80, 60), (-2, -0.2), (15, 10))
    )
    return tracks, detections
