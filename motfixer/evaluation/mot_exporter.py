"""
MOT Challenge Format Exporter

Writes the corrected dataset as MOT Challenge ground truth so it can be
fed to standard MOTA/MOTP/IDF1 evaluation tools.

MOT Format (per line):
    <frame>, <id>, <bb_left>, <bb_top>, <bb_width>, <bb_height>, <conf>, <class>, -1, -1

Frames are 1-based, ids are the numeric suffix of the track id, boxes are
converted from frame percentages to pixels.

Usage:
    uv run python -m motfixer.cli.main --input dataset.json export-mot --output-dir mot_out
"""

import csv
from pathlib import Path

from loguru import logger

from config.settings import settings
from motfixer.editor.allocator import track_number
from motfixer.editor.state import EditorState


class MOTExporter:
    """
    Converts editor state into MOT Challenge text files.

    Output structure:
        output_dir/
            gt.txt           - one row per detection
            labels.txt       - class id -> label (line number = class id)
            seqinfo.ini      - sequence metadata
    """

    def __init__(
        self,
        output_dir: str,
        frame_width: int | None = None,
        frame_height: int | None = None,
    ):
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.frame_width = frame_width or settings.frame_width
        self.frame_height = frame_height or settings.frame_height
        self._rows: list[list] = []
        self._labels: list[str] = []
        self._frame_count = 0

        logger.info(f"MOT Exporter initialized: {self.output_dir}")

    @staticmethod
    def _numeric_ids(state: EditorState) -> dict[str, int]:
        """Map track ids to MOT integer ids; unnumbered or clashing ids get fresh ones."""
        prefix = state.allocator.prefix
        numbers = {t.id: track_number(t.id, prefix) for t in state.tracks}
        next_free = max(numbers.values(), default=0) + 1
        mapping: dict[str, int] = {}
        used: set[int] = set()
        for tid in sorted(numbers):
            number = numbers[tid]
            if number == 0 or number in used:
                number = next_free
                next_free += 1
            mapping[tid] = number
            used.add(number)
        return mapping

    def record(self, state: EditorState):
        """Convert every detection of ``state`` into a MOT row."""
        self._labels = state.unique_labels()
        class_ids = {label: i for i, label in enumerate(self._labels)}
        numeric = self._numeric_ids(state)
        self._frame_count = state.total_frames

        self._rows = []
        for det in state.detections:
            left, top, w, h = det.box.to_pixels(self.frame_width, self.frame_height)
            self._rows.append([
                det.frame + 1, numeric[det.track_id],
                round(left, 2), round(top, 2),
                round(w, 2), round(h, 2),
                1, class_ids.get(det.label, -1), -1, -1
            ])

    def save(self):
        """Write gt.txt, labels.txt and seqinfo.ini."""
        gt_path = self.output_dir / "gt.txt"
        with open(gt_path, "w", newline="") as f:
            writer = csv.writer(f)
            for row in sorted(self._rows, key=lambda r: (r[0], r[1])):
                writer.writerow(row)
        logger.info(f"Saved {len(self._rows)} GT annotations -> {gt_path}")

        labels_path = self.output_dir / "labels.txt"
        labels_path.write_text("".join(f"{label}\n" for label in self._labels))
        logger.info(f"Saved {len(self._labels)} class labels -> {labels_path}")

        seq_path = self.output_dir / "seqinfo.ini"
        with open(seq_path, "w") as f:
            f.write("[Sequence]\n")
            f.write(f"name={self.output_dir.name}\n")
            f.write(f"seqLength={self._frame_count}\n")
            f.write(f"imWidth={self.frame_width}\n")
            f.write(f"imHeight={self.frame_height}\n")
        logger.info(f"Saved sequence info -> {seq_path}")

        logger.info(
            f"MOT Export Summary: {self._frame_count} frames, "
            f"{self.stats['unique_tracks']} unique tracks, "
            f"{len(self._rows)} entries"
        )

    @property
    def stats(self) -> dict:
        return {
            "frames": self._frame_count,
            "entries": len(self._rows),
            "unique_tracks": len(set(r[1] for r in self._rows)),
            "classes": len(self._labels),
        }


def export_mot(state: EditorState, output_dir: str) -> dict:
    """Record and save ``state`` in one go. Returns exporter stats."""
    exporter = MOTExporter(output_dir)
    exporter.record(state)
    exporter.save()
    return exporter.stats
