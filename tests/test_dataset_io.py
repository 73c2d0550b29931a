"""
Test suite for dataset import/export: validator, serializer, store loading,
MOT Challenge export and the command-line front-end.

Run: uv run pytest tests/test_dataset_io.py -v
"""

import csv
import json
import sys

import pytest
from loguru import logger

from motfixer.cli.main import main
from motfixer.editor import DatasetValidationError, TrackStore
from motfixer.editor.serializer import export_document, read_document, save_document
from motfixer.editor.validator import validate_document
from motfixer.evaluation.mot_exporter import MOTExporter
from motfixer.utils.schemas import BoundingBox, Detection, Track


def _track(tid="T1", label="Car", color="#EF4444"):
    return {"id": tid, "label": label, "color": color}


def _detection(did="d1", track_id="T1", frame=0, label="Car", box=None):
    return {
        "id": did,
        "trackId": track_id,
        "box": box or {"x": 10, "y": 20, "w": 5.5, "h": 15},
        "label": label,
        "frame": frame,
    }


def _store() -> TrackStore:
    return TrackStore(total_frames=30)


class TestValidator:
    """Tests for the dataset document validator."""

    def test_valid_document(self):
        tracks, detections = validate_document({
            "tracks": [_track()],
            "detections": [_detection()],
        })
        assert tracks[0].id == "T1"
        assert detections[0].track_id == "T1"
        assert detections[0].box.w == 5.5

    def test_missing_collections_default_to_empty(self):
        assert validate_document({}) == ([], [])
        assert validate_document({"tracks": None}) == ([], [])

    def test_json_text_is_accepted(self):
        raw = json.dumps({"tracks": [_track()], "detections": []})
        tracks, _ = validate_document(raw)
        assert tracks[0].label == "Car"

    @pytest.mark.parametrize("raw", [None, [], "[1, 2]", 42, "not json {"])
    def test_non_object_is_rejected(self, raw):
        with pytest.raises(DatasetValidationError):
            validate_document(raw)

    @pytest.mark.parametrize("field", ["id", "label", "color"])
    def test_track_fields_required(self, field):
        track = _track()
        track[field] = ""
        with pytest.raises(DatasetValidationError, match=f"tracks\\[0\\]\\.{field}"):
            validate_document({"tracks": [track]})

    def test_non_numeric_box_field(self):
        det = _detection(box={"x": 1, "y": 2, "w": "wide", "h": 4})
        with pytest.raises(DatasetValidationError, match=r"detections\[0\]\.box\.w"):
            validate_document({"tracks": [_track()], "detections": [det]})

    @pytest.mark.parametrize("frame", ["3", True, 2.5, None, -1])
    def test_bad_frame(self, frame):
        with pytest.raises(DatasetValidationError, match="frame"):
            validate_document({"tracks": [_track()], "detections": [_detection(frame=frame)]})

    def test_integral_float_frame_is_normalised(self):
        _, detections = validate_document({
            "tracks": [_track()], "detections": [_detection(frame=4.0)],
        })
        assert detections[0].frame == 4
        assert isinstance(detections[0].frame, int)

    def test_tracks_reported_before_detections(self):
        with pytest.raises(DatasetValidationError, match=r"tracks\[1\]"):
            validate_document({
                "tracks": [_track(), {"id": "T2", "label": "Car"}],
                "detections": [{"id": "broken"}],
            })

    def test_dangling_reference_is_rejected(self):
        with pytest.raises(DatasetValidationError, match="unknown tracks"):
            validate_document({
                "tracks": [_track()],
                "detections": [_detection(track_id="T9")],
            })

    def test_duplicate_ids_are_rejected(self):
        with pytest.raises(DatasetValidationError, match="Duplicate track"):
            validate_document({"tracks": [_track(), _track()]})
        with pytest.raises(DatasetValidationError, match="Duplicate detection"):
            validate_document({
                "tracks": [_track()],
                "detections": [_detection(), _detection(frame=1)],
            })


class TestSerializer:
    """Tests for export/import of the dataset document."""

    def test_export_shape(self):
        doc = _store().export()
        assert set(doc) == {"tracks", "detections", "metadata"}
        assert doc["metadata"]["totalFrames"] == 30
        assert doc["metadata"]["version"] == "1.0"
        assert "exportedAt" in doc["metadata"]
        assert set(doc["detections"][0]) == {"id", "trackId", "box", "label", "frame"}

    def test_round_trip(self):
        store = _store()
        store.toggle_selection("T2")
        store.toggle_selection("T3")
        store.merge()
        store.split(frame=20)
        store.relabel("T5", "Runner")
        before = store.state

        restored = TrackStore(tracks=[], detections=[], total_frames=30)
        restored.load(json.dumps(store.export()))

        assert set(restored.state.tracks) == set(before.tracks)
        assert set(restored.state.detections) == set(before.detections)

    def test_save_and_read(self, tmp_path):
        state = _store().state
        path = save_document(state, tmp_path / "out" / "dataset.json")
        tracks, detections = validate_document(read_document(path))
        assert len(tracks) == 4
        assert len(detections) == 90

    def test_unreadable_file(self, tmp_path):
        with pytest.raises(DatasetValidationError, match="Cannot read"):
            read_document(tmp_path / "missing.json")

    def test_export_uses_given_frame_count(self):
        doc = export_document(_store().state, total_frames=120)
        assert doc["metadata"]["totalFrames"] == 120


class TestStoreLoading:
    """Tests for filling the store from documents and collections."""

    def test_load_resets_frame_selection_and_allocator(self):
        store = _store()
        store.go_to_frame(10)
        store.toggle_selection("T1")

        store.load({
            "tracks": [_track("T7"), _track("T3")],
            "detections": [_detection(track_id="T7")],
        })

        state = store.state
        assert state.current_frame == 0
        assert state.selected_ids == ()
        assert state.focused_id is None
        assert state.allocator.next_number == 8
        assert state.allocator.color_index == 2

    def test_failed_load_leaves_store_untouched(self):
        store = _store()
        store.toggle_selection("T1")
        before = store.state
        with pytest.raises(DatasetValidationError):
            store.load({"tracks": [{"id": "T1"}]})
        assert store.state is before

    def test_reset_restores_bundled_dataset(self):
        store = _store()
        store.load({"tracks": [], "detections": []})
        assert store.state.tracks == ()
        store.reset()
        assert len(store.state.tracks) == 4
        assert len(store.state.detections) == 90

    def test_stale_import_is_discarded(self):
        store = _store()
        first = store.begin_import()
        second = store.begin_import()

        assert store.complete_import(second, {"tracks": [_track("T2")]}) is True
        assert store.complete_import(first, {"tracks": [_track("T1")]}) is False
        assert [t.id for t in store.state.tracks] == ["T2"]

    def test_invalid_latest_import_raises(self):
        store = _store()
        token = store.begin_import()
        with pytest.raises(DatasetValidationError):
            store.complete_import(token, "{oops")
        assert len(store.state.tracks) == 4

    def test_constructor_rejects_dangling_detection(self):
        track = Track(id="T1", label="Car", color="#EF4444")
        orphan = Detection(id="d1", track_id="T9", box=BoundingBox(x=1, y=1, w=5, h=5),
                           label="Car", frame=0)
        with pytest.raises(DatasetValidationError, match="unknown tracks"):
            TrackStore(tracks=[track], detections=[orphan], total_frames=30)

    def test_constructor_rejects_duplicate_tracks(self):
        track = Track(id="T1", label="Car", color="#EF4444")
        with pytest.raises(DatasetValidationError, match="Duplicate track"):
            TrackStore(tracks=[track, track], detections=[], total_frames=30)

    def test_constructed_store_round_trips(self):
        store = TrackStore(
            tracks=[Track(id="T1", label="Car", color="#EF4444")],
            detections=[Detection(id="d1", track_id="T1", box=BoundingBox(x=1, y=1, w=5, h=5),
                                  label="Car", frame=0)],
            total_frames=30,
        )
        store.load(store.export())
        assert [d.id for d in store.state.detections] == ["d1"]


class TestMOTExporter:
    """Tests for MOT Challenge ground-truth export."""

    def test_gt_rows(self, tmp_path):
        exporter = MOTExporter(str(tmp_path), frame_width=800, frame_height=600)
        exporter.record(_store().state)
        exporter.save()

        with open(tmp_path / "gt.txt", newline="") as f:
            rows = list(csv.reader(f))
        assert len(rows) == 90
        # T1 at frame 0: (10, 20, 5, 15)% of 800x600, class "Pedestrian" = 1
        assert rows[0] == ["1", "1", "80.0", "120.0", "40.0", "90.0", "1", "1", "-1", "-1"]

        labels = (tmp_path / "labels.txt").read_text().splitlines()
        assert labels == ["Cyclist", "Pedestrian", "Vehicle"]
        assert "seqLength=30" in (tmp_path / "seqinfo.ini").read_text()
        assert exporter.stats["unique_tracks"] == 4

    def test_unnumbered_ids_get_fresh_numbers(self, tmp_path):
        store = TrackStore(total_frames=30)
        store.load({
            "tracks": [_track("T3"), _track("car")],
            "detections": [_detection("a", "T3"), _detection("b", "car")],
        })
        exporter = MOTExporter(str(tmp_path))
        exporter.record(store.state)
        assert sorted(r[1] for r in exporter._rows) == [3, 4]


class TestCLI:
    """Tests for the command-line front-end."""

    @pytest.fixture(autouse=True)
    def _restore_logging(self):
        # main() replaces the loguru sinks
        yield
        logger.remove()
        logger.add(sys.stderr)

    def test_sample_then_merge(self, tmp_path):
        sample = tmp_path / "sample.json"
        fixed = tmp_path / "fixed.json"
        assert main(["sample", "--output", str(sample)]) == 0

        code = main(["--input", str(sample), "--output", str(fixed), "merge", "T3", "T2"])

        assert code == 0
        doc = json.loads(fixed.read_text())
        assert [t["id"] for t in doc["tracks"]] == ["T1", "T2", "T4"]
        assert all(d["trackId"] != "T3" for d in doc["detections"])

    def test_split_and_relabel(self, tmp_path):
        out = tmp_path / "out.json"
        assert main(["--output", str(out), "split", "T1", "--frame", "10"]) == 0
        doc = json.loads(out.read_text())
        assert doc["tracks"][-1]["id"] == "T5"

        assert main(["--input", str(out), "--output", str(out), "relabel", "T5", "Runner"]) == 0
        doc = json.loads(out.read_text())
        assert {d["label"] for d in doc["detections"] if d["trackId"] == "T5"} == {"Runner"}

    def test_precondition_failure_exit_code(self, tmp_path):
        out = tmp_path / "out.json"
        assert main(["--output", str(out), "merge", "T1"]) == 1
        assert not out.exists()

    def test_invalid_input_exit_code(self, tmp_path):
        bad = tmp_path / "bad.json"
        bad.write_text("{not json")
        assert main(["--input", str(bad), "info"]) == 1

    def test_suggest(self, capsys):
        assert main(["suggest", "Pe"]) == 0
        assert capsys.readouterr().out.splitlines() == ["Pedestrian"]

    def test_export_mot(self, tmp_path):
        assert main(["export-mot", "--output-dir", str(tmp_path / "mot")]) == 0
        assert (tmp_path / "mot" / "gt.txt").exists()
