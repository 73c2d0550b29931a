"""
Command-line front-end for the MOT dataset editor.

Loads a dataset document (or the bundled sample), applies one edit through
the TrackStore, and optionally writes the corrected document back out.

Usage:
    uv run python -m motfixer.cli.main info
    uv run python -m motfixer.cli.main --input data.json --output fixed.json merge T2 T3
    uv run python -m motfixer.cli.main --input data.json --output fixed.json split T1 --frame 15
    uv run python -m motfixer.cli.main --input data.json --output fixed.json relabel T3 Pedestrian
    uv run python -m motfixer.cli.main suggest Pe
    uv run python -m motfixer.cli.main --input fixed.json export-mot --output-dir mot_out
    uv run python -m motfixer.cli.main sample --output sample.json
"""

import sys
import argparse
from collections import Counter

from loguru import logger

from config.settings import settings
from motfixer.editor import EditorError, TrackStore
from motfixer.editor.serializer import save_document
from motfixer.evaluation.mot_exporter import export_mot


def _configure_logging(level: str):
    logger.remove()
    logger.add(sys.stderr, level=level.upper())


def _print_info(store: TrackStore):
    state = store.state
    per_track = Counter(d.track_id for d in state.detections)
    print("=" * 50)
    print(f"  Tracks: {len(state.tracks)}   Detections: {len(state.detections)}"
          f"   Frames: {state.total_frames}")
    print("-" * 50)
    for row in state.track_rows():
        frames = sorted(d.frame for d in state.detections_for_track(row.id))
        span = f"{frames[0]}-{frames[-1]}" if frames else "-"
        print(f"  {row.id:<8} {row.label:<16} {row.color:<9} "
              f"{per_track.get(row.id, 0):>4} dets  frames {span}")
    print("=" * 50)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="MOT Dataset Fixer - track/detection editor")
    parser.add_argument(
        "--input", type=str, default=None,
        help="Dataset JSON to load (default: bundled sample dataset)"
    )
    parser.add_argument(
        "--output", type=str, default=None,
        help="Write the edited dataset JSON to this path"
    )
    parser.add_argument(
        "--log-level", type=str, default=None,
        help=f"Log level (default: {settings.log_level})"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("info", help="Summarize tracks and detections")

    merge = sub.add_parser("merge", help="Merge tracks into the lexicographically smallest id")
    merge.add_argument("track_ids", nargs="+")

    split = sub.add_parser("split", help="Move detections at/after a frame to a new track")
    split.add_argument("track_id")
    split.add_argument("--frame", type=int, required=True)

    relabel = sub.add_parser("relabel", help="Change a track's label")
    relabel.add_argument("track_id")
    relabel.add_argument("label")

    suggest = sub.add_parser("suggest", help="Suggest existing labels matching text")
    suggest.add_argument("text")

    mot = sub.add_parser("export-mot", help="Write MOT Challenge gt.txt")
    mot.add_argument("--output-dir", type=str, required=True)

    sample = sub.add_parser("sample", help="Write the bundled sample dataset")
    sample.add_argument("--output", dest="sample_output", type=str, required=True)

    return parser


def run(args: argparse.Namespace) -> int:
    store = TrackStore()
    if args.input:
        store.load_file(args.input)

    if args.command == "info":
        _print_info(store)

    elif args.command == "merge":
        for track_id in dict.fromkeys(args.track_ids):
            store.toggle_selection(track_id)
        store.merge()

    elif args.command == "split":
        store.toggle_selection(args.track_id)
        store.split(frame=args.frame)

    elif args.command == "relabel":
        store.relabel(args.track_id, args.label)

    elif args.command == "suggest":
        for label in store.suggest_labels(args.text):
            print(label)

    elif args.command == "export-mot":
        stats = export_mot(store.state, args.output_dir)
        logger.info(f"MOT export stats: {stats}")

    elif args.command == "sample":
        save_document(store.state, args.sample_output)

    if args.output:
        save_document(store.state, args.output)
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    _configure_logging(args.log_level or settings.log_level)
    try:
        return run(args)
    except EditorError as e:
        logger.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
