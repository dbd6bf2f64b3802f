#!/usr/bin/env python3
"""Analyse local stem files and print the report as JSON.

Usage:
    python scripts/analyze_stems.py vocals.wav kick.wav bass.wav
    python scripts/analyze_stems.py stems/*.wav --hop-size 1024 -o report.json
"""
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(REPO_ROOT))

from stem_coach.services.audio.analyzer import StemAnalyzer  # noqa: E402
from stem_coach.services.audio.pipeline import StemUpload, run_stem_analysis  # noqa: E402
from stem_coach.services.shared.config import get_config  # noqa: E402
from stem_coach.services.shared.logging import setup_logging  # noqa: E402


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Stem Coach offline analyser")
    parser.add_argument("files", nargs="+", type=Path, help="Stem audio files")
    parser.add_argument("--settings", help="Path to a settings.yaml")
    parser.add_argument("--hop-size", type=int, help="Override analysis.hop_size")
    parser.add_argument("--workers", type=int, help="Override analysis.max_workers")
    parser.add_argument("-o", "--output", type=Path, help="Write JSON here instead of stdout")
    parser.add_argument("--log-level", default="WARNING")
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    setup_logging(level=args.log_level)

    try:
        analyzer = StemAnalyzer.from_config(
            get_config(args.settings),
            hop_size=args.hop_size,
            max_workers=args.workers,
        )
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    uploads = []
    for path in args.files:
        if not path.is_file():
            print(f"error: no such file: {path}", file=sys.stderr)
            return 2
        uploads.append(StemUpload(filename=path.name, data=path.read_bytes()))

    report = run_stem_analysis(uploads, analyzer)
    text = json.dumps(report.as_dict(), indent=2)
    if args.output:
        args.output.write_text(text + "\n")
    else:
        print(text)
    return 0 if report.stems else 1


if __name__ == "__main__":
    sys.exit(main())
