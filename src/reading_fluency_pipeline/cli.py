"""
Command line entry point for the reading fluency pipeline.

Usage:
    fluency-pipeline analyze matching.json --duration 42.5 [--student Ana] [--include-disfluencies]
    fluency-pipeline video matching.json --audio reading.webm --duration 42.5 --output out.mp4 [--student Ana]

The JSON file holds a serialized MatchingResult, or just a ``words`` list
whose counts are then tallied.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from .config import get_settings
from .errors import FluencyPipelineError
from .models import MatchingResult, SessionInfo
from .services.metrics_calculator import calculate_metrics
from .services.pattern_analyzer import analyze_error_patterns
from .services.summary_inputs import build_summary_inputs
from .services.video_encoder import HighlightVideoGenerator


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fluency-pipeline",
        description="Score oral reading fluency and render word-highlight videos",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze = subparsers.add_parser("analyze", help="Print metrics, error patterns and summary inputs as JSON")
    analyze.add_argument("matching", type=Path, help="Matching result JSON file")
    analyze.add_argument("--duration", type=float, required=True, help="Audio duration in seconds")
    analyze.add_argument("--student", default="Student", help="Student name")
    analyze.add_argument(
        "--include-disfluencies",
        action="store_true",
        help="Also report hesitation, repetition, self-correction and filler patterns",
    )

    video = subparsers.add_parser("video", help="Render the word-highlight video")
    video.add_argument("matching", type=Path, help="Matching result JSON file")
    video.add_argument("--audio", type=Path, required=True, help="Recorded reading")
    video.add_argument("--duration", type=float, required=True, help="Audio duration in seconds")
    video.add_argument("--output", type=Path, required=True, help="Output video path")
    video.add_argument("--student", default="Student", help="Student name")

    return parser


def run_analyze(args: argparse.Namespace) -> int:
    result = MatchingResult.load_from_file(args.matching)
    metrics = calculate_metrics(result, args.duration)
    patterns = analyze_error_patterns(result.words, include_disfluencies=args.include_disfluencies)
    summary = build_summary_inputs(args.student, metrics, result.words, patterns)

    report = {
        "metrics": metrics.to_dict(),
        "patterns": [p.to_dict() for p in patterns],
        "summary_inputs": summary.to_dict(),
    }
    print(json.dumps(report, indent=2, ensure_ascii=False))
    return 0


def run_video(args: argparse.Namespace) -> int:
    result = MatchingResult.load_from_file(args.matching)
    metrics = calculate_metrics(result, args.duration)
    session = SessionInfo(student_name=args.student, words_per_minute=metrics.words_per_minute)

    generator = HighlightVideoGenerator(get_settings())
    output_path = generator.generate(result.words, args.audio, args.duration, args.output, session)
    print(f"✅ Video written: {output_path}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    handlers = {"analyze": run_analyze, "video": run_video}

    try:
        return handlers[args.command](args)
    except FluencyPipelineError as e:
        stage = f" [{e.stage}]" if e.stage else ""
        print(f"❌ Failed{stage}: {e}", file=sys.stderr)
        return 1
    except FileNotFoundError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
