"""
Service modules for the reading fluency pipeline.
"""

from .metrics_calculator import calculate_metrics
from .pattern_analyzer import analyze_error_patterns
from .summary_inputs import build_summary_inputs, select_primary_pattern
from .typography import FontSpec, PillowFontBook, TextMeasurer
from .word_layout import layout_words
from .keyframes import extract_keyframe_times, build_keyframe_schedule
from .frame_renderer import FrameRenderer, resolve_word_color
from .video_encoder import (
    HighlightVideoGenerator,
    FfmpegEncoder,
    VideoEncoder,
    EncodeJob,
    EncodeOptions,
    EncodeResult,
    build_concat_manifest,
)

__all__ = [
    "calculate_metrics",
    "analyze_error_patterns",
    "build_summary_inputs",
    "select_primary_pattern",
    "FontSpec",
    "PillowFontBook",
    "TextMeasurer",
    "layout_words",
    "extract_keyframe_times",
    "build_keyframe_schedule",
    "FrameRenderer",
    "resolve_word_color",
    "HighlightVideoGenerator",
    "FfmpegEncoder",
    "VideoEncoder",
    "EncodeJob",
    "EncodeOptions",
    "EncodeResult",
    "build_concat_manifest",
]
