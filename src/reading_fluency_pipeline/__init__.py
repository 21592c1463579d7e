"""
Reading Fluency Pipeline

Scores an aligned oral reading (accuracy, pace, prosody), classifies the
reader's error patterns and renders a word-highlight video synchronized to
the recording.
"""

__version__ = "0.1.0"

from .errors import (
    FluencyPipelineError,
    InvalidInputError,
    MeasurementError,
    EncodingError,
    StorageError,
)
from .models import (
    WordStatus,
    ProsodyGrade,
    ErrorPatternType,
    AlignedWord,
    MatchingResult,
    Metrics,
    PatternExample,
    ErrorPattern,
    PrimaryPattern,
    WordLayout,
    KeyFrame,
    SessionInfo,
    SummaryInputs,
)

__all__ = [
    "FluencyPipelineError",
    "InvalidInputError",
    "MeasurementError",
    "EncodingError",
    "StorageError",
    "WordStatus",
    "ProsodyGrade",
    "ErrorPatternType",
    "AlignedWord",
    "MatchingResult",
    "Metrics",
    "PatternExample",
    "ErrorPattern",
    "PrimaryPattern",
    "WordLayout",
    "KeyFrame",
    "SessionInfo",
    "SummaryInputs",
]
