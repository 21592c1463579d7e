"""
Core data models for the reading fluency pipeline.
"""

import json
import math
from dataclasses import dataclass, asdict, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from .errors import InvalidInputError
from .logging_config import get_logger

logger = get_logger(__name__)


class WordStatus(Enum):
    """Classification of a passage word after alignment."""
    CORRECT = "correct"
    MISREAD = "misread"
    SUBSTITUTED = "substituted"
    SKIPPED = "skipped"

    @property
    def is_error(self) -> bool:
        return self is not WordStatus.CORRECT


class ProsodyGrade(Enum):
    """Ordered prosody grade (Excellent > Proficient > Developing > Needs Support)."""
    NEEDS_SUPPORT = "Needs Support"
    DEVELOPING = "Developing"
    PROFICIENT = "Proficient"
    EXCELLENT = "Excellent"

    @property
    def rank(self) -> int:
        return _GRADE_ORDER.index(self)

    def __lt__(self, other):
        if not isinstance(other, ProsodyGrade):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, ProsodyGrade):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, ProsodyGrade):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, ProsodyGrade):
            return NotImplemented
        return self.rank >= other.rank


_GRADE_ORDER = (
    ProsodyGrade.NEEDS_SUPPORT,
    ProsodyGrade.DEVELOPING,
    ProsodyGrade.PROFICIENT,
    ProsodyGrade.EXCELLENT,
)


class ErrorPatternType(Enum):
    """Enumeration of error pattern buckets."""
    SUBSTITUTION = "substitution"
    INITIAL_SOUND = "initial_sound"
    FINAL_SOUND = "final_sound"
    VISUAL_SIMILARITY = "visual_similarity"
    # Disfluency buckets, only produced on request
    HESITATION = "hesitation"
    REPETITION = "repetition"
    SELF_CORRECTION = "self_correction"
    FILLER_WORD = "filler_word"


# camelCase keys emitted by the alignment collaborator
_WORD_KEY_ALIASES = {
    "startTime": "start_time",
    "endTime": "end_time",
    "pauseDuration": "pause_duration",
    "isRepeat": "is_repeat",
    "isSelfCorrection": "is_self_correction",
    "isFillerWord": "is_filler_word",
}

_RESULT_KEY_ALIASES = {
    "correctCount": "correct_count",
    "errorCount": "error_count",
    "skipCount": "skip_count",
    "misreadCount": "misread_count",
    "substitutionCount": "substitution_count",
    "hesitationCount": "hesitation_count",
    "fillerWordCount": "filler_word_count",
    "repeatCount": "repeat_count",
    "selfCorrectionCount": "self_correction_count",
}


def _normalize_keys(data: Dict[str, Any], aliases: Dict[str, str], allowed: Iterable[str]) -> Dict[str, Any]:
    allowed = set(allowed)
    normalized = {}
    for key, value in data.items():
        key = aliases.get(key, key)
        if key in allowed:
            normalized[key] = value
    return normalized


def _optional_time(value: Any, name: str) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidInputError(f"{name} must be a number, got {value!r}")
    value = float(value)
    if not math.isfinite(value) or value < 0:
        raise InvalidInputError(f"{name} must be a finite non-negative number, got {value!r}")
    return value


@dataclass(frozen=True)
class AlignedWord:
    """One passage word annotated with what the student actually said."""
    expected: str
    spoken: Optional[str]
    status: WordStatus
    start_time: Optional[float] = None  # seconds
    end_time: Optional[float] = None
    hesitation: bool = False  # significant pause before this word
    pause_duration: float = 0.0  # seconds
    is_repeat: bool = False
    confidence: Optional[float] = None
    is_self_correction: bool = False
    is_filler_word: bool = False

    def __post_init__(self):
        """Validate data after initialization."""
        if not isinstance(self.status, WordStatus):
            try:
                object.__setattr__(self, "status", WordStatus(self.status))
            except ValueError:
                raise InvalidInputError(f"Unknown word status: {self.status!r}") from None
        if not isinstance(self.expected, str) or not self.expected:
            raise InvalidInputError("Expected word cannot be empty")
        if not self.spoken and self.status is not WordStatus.SKIPPED:
            raise InvalidInputError(
                f"Spoken text is required for {self.status.value} word '{self.expected}'"
            )

        start = _optional_time(self.start_time, "start_time")
        end = _optional_time(self.end_time, "end_time")
        if start is not None and end is not None and start > end:
            raise InvalidInputError(
                f"start_time {start} is after end_time {end} for '{self.expected}'"
            )
        object.__setattr__(self, "start_time", start)
        object.__setattr__(self, "end_time", end)

        pause = _optional_time(self.pause_duration or 0.0, "pause_duration")
        object.__setattr__(self, "pause_duration", pause)

        if self.confidence is not None and not 0 <= self.confidence <= 1:
            raise InvalidInputError("Confidence must be between 0 and 1")

    @property
    def is_timed(self) -> bool:
        """Whether both word boundaries are known."""
        return self.start_time is not None and self.end_time is not None

    @property
    def has_spoken(self) -> bool:
        return bool(self.spoken)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        data = asdict(self)
        data["status"] = self.status.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AlignedWord":
        """Create instance from dictionary (snake_case or camelCase keys)."""
        if not isinstance(data, dict):
            raise InvalidInputError(f"Aligned word must be an object, got {type(data).__name__}")
        fields = _normalize_keys(data, _WORD_KEY_ALIASES, cls.__dataclass_fields__)
        missing = [name for name in ("expected", "status") if name not in fields]
        if missing:
            raise InvalidInputError(f"Aligned word is missing fields: {', '.join(missing)}")
        # Skipped words may omit what was spoken
        fields.setdefault("spoken", None)
        try:
            return cls(**fields)
        except TypeError as exc:
            raise InvalidInputError(f"Malformed aligned word {data!r}: {exc}") from exc


def _tally(words: Iterable[AlignedWord]) -> Dict[str, int]:
    counts = {
        "correct_count": 0,
        "skip_count": 0,
        "misread_count": 0,
        "substitution_count": 0,
        "hesitation_count": 0,
        "repeat_count": 0,
        "self_correction_count": 0,
    }
    status_keys = {
        WordStatus.CORRECT: "correct_count",
        WordStatus.SKIPPED: "skip_count",
        WordStatus.MISREAD: "misread_count",
        WordStatus.SUBSTITUTED: "substitution_count",
    }
    for word in words:
        counts[status_keys[word.status]] += 1
        counts["hesitation_count"] += int(word.hesitation)
        counts["repeat_count"] += int(word.is_repeat)
        counts["self_correction_count"] += int(word.is_self_correction)
    counts["error_count"] = counts["skip_count"] + counts["misread_count"] + counts["substitution_count"]
    return counts


_CHECKED_COUNTS = ("correct_count", "error_count", "skip_count", "misread_count", "substitution_count")


@dataclass(frozen=True)
class MatchingResult:
    """Ordered aligned words plus the aggregate counts produced by the aligner."""
    words: Tuple[AlignedWord, ...]
    correct_count: int
    error_count: int
    skip_count: int
    misread_count: int
    substitution_count: int
    hesitation_count: Optional[int] = None
    repeat_count: Optional[int] = None
    self_correction_count: Optional[int] = None
    filler_word_count: int = 0  # fillers are dropped from ``words`` by the aligner

    def __post_init__(self):
        """Validate that the counts agree with the word list."""
        words = tuple(
            w if isinstance(w, AlignedWord) else AlignedWord.from_dict(w)
            for w in self.words
        )
        object.__setattr__(self, "words", words)

        tally = _tally(words)
        for name in _CHECKED_COUNTS:
            if getattr(self, name) != tally[name]:
                raise InvalidInputError(
                    f"{name}={getattr(self, name)} does not match the word list ({tally[name]})"
                )
        for name in ("hesitation_count", "repeat_count", "self_correction_count"):
            if getattr(self, name) is None:
                object.__setattr__(self, name, tally[name])
        if self.filler_word_count < 0:
            raise InvalidInputError("filler_word_count cannot be negative")

    @property
    def total_words(self) -> int:
        return len(self.words)

    @classmethod
    def from_words(cls, words: Iterable[AlignedWord], filler_word_count: int = 0) -> "MatchingResult":
        """Build a result whose counts are tallied from ``words``."""
        words = tuple(words)
        tally = _tally(words)
        return cls(words=words, filler_word_count=filler_word_count, **tally)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "words": [w.to_dict() for w in self.words],
            "correct_count": self.correct_count,
            "error_count": self.error_count,
            "skip_count": self.skip_count,
            "misread_count": self.misread_count,
            "substitution_count": self.substitution_count,
            "hesitation_count": self.hesitation_count,
            "repeat_count": self.repeat_count,
            "self_correction_count": self.self_correction_count,
            "filler_word_count": self.filler_word_count,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MatchingResult":
        """Create instance from dictionary.

        A payload carrying only ``words`` (plus an optional filler count) is
        tallied; a payload with counts is validated against its words.
        """
        if not isinstance(data, dict) or "words" not in data:
            raise InvalidInputError("Matching result must contain a 'words' list")
        data = _normalize_keys(data, _RESULT_KEY_ALIASES, cls.__dataclass_fields__)
        raw_words = data.pop("words")
        if not isinstance(raw_words, list):
            raise InvalidInputError("Matching result 'words' must be a list")
        words = [AlignedWord.from_dict(w) for w in raw_words]
        missing = [name for name in _CHECKED_COUNTS if name not in data]
        if missing and len(missing) < len(_CHECKED_COUNTS):
            raise InvalidInputError(f"Matching result is missing counts: {', '.join(missing)}")
        try:
            if missing:
                return cls.from_words(words, filler_word_count=data.get("filler_word_count", 0))
            return cls(words=tuple(words), **data)
        except TypeError as exc:
            raise InvalidInputError(f"Malformed matching result counts: {exc}") from exc

    def save_to_file(self, file_path: Union[str, Path]) -> None:
        """Save matching result to JSON file."""
        file_path = Path(file_path)
        file_path.parent.mkdir(parents=True, exist_ok=True)

        with open(file_path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)

        logger.debug("Matching result saved", file=str(file_path), words=self.total_words)

    @classmethod
    def load_from_file(cls, file_path: Union[str, Path]) -> "MatchingResult":
        """Load matching result from JSON file."""
        file_path = Path(file_path)

        if not file_path.exists():
            raise FileNotFoundError(f"Matching result file not found: {file_path}")

        with open(file_path, "r", encoding="utf-8") as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as exc:
                raise InvalidInputError(f"Matching result is not valid JSON: {exc}") from exc

        instance = cls.from_dict(data)
        logger.debug("Matching result loaded", file=str(file_path), words=instance.total_words)
        return instance


@dataclass(frozen=True)
class Metrics:
    """Fluency metrics computed once from a matching result."""
    accuracy: int  # 0-100
    words_per_minute: int
    prosody_score: float  # 1.5-4.0, one decimal
    prosody_grade: ProsodyGrade
    total_words: int
    correct_count: int
    error_count: int
    skip_count: int
    hesitation_count: int = 0
    filler_word_count: int = 0
    repeat_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        data = asdict(self)
        data["prosody_grade"] = self.prosody_grade.value
        return data


@dataclass(frozen=True)
class PatternExample:
    """An expected/spoken pair illustrating a pattern."""
    expected: str
    spoken: str

    def format(self) -> str:
        return f"{self.expected}→{self.spoken}"


@dataclass(frozen=True)
class ErrorPattern:
    """A classified error bucket."""
    type: ErrorPatternType
    description: str
    examples: Tuple[PatternExample, ...]
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "description": self.description,
            "examples": [asdict(e) for e in self.examples],
            "count": self.count,
        }


@dataclass(frozen=True)
class PrimaryPattern:
    """The single pattern handed to the narration collaborator."""
    type: ErrorPatternType
    description: str
    examples: Tuple[str, ...]  # "expected→spoken", at most two

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "description": self.description,
            "examples": list(self.examples),
        }


@dataclass(frozen=True)
class WordLayout:
    """Position and timing of one word on the video canvas."""
    word: str
    x: float
    y: float
    width: float
    status: WordStatus
    start_time: Optional[float] = None
    end_time: Optional[float] = None
    hesitation: bool = False
    pause_duration: float = 0.0
    is_repeat: bool = False

    @property
    def is_timed(self) -> bool:
        return self.start_time is not None and self.end_time is not None


@dataclass(frozen=True)
class KeyFrame:
    """A rendered frame held on screen for ``duration`` seconds."""
    timestamp: float
    duration: float
    image_path: Path


@dataclass(frozen=True)
class SessionInfo:
    """Per-assessment metadata drawn in the video header."""
    student_name: str = "Student"
    words_per_minute: int = 0


@dataclass
class SummaryInputs:
    """Structured facts passed to the summary collaborator."""
    student_name: str
    metrics: Metrics
    strengths: List[str] = field(default_factory=list)
    struggles: List[PatternExample] = field(default_factory=list)
    primary_pattern: Optional[PrimaryPattern] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "student_name": self.student_name,
            "metrics": self.metrics.to_dict(),
            "strengths": list(self.strengths),
            "struggles": [asdict(s) for s in self.struggles],
            "primary_pattern": self.primary_pattern.to_dict() if self.primary_pattern else None,
        }
