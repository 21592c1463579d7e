"""Fluency metrics for an aligned reading.

Scores accuracy, reading rate and error density on a 1.5-4.0 point scale and
blends them into a prosody score:

    prosody = round((accuracy_pts * 0.4 + rate_pts * 0.3 + fluency_pts * 0.3) * 10) / 10

All rounding is half-up so results match the scoring rubric educators see in
reports (Python's ``round`` would send 0.5 to the even neighbour).
"""

import math
from typing import Any

from ..errors import InvalidInputError
from ..logging_config import get_logger
from ..models import MatchingResult, Metrics, ProsodyGrade

logger = get_logger(__name__)

ACCURACY_WEIGHT = 0.4
RATE_WEIGHT = 0.3
FLUENCY_WEIGHT = 0.3

# (minimum accuracy %, points), checked top-down
ACCURACY_BANDS = ((98, 4.0), (95, 3.5), (90, 3.0), (85, 2.5), (75, 2.0))
ACCURACY_FLOOR = 1.5

# (low wpm, high wpm, points), inclusive bands around the 100-180 wpm target
RATE_BANDS = ((100, 180, 4.0), (80, 200, 3.5), (60, 220, 3.0))
RATE_FLOOR = 2.0

# (maximum error rate, points)
FLUENCY_BANDS = ((0.02, 4.0), (0.05, 3.5), (0.10, 3.0), (0.20, 2.5))
FLUENCY_FLOOR = 2.0

# (minimum prosody score, grade)
GRADE_BANDS = (
    (3.8, ProsodyGrade.EXCELLENT),
    (3.0, ProsodyGrade.PROFICIENT),
    (2.0, ProsodyGrade.DEVELOPING),
)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, sending .5 upwards."""
    return int(math.floor(value + 0.5))


def validate_duration(audio_duration: Any) -> float:
    """Return ``audio_duration`` as a float or raise InvalidInputError."""
    if isinstance(audio_duration, bool) or not isinstance(audio_duration, (int, float)):
        raise InvalidInputError(f"Audio duration must be a number, got {audio_duration!r}")
    duration = float(audio_duration)
    if not math.isfinite(duration):
        raise InvalidInputError(f"Audio duration must be finite, got {audio_duration!r}")
    if duration < 0:
        raise InvalidInputError(f"Audio duration cannot be negative, got {audio_duration!r}")
    return duration


def accuracy_points(accuracy: float) -> float:
    for minimum, points in ACCURACY_BANDS:
        if accuracy >= minimum:
            return points
    return ACCURACY_FLOOR


def rate_points(words_per_minute: float) -> float:
    for low, high, points in RATE_BANDS:
        if low <= words_per_minute <= high:
            return points
    return RATE_FLOOR


def fluency_points(error_rate: float) -> float:
    for maximum, points in FLUENCY_BANDS:
        if error_rate <= maximum:
            return points
    return FLUENCY_FLOOR


def prosody_score_for(acc_points: float, rt_points: float, flu_points: float) -> float:
    """Blend the three component scores into a one-decimal prosody score."""
    blended = acc_points * ACCURACY_WEIGHT + rt_points * RATE_WEIGHT + flu_points * FLUENCY_WEIGHT
    return round_half_up(blended * 10) / 10


def prosody_grade_for(prosody_score: float) -> ProsodyGrade:
    for minimum, grade in GRADE_BANDS:
        if prosody_score >= minimum:
            return grade
    return ProsodyGrade.NEEDS_SUPPORT


def calculate_accuracy(correct_count: int, total_words: int) -> int:
    if total_words <= 0:
        return 0
    return round_half_up(correct_count / total_words * 100)


def calculate_words_per_minute(words_read: int, audio_duration: float) -> int:
    if audio_duration <= 0:
        return 0
    return round_half_up(words_read / (audio_duration / 60))


def calculate_metrics(result: MatchingResult, audio_duration: Any) -> Metrics:
    """
    Calculate fluency metrics for an aligned reading.

    Args:
        result: Aligned words with their aggregate counts
        audio_duration: Length of the recording in seconds

    Returns:
        Metrics with accuracy, pace, prosody score and grade

    Raises:
        InvalidInputError: If the duration is non-numeric, non-finite or negative
    """
    duration = validate_duration(audio_duration)
    total_words = result.total_words

    accuracy = calculate_accuracy(result.correct_count, total_words)

    # Skipped words were never attempted
    words_read = result.correct_count + result.misread_count + result.substitution_count
    words_per_minute = calculate_words_per_minute(words_read, duration)

    error_rate = result.error_count / total_words if total_words > 0 else 0.0

    acc_pts = accuracy_points(accuracy)
    rt_pts = rate_points(words_per_minute)
    flu_pts = fluency_points(error_rate)
    prosody_score = prosody_score_for(acc_pts, rt_pts, flu_pts)
    prosody_grade = prosody_grade_for(prosody_score)

    logger.info(
        "Metrics calculated",
        total_words=total_words,
        accuracy=accuracy,
        wpm=words_per_minute,
        accuracy_points=acc_pts,
        rate_points=rt_pts,
        fluency_points=flu_pts,
        prosody=prosody_score,
        grade=prosody_grade.value,
    )

    return Metrics(
        accuracy=accuracy,
        words_per_minute=words_per_minute,
        prosody_score=prosody_score,
        prosody_grade=prosody_grade,
        total_words=total_words,
        correct_count=result.correct_count,
        error_count=result.error_count,
        skip_count=result.skip_count,
        hesitation_count=result.hesitation_count or 0,
        filler_word_count=result.filler_word_count,
        repeat_count=result.repeat_count or 0,
    )
