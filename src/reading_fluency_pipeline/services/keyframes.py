"""Keyframe timestamps for the highlight video.

A frame only changes when a word starts or stops being spoken, so instead of
sampling at a fixed frame rate the video is built from one still per
transition, each held until the next transition. Render cost then scales with
the number of words rather than with duration x fps.
"""

from typing import Iterable, List, Tuple

from ..logging_config import get_logger
from ..models import WordLayout
from .metrics_calculator import validate_duration

logger = get_logger(__name__)

# A word is "currently speaking" up to and including its end time; this offset
# captures the frame right after it turns into "already spoken".
POST_END_OFFSET = 0.001

# Timestamps are compared at microsecond resolution
TIME_PRECISION = 6


def quantize_time(value: float) -> float:
    """Snap a time to the resolution keyframes are extracted at."""
    return round(value, TIME_PRECISION)


def extract_keyframe_times(layouts: Iterable[WordLayout], audio_duration: float) -> List[float]:
    """
    Collect the instants at which any word changes highlight state.

    Args:
        layouts: Laid-out words with optional start/end times
        audio_duration: Total length of the audio in seconds

    Returns:
        Strictly increasing timestamps from 0 to ``audio_duration`` inclusive;
        events after the end of the audio are dropped
    """
    end_of_audio = quantize_time(validate_duration(audio_duration))
    events = {0.0, end_of_audio}

    for layout in layouts:
        if layout.start_time is not None:
            events.add(quantize_time(layout.start_time))
        if layout.end_time is not None:
            events.add(quantize_time(layout.end_time))
            events.add(quantize_time(layout.end_time + POST_END_OFFSET))

    times = sorted(t for t in events if 0.0 <= t <= end_of_audio)
    logger.debug("Keyframe times extracted", keyframes=len(times), duration=end_of_audio)
    return times


def build_keyframe_schedule(times: List[float]) -> List[Tuple[float, float]]:
    """Pair every timestamp except the last with how long its frame is held."""
    return [
        (start, quantize_time(following - start))
        for start, following in zip(times, times[1:])
    ]
