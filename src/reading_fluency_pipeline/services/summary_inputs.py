"""Facts handed to the narration/summary collaborator.

Strengths are long words read correctly, struggles are misread words, and the
primary pattern is the most frequent *instructive* error pattern: hesitations
and repeats say little about what to practise, so they give way to the next
pattern when one exists.
"""

from typing import FrozenSet, Iterable, List, Optional, Sequence

from ..logging_config import get_logger
from ..models import (
    AlignedWord,
    ErrorPattern,
    ErrorPatternType,
    Metrics,
    PatternExample,
    PrimaryPattern,
    SummaryInputs,
    WordStatus,
)

logger = get_logger(__name__)

MAX_STRENGTHS = 3
MAX_STRUGGLES = 3
MAX_PRIMARY_EXAMPLES = 2
MIN_STRENGTH_LENGTH = 6

# Long but everyday words that make poor praise
COMMON_LONG_WORDS: FrozenSet[str] = frozenset(
    {"because", "before", "through", "people", "should", "would", "could"}
)

LOW_INFORMATION_TYPES: FrozenSet[ErrorPatternType] = frozenset(
    {
        ErrorPatternType.HESITATION,
        ErrorPatternType.REPETITION,
        ErrorPatternType.SELF_CORRECTION,
        ErrorPatternType.FILLER_WORD,
    }
)


def extract_strengths(words: Iterable[AlignedWord]) -> List[str]:
    """Up to three distinct long words read correctly, longest first."""
    unique: List[str] = []
    for word in words:
        if word.status is not WordStatus.CORRECT:
            continue
        if len(word.expected) < MIN_STRENGTH_LENGTH:
            continue
        if word.expected.lower() in COMMON_LONG_WORDS:
            continue
        if word.expected not in unique:
            unique.append(word.expected)

    unique.sort(key=len, reverse=True)
    return unique[:MAX_STRENGTHS]


def extract_struggles(words: Iterable[AlignedWord]) -> List[PatternExample]:
    """Up to three misread or substituted words in reading order."""
    struggles: List[PatternExample] = []
    for word in words:
        if word.status in (WordStatus.MISREAD, WordStatus.SUBSTITUTED) and word.has_spoken:
            struggles.append(PatternExample(word.expected, word.spoken))
            if len(struggles) == MAX_STRUGGLES:
                break
    return struggles


def select_primary_pattern(patterns: Sequence[ErrorPattern]) -> Optional[PrimaryPattern]:
    """
    Pick the pattern to narrate from a count-sorted pattern list.

    Returns None for an empty list.
    """
    if not patterns:
        return None

    selected = patterns[0]
    if selected.type in LOW_INFORMATION_TYPES and len(patterns) > 1:
        for candidate in patterns[1:]:
            if candidate.type not in LOW_INFORMATION_TYPES:
                selected = candidate
                break

    return PrimaryPattern(
        type=selected.type,
        description=selected.description,
        examples=tuple(e.format() for e in selected.examples[:MAX_PRIMARY_EXAMPLES]),
    )


def build_summary_inputs(
    student_name: str,
    metrics: Metrics,
    words: Sequence[AlignedWord],
    patterns: Sequence[ErrorPattern],
) -> SummaryInputs:
    """Bundle everything the summary collaborator needs for one assessment."""
    inputs = SummaryInputs(
        student_name=student_name,
        metrics=metrics,
        strengths=extract_strengths(words),
        struggles=extract_struggles(words),
        primary_pattern=select_primary_pattern(patterns),
    )
    logger.info(
        "Summary inputs prepared",
        strengths=len(inputs.strengths),
        struggles=len(inputs.struggles),
        pattern=inputs.primary_pattern.type.value if inputs.primary_pattern else None,
    )
    return inputs
