"""Error pattern classification for misread and substituted words.

Each mistaken word can land in several buckets at once:

- one global ``initial_sound`` bucket (first letter differs)
- one global ``final_sound`` bucket (last letter differs)
- one ``visual_similarity`` bucket per confusable letter pair (b/d, p/q, m/n, u/n)
- one ``substitution`` bucket per exact expected/spoken pair

Buckets are kept in an insertion-ordered mapping so that equal counts are
reported in first-occurrence order after the stable sort by count.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Sequence, Tuple, Union

from ..logging_config import get_logger
from ..models import AlignedWord, ErrorPattern, ErrorPatternType, PatternExample, WordStatus

logger = get_logger(__name__)

VISUAL_PAIRS: Tuple[Tuple[str, str], ...] = (("b", "d"), ("p", "q"), ("m", "n"), ("u", "n"))

DESCRIPTIONS = {
    ErrorPatternType.INITIAL_SOUND: "Initial consonant substitution",
    ErrorPatternType.FINAL_SOUND: "Final sound error",
    ErrorPatternType.HESITATION: "Hesitation before word (pause > 0.5s)",
    ErrorPatternType.REPETITION: "Word repeated/self-corrected",
    ErrorPatternType.SELF_CORRECTION: "Word self-corrected after an error",
    ErrorPatternType.FILLER_WORD: "Filler word before this word (um, uh, ...)",
}


@dataclass(frozen=True)
class SingletonKey:
    """One bucket for the whole reading, e.g. all initial-sound errors."""
    kind: ErrorPatternType


@dataclass(frozen=True)
class VisualPairKey:
    a: str
    b: str


@dataclass(frozen=True)
class SubstitutionKey:
    expected: str
    spoken: str


PatternKey = Union[SingletonKey, VisualPairKey, SubstitutionKey]


@dataclass
class _Bucket:
    type: ErrorPatternType
    description: str
    append_examples: bool = True
    examples: List[PatternExample] = field(default_factory=list)
    count: int = 0

    def add(self, example: PatternExample) -> None:
        # Substitution buckets keep only their first example
        if self.append_examples or not self.examples:
            self.examples.append(example)
        self.count += 1

    def freeze(self) -> ErrorPattern:
        return ErrorPattern(
            type=self.type,
            description=self.description,
            examples=tuple(self.examples),
            count=self.count,
        )


class PatternRegistry:
    """Insertion-ordered mapping from a pattern key to its bucket."""

    def __init__(self):
        self._buckets: Dict[PatternKey, _Bucket] = {}

    def record(self, key: PatternKey, example: PatternExample) -> None:
        bucket = self._buckets.get(key)
        if bucket is None:
            bucket = self._new_bucket(key, example)
            self._buckets[key] = bucket
        bucket.add(example)

    @staticmethod
    def _new_bucket(key: PatternKey, first: PatternExample) -> _Bucket:
        if isinstance(key, SingletonKey):
            return _Bucket(type=key.kind, description=DESCRIPTIONS[key.kind])
        if isinstance(key, VisualPairKey):
            return _Bucket(
                type=ErrorPatternType.VISUAL_SIMILARITY,
                description=f"Visual confusion: {key.a}/{key.b}",
            )
        return _Bucket(
            type=ErrorPatternType.SUBSTITUTION,
            description=f'"{first.expected}" → "{first.spoken}"',
            append_examples=False,
        )

    def __len__(self) -> int:
        return len(self._buckets)

    def sorted_patterns(self) -> List[ErrorPattern]:
        """Patterns by count descending; ``sorted`` is stable so ties keep insertion order."""
        patterns = [bucket.freeze() for bucket in self._buckets.values()]
        return sorted(patterns, key=lambda p: p.count, reverse=True)


def _contains_pair(expected: str, spoken: str, a: str, b: str) -> bool:
    return (a in expected and b in spoken) or (b in expected and a in spoken)


def _record_disfluencies(registry: PatternRegistry, word: AlignedWord) -> None:
    if word.hesitation:
        registry.record(
            SingletonKey(ErrorPatternType.HESITATION),
            PatternExample(word.expected, word.spoken or "(paused)"),
        )
    if word.is_repeat:
        registry.record(
            SingletonKey(ErrorPatternType.REPETITION),
            PatternExample(word.expected, word.spoken or ""),
        )
    if word.is_self_correction:
        registry.record(
            SingletonKey(ErrorPatternType.SELF_CORRECTION),
            PatternExample(word.expected, word.spoken or ""),
        )
    if word.is_filler_word:
        registry.record(
            SingletonKey(ErrorPatternType.FILLER_WORD),
            PatternExample(word.expected, word.spoken or ""),
        )


def _record_errors(registry: PatternRegistry, word: AlignedWord) -> None:
    expected = word.expected.lower()
    spoken = word.spoken.lower()
    example = PatternExample(word.expected, word.spoken)

    if expected[0] != spoken[0]:
        registry.record(SingletonKey(ErrorPatternType.INITIAL_SOUND), example)

    if expected[-1] != spoken[-1]:
        registry.record(SingletonKey(ErrorPatternType.FINAL_SOUND), example)

    for a, b in VISUAL_PAIRS:
        if _contains_pair(expected, spoken, a, b):
            registry.record(VisualPairKey(a, b), example)

    if word.status is WordStatus.SUBSTITUTED:
        registry.record(SubstitutionKey(expected, spoken), example)


def analyze_error_patterns(
    words: Union[Sequence[AlignedWord], Iterable[AlignedWord]],
    include_disfluencies: bool = False,
) -> List[ErrorPattern]:
    """
    Classify reading errors into pattern buckets.

    Args:
        words: Aligned words in passage order
        include_disfluencies: Also bucket hesitations, repeats, self-corrections
            and filler words (these apply to correct words too)

    Returns:
        ErrorPattern list, count descending, ties in first-occurrence order
    """
    registry = PatternRegistry()
    analyzed = 0

    for word in words:
        if include_disfluencies:
            _record_disfluencies(registry, word)

        if word.status is WordStatus.CORRECT or not word.has_spoken:
            continue

        analyzed += 1
        _record_errors(registry, word)

    patterns = registry.sorted_patterns()
    logger.debug(
        "Error patterns analyzed",
        error_words=analyzed,
        patterns=len(patterns),
        top=patterns[0].type.value if patterns else None,
    )
    return patterns
