"""Greedy line wrapping of passage words onto the video canvas."""

from typing import List, Optional, Sequence

from ..errors import MeasurementError
from ..logging_config import get_logger
from ..models import AlignedWord, WordLayout
from .typography import FontSpec, TextMeasurer

logger = get_logger(__name__)

# Vertical room reserved above the first line for the title and student info
HEADER_HEIGHT = 50


def layout_words(
    words: Sequence[AlignedWord],
    measurer: TextMeasurer,
    font: FontSpec,
    canvas_width: int,
    padding: int,
    line_height: int,
    start_y: Optional[float] = None,
) -> List[WordLayout]:
    """
    Place words left to right, wrapping when a word would cross the right margin.

    Each word is measured with a trailing space so the cursor advance includes
    the gap to the next word. A word that starts a line is never wrapped, so an
    over-long word overflows instead of leaving an empty line.

    Args:
        words: Aligned words in passage order
        measurer: Text measurement capability of the rendering surface
        font: Font used for passage words
        canvas_width: Canvas width in pixels
        padding: Left/right margin in pixels
        line_height: Distance between baselines in pixels
        start_y: Baseline of the first line (defaults below the header)

    Returns:
        One WordLayout per word, in input order
    """
    x = float(padding)
    y = float(start_y) if start_y is not None else float(padding + font.size + HEADER_HEIGHT)
    right_edge = canvas_width - padding

    layouts: List[WordLayout] = []
    for word in words:
        try:
            width = float(measurer.measure(word.expected + " ", font))
        except MeasurementError:
            raise
        except Exception as exc:
            raise MeasurementError(f"Text measurement failed for {word.expected!r}: {exc}") from exc

        if x + width > right_edge and x > padding:
            x = float(padding)
            y += line_height

        layouts.append(
            WordLayout(
                word=word.expected,
                x=x,
                y=y,
                width=width,
                status=word.status,
                start_time=word.start_time,
                end_time=word.end_time,
                hesitation=word.hesitation,
                pause_duration=word.pause_duration,
                is_repeat=word.is_repeat,
            )
        )
        x += width

    logger.debug(
        "Words laid out",
        words=len(layouts),
        lines=len({layout.y for layout in layouts}),
    )
    return layouts
