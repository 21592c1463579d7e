"""Frame composition for the word-highlight video.

Frames are described as a flat list of draw commands first and rasterized
with Pillow second. The command list is a pure function of
(timestamp, layouts, session), which keeps the coloring rules testable without
a graphics context and makes every frame reproducible.

Word color state machine:

=================  ======================  ======================  =============
status             currently speaking      already spoken          not yet
=================  ======================  ======================  =============
correct            green (purple if hes.)  light green (lilac)     grey
misread/substit.   orange                  light orange            grey
skipped            red                     light red               grey
=================  ======================  ======================  =============

Words without timing are drawn in the "already spoken" palette.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

from PIL import Image, ImageDraw, ImageFont

from ..config import get_settings
from ..errors import StorageError
from ..logging_config import LoggerMixin
from ..models import SessionInfo, WordLayout, WordStatus
from .keyframes import quantize_time
from .metrics_calculator import round_half_up
from .typography import FontSpec, PillowFontBook

BACKGROUND = "#ffffff"
TITLE_COLOR = "#333333"
SUBTITLE_COLOR = "#666666"
NOT_YET_SPOKEN = "#cccccc"
HESITATION_COLOR = "#7c3aed"
REPEAT_COLOR = "#9333ea"
PROGRESS_TRACK = "#e5e5e5"
PROGRESS_FILL = "#3b82f6"

SPEAKING_COLORS = {
    WordStatus.CORRECT: "#22c55e",
    WordStatus.MISREAD: "#f97316",
    WordStatus.SUBSTITUTED: "#f97316",
    WordStatus.SKIPPED: "#ef4444",
}
SPOKEN_COLORS = {
    WordStatus.CORRECT: "#86efac",
    WordStatus.MISREAD: "#fdba74",
    WordStatus.SUBSTITUTED: "#fdba74",
    WordStatus.SKIPPED: "#fca5a5",
}
SPEAKING_HESITATION = HESITATION_COLOR
SPOKEN_HESITATION = "#c4b5fd"

TITLE = "Oral Fluency Analysis"
REPEAT_GLYPH = "↺"
DEFAULT_PAUSE_MS = 500

# (label, color, x offset from the left padding); None color marks the repeat glyph
LEGEND = (
    ("Correct", SPEAKING_COLORS[WordStatus.CORRECT], 0),
    ("Misread", SPEAKING_COLORS[WordStatus.MISREAD], 100),
    ("Skipped", SPEAKING_COLORS[WordStatus.SKIPPED], 200),
    ("Hesitation", HESITATION_COLOR, 300),
    ("Repeat", None, 420),
    ("Not Yet Spoken", NOT_YET_SPOKEN, 530),
)


@dataclass(frozen=True)
class FillRect:
    x0: float
    y0: float
    x1: float
    y1: float
    color: str


@dataclass(frozen=True)
class FillEllipse:
    x0: float
    y0: float
    x1: float
    y1: float
    color: str


@dataclass(frozen=True)
class DrawText:
    """Text anchored at its left baseline."""
    x: float
    y: float
    text: str
    color: str
    font: FontSpec


DrawCommand = Union[FillRect, FillEllipse, DrawText]


def resolve_word_color(layout: WordLayout, current_time: float) -> Tuple[str, bool]:
    """
    Color of a word at ``current_time``.

    Returns:
        (hex color, whether the word is being spoken right now)
    """
    if not layout.is_timed:
        return SPOKEN_COLORS[layout.status], False

    hesitated = layout.hesitation and layout.status is WordStatus.CORRECT

    # Compare at keyframe resolution so a frame taken at a quantized start sees the word
    now = quantize_time(current_time)
    start = quantize_time(layout.start_time)
    end = quantize_time(layout.end_time)

    if start <= now <= end:
        color = SPEAKING_HESITATION if hesitated else SPEAKING_COLORS[layout.status]
        return color, True

    if now > end:
        color = SPOKEN_HESITATION if hesitated else SPOKEN_COLORS[layout.status]
        return color, False

    return NOT_YET_SPOKEN, False


def progress_fraction(layouts: Sequence[WordLayout], current_time: float) -> float:
    """Share of the reading elapsed, relative to the last observed word end."""
    max_end = max((l.end_time for l in layouts if l.end_time is not None), default=0.0)
    if max_end <= 0:
        return 0.0
    return max(0.0, min(current_time / max_end, 1.0))


class FrameRenderer(LoggerMixin):
    """Compose and rasterize highlight video frames."""

    def __init__(self, settings=None, font_book: Optional[PillowFontBook] = None):
        self.settings = settings or get_settings()
        self.width = self.settings.video_width
        self.height = self.settings.video_height
        self.padding = self.settings.video_padding
        self.word_font = FontSpec(self.settings.font_size)
        self.font_book = font_book or PillowFontBook(
            self.settings.font_path, self.settings.bold_font_path
        )

    # ---------------------------
    # Composition
    # ---------------------------

    def draw_commands(
        self,
        current_time: float,
        layouts: Sequence[WordLayout],
        session: SessionInfo,
    ) -> List[DrawCommand]:
        """Describe the frame at ``current_time`` as an ordered command list."""
        commands: List[DrawCommand] = [FillRect(0, 0, self.width, self.height, BACKGROUND)]
        commands.extend(self._header(session))
        for layout in layouts:
            commands.extend(self._word(layout, current_time))
        commands.extend(self._legend())
        commands.extend(self._progress_bar(layouts, current_time))
        return commands

    def _header(self, session: SessionInfo) -> List[DrawCommand]:
        return [
            DrawText(self.padding, 35, TITLE, TITLE_COLOR, FontSpec(28, bold=True)),
            DrawText(
                self.padding,
                65,
                f"Student: {session.student_name}  |  WPM: {session.words_per_minute}",
                SUBTITLE_COLOR,
                FontSpec(20),
            ),
        ]

    def _word(self, layout: WordLayout, current_time: float) -> List[DrawCommand]:
        color, is_current = resolve_word_color(layout, current_time)
        commands: List[DrawCommand] = [DrawText(layout.x, layout.y, layout.word, color, self.word_font)]

        if is_current:
            underline_end = max(layout.x, layout.x + layout.width - 10)
            commands.append(FillRect(layout.x, layout.y + 8, underline_end, layout.y + 11, color))

        if layout.hesitation:
            pause_ms = round_half_up(layout.pause_duration * 1000) if layout.pause_duration else DEFAULT_PAUSE_MS
            commands.append(
                DrawText(
                    layout.x,
                    layout.y - self.word_font.size - 5,
                    f"⏸ {pause_ms}ms",
                    HESITATION_COLOR,
                    FontSpec(14),
                )
            )

        if layout.is_repeat:
            commands.append(
                DrawText(layout.x + layout.width - 20, layout.y, REPEAT_GLYPH, REPEAT_COLOR, FontSpec(18))
            )
        return commands

    def _legend(self) -> List[DrawCommand]:
        y = self.height - 40
        font = FontSpec(16)
        commands: List[DrawCommand] = []
        for label, color, offset in LEGEND:
            x = self.padding + offset
            if color is None:
                commands.append(DrawText(x, y, f"{REPEAT_GLYPH} {label}", REPEAT_COLOR, font))
                continue
            commands.append(FillEllipse(x, y - 11, x + 10, y - 1, color))
            commands.append(DrawText(x + 15, y, label, color, font))
        return commands

    def _progress_bar(self, layouts: Sequence[WordLayout], current_time: float) -> List[DrawCommand]:
        track_width = self.width - self.padding * 2
        y = self.height - 80
        commands: List[DrawCommand] = [
            FillRect(self.padding, y, self.padding + track_width, y + 8, PROGRESS_TRACK)
        ]
        progress = progress_fraction(layouts, current_time)
        if progress > 0:
            commands.append(
                FillRect(self.padding, y, self.padding + track_width * progress, y + 8, PROGRESS_FILL)
            )
        return commands

    # ---------------------------
    # Rasterization
    # ---------------------------

    def rasterize(self, commands: Sequence[DrawCommand]) -> Image.Image:
        """Paint draw commands onto a fresh RGB canvas."""
        image = Image.new("RGB", (self.width, self.height), BACKGROUND)
        draw = ImageDraw.Draw(image)
        for command in commands:
            if isinstance(command, FillRect):
                draw.rectangle([command.x0, command.y0, command.x1, command.y1], fill=command.color)
            elif isinstance(command, FillEllipse):
                draw.ellipse([command.x0, command.y0, command.x1, command.y1], fill=command.color)
            else:
                self._draw_text(draw, command)
        return image

    def _draw_text(self, draw: ImageDraw.ImageDraw, command: DrawText) -> None:
        font = self.font_book.font(command.font)
        if isinstance(font, ImageFont.FreeTypeFont):
            draw.text((command.x, command.y), command.text, fill=command.color, font=font, anchor="ls")
        else:
            # Bitmap fonts only support top-left anchoring
            draw.text((command.x, command.y - command.font.size), command.text, fill=command.color, font=font)

    def render(
        self,
        current_time: float,
        layouts: Sequence[WordLayout],
        session: SessionInfo,
    ) -> Image.Image:
        """Render the frame shown at ``current_time``."""
        return self.rasterize(self.draw_commands(current_time, layouts, session))

    def render_to_file(
        self,
        current_time: float,
        layouts: Sequence[WordLayout],
        session: SessionInfo,
        output_path: Path,
    ) -> Path:
        """Render a frame and write it as PNG."""
        image = self.render(current_time, layouts, session)
        output_path = Path(output_path)
        try:
            image.save(output_path, format="PNG")
        except OSError as exc:
            self.logger.error("Failed to write frame", path=str(output_path), error=str(exc))
            raise StorageError(f"Could not write frame {output_path}: {exc}", stage="render") from exc
        return output_path
