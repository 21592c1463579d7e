"""Fonts and text measurement backed by Pillow."""

import threading
from dataclasses import dataclass
from typing import Dict, Optional, Protocol, Union

from PIL import Image, ImageDraw, ImageFont

from ..errors import MeasurementError
from ..logging_config import LoggerMixin

PillowFont = Union[ImageFont.FreeTypeFont, ImageFont.ImageFont]


@dataclass(frozen=True)
class FontSpec:
    """Backend-independent font request."""
    size: int
    bold: bool = False


class TextMeasurer(Protocol):
    """Anything that can report the pixel width of a string in a font."""

    def measure(self, text: str, font: FontSpec) -> float:
        ...


class PillowFontBook(LoggerMixin):
    """Loads, caches and measures Pillow fonts.

    Uses the configured TrueType files when given, otherwise Pillow's bundled
    default font at the requested size.
    """

    def __init__(self, font_path: Optional[str] = None, bold_font_path: Optional[str] = None):
        self.font_path = font_path
        self.bold_font_path = bold_font_path or font_path
        self._fonts: Dict[FontSpec, PillowFont] = {}
        self._lock = threading.Lock()
        self._scratch = ImageDraw.Draw(Image.new("RGB", (1, 1)))

    def font(self, spec: FontSpec) -> PillowFont:
        with self._lock:
            cached = self._fonts.get(spec)
            if cached is not None:
                return cached
            loaded = self._load(spec)
            self._fonts[spec] = loaded
            return loaded

    def _load(self, spec: FontSpec) -> PillowFont:
        path = self.bold_font_path if spec.bold else self.font_path
        try:
            if path:
                return ImageFont.truetype(path, size=spec.size)
            return ImageFont.load_default(size=spec.size)
        except (OSError, ValueError) as exc:
            self.logger.error("Font could not be loaded", path=path, size=spec.size, error=str(exc))
            raise MeasurementError(f"Font unavailable ({path or 'default'}, {spec.size}px): {exc}") from exc

    def measure(self, text: str, font: FontSpec) -> float:
        pillow_font = self.font(font)
        try:
            return float(self._scratch.textlength(text, font=pillow_font))
        except (OSError, ValueError) as exc:
            raise MeasurementError(f"Could not measure {text!r}: {exc}") from exc
