"""
Pytest configuration and fixtures for the reading fluency pipeline tests.
"""

import pytest
import tempfile
import shutil
from pathlib import Path
from typing import Generator, List

from reading_fluency_pipeline.config import Settings
from reading_fluency_pipeline.models import AlignedWord, MatchingResult, SessionInfo, WordStatus
from reading_fluency_pipeline.services.typography import FontSpec


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast isolated unit tests")
    config.addinivalue_line("markers", "property: hypothesis property-based tests")
    config.addinivalue_line("markers", "integration: tests that rasterize frames or touch the filesystem")


class FixedWidthMeasurer:
    """Deterministic measurer: every character is ``char_width`` pixels wide."""

    def __init__(self, char_width: int = 10):
        self.char_width = char_width
        self.calls: List[str] = []

    def measure(self, text: str, font: FontSpec) -> float:
        self.calls.append(text)
        return float(len(text) * self.char_width)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    temp_path = Path(tempfile.mkdtemp())
    try:
        yield temp_path
    finally:
        shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def test_settings(temp_dir: Path) -> Settings:
    """Create test settings with temporary directories and a small canvas."""
    settings = Settings(
        output_dir=temp_dir / "output",
        cache_dir=temp_dir / "cache",
        logs_dir=temp_dir / "logs",
        video_width=800,
        video_height=450,
        render_workers=2,
        log_level="DEBUG",
    )

    settings.output_dir.mkdir(parents=True, exist_ok=True)
    settings.cache_dir.mkdir(parents=True, exist_ok=True)
    settings.logs_dir.mkdir(parents=True, exist_ok=True)

    return settings


@pytest.fixture
def fixed_measurer() -> FixedWidthMeasurer:
    return FixedWidthMeasurer(char_width=10)


@pytest.fixture
def sample_words() -> List[AlignedWord]:
    """A short reading with one of each status and a few disfluencies."""
    return [
        AlignedWord("The", "the", WordStatus.CORRECT, start_time=0.2, end_time=0.5),
        AlignedWord("elephant", "elephant", WordStatus.CORRECT, start_time=0.6, end_time=1.2),
        AlignedWord(
            "walked", "walked", WordStatus.CORRECT, start_time=2.0, end_time=2.4,
            hesitation=True, pause_duration=0.8,
        ),
        AlignedWord("by", "dy", WordStatus.MISREAD, start_time=2.5, end_time=2.7),
        AlignedWord("the", None, WordStatus.SKIPPED),
        AlignedWord("river", "road", WordStatus.SUBSTITUTED, start_time=3.0, end_time=3.5),
        AlignedWord("slowly", "slowly", WordStatus.CORRECT, start_time=3.6, end_time=4.1, is_repeat=True),
    ]


@pytest.fixture
def sample_result(sample_words: List[AlignedWord]) -> MatchingResult:
    return MatchingResult.from_words(sample_words, filler_word_count=1)


@pytest.fixture
def sample_session() -> SessionInfo:
    return SessionInfo(student_name="Ana", words_per_minute=84)


@pytest.fixture
def audio_file(temp_dir: Path) -> Path:
    """Create a placeholder audio file for testing."""
    audio = temp_dir / "reading.webm"
    audio.write_bytes(b"fake audio content")
    return audio


# Property-based testing fixtures
@pytest.fixture
def hypothesis_settings():
    """Configure Hypothesis settings for property tests."""
    from hypothesis import settings

    return settings(max_examples=100, deadline=None)
