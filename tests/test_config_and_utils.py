"""
Unit tests for settings and file utilities.
"""

import pytest
from pydantic import ValidationError

from reading_fluency_pipeline.config import Settings
from reading_fluency_pipeline.errors import StorageError
from reading_fluency_pipeline.utils.file_utils import (
    create_work_directory,
    discard_file,
    ensure_directory,
    remove_directory,
    write_text_file,
)


@pytest.mark.unit
class TestSettings:

    def test_defaults(self):
        settings = Settings()
        assert (settings.video_width, settings.video_height) == (1280, 720)
        assert settings.video_padding == 60
        assert settings.line_height == 50
        assert settings.font_size == 36
        assert settings.encode_preset == "veryfast"
        assert settings.encode_crf == 23

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("RENDER_WORKERS", "8")
        monkeypatch.setenv("ENCODE_CRF", "30")
        settings = Settings()
        assert settings.render_workers == 8
        assert settings.encode_crf == 30

    def test_out_of_range_rejected(self):
        with pytest.raises(ValidationError):
            Settings(encode_crf=52)
        with pytest.raises(ValidationError):
            Settings(render_workers=0)


@pytest.mark.unit
class TestFileUtils:

    def test_work_directories_are_unique(self, temp_dir):
        first = create_work_directory(temp_dir / "work")
        second = create_work_directory(temp_dir / "work")

        assert first != second
        assert first.is_dir() and second.is_dir()
        assert first.name.startswith("video-")

    def test_work_directory_failure(self, temp_dir):
        blocker = temp_dir / "blocker"
        blocker.write_text("not a directory")
        with pytest.raises(StorageError) as exc_info:
            create_work_directory(blocker)
        assert exc_info.value.stage == "workspace"

    def test_remove_directory(self, temp_dir):
        work = ensure_directory(temp_dir / "work" / "nested")
        (work / "frame.png").write_bytes(b"png")

        remove_directory(temp_dir / "work")
        assert not (temp_dir / "work").exists()
        remove_directory(temp_dir / "work")

    def test_write_text_file_uses_unix_newlines(self, temp_dir):
        path = write_text_file(temp_dir / "manifest.txt", "file 'a'\nduration 1.0000\n")
        assert path.read_bytes() == b"file 'a'\nduration 1.0000\n"

    def test_write_text_file_failure(self, temp_dir):
        with pytest.raises(StorageError):
            write_text_file(temp_dir / "missing" / "manifest.txt", "x")

    def test_discard_file(self, temp_dir):
        path = temp_dir / "partial.mp4"
        path.write_bytes(b"x")
        discard_file(path)
        assert not path.exists()
        discard_file(path)
