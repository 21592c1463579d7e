"""Highlight video generation: keyframe rendering, concat manifest and ffmpeg encode.

Pipeline for one assessment:

1. lay out the passage words on the canvas
2. extract the keyframe instants and render one PNG per instant (thread pool)
3. write an ffmpeg concat-demuxer manifest pairing each PNG with its hold time
4. encode the stills plus the recorded audio with ffmpeg
5. move the finished file into place

Every intermediate lives in a per-run working directory that is removed on
every exit path. The encoder writes to a hidden partial file next to the
requested output and only a successful run renames it into place.
"""

import os
import subprocess
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Protocol, Sequence, Tuple

from ..config import get_settings
from ..errors import EncodingError, FluencyPipelineError, InvalidInputError, StorageError
from ..logging_config import LoggerMixin
from ..models import AlignedWord, KeyFrame, SessionInfo, WordLayout
from ..utils.file_utils import (
    create_work_directory,
    discard_file,
    ensure_directory,
    remove_directory,
    write_text_file,
)
from .frame_renderer import FrameRenderer
from .keyframes import build_keyframe_schedule, extract_keyframe_times
from .metrics_calculator import validate_duration
from .typography import FontSpec
from .word_layout import layout_words

X264_PRESETS = (
    "ultrafast", "superfast", "veryfast", "faster", "fast",
    "medium", "slow", "slower", "veryslow",
)

STDERR_TAIL_CHARS = 2000


@dataclass
class EncodeOptions:
    """Fixed ffmpeg options for still-frame highlight videos."""

    ffmpeg_binary: str = "ffmpeg"
    log_level: str = "error"
    video_codec: str = "libx264"
    preset: str = "veryfast"      # favour encode speed; frames are mostly static
    crf: int = 23                 # constant quality
    pixel_format: str = "yuv420p"
    fps_mode: str = "vfr"         # keep the sparse keyframe cadence
    audio_codec: str = "aac"
    audio_bitrate: str = "128k"
    movflags: str = "+faststart"  # moov atom first for progressive playback
    shortest: bool = True

    def __post_init__(self):
        """Validate encode options."""
        if self.crf < 0 or self.crf > 51:
            raise ValueError("CRF must be between 0 and 51")
        if self.preset not in X264_PRESETS:
            raise ValueError(f"Invalid preset: {self.preset}")

    @classmethod
    def from_settings(cls, settings) -> "EncodeOptions":
        return cls(
            ffmpeg_binary=settings.ffmpeg_binary,
            log_level=settings.ffmpeg_log_level,
            video_codec=settings.video_codec,
            preset=settings.encode_preset,
            crf=settings.encode_crf,
            audio_codec=settings.audio_codec,
            audio_bitrate=settings.audio_bitrate,
        )


@dataclass(frozen=True)
class EncodeJob:
    manifest_path: Path
    audio_path: Path
    output_path: Path


@dataclass(frozen=True)
class EncodeResult:
    output_path: Path
    elapsed_seconds: float
    stderr: str = ""


class VideoEncoder(Protocol):
    """Encodes a concat manifest plus an audio track into a video file."""

    def submit(self, job: EncodeJob, options: EncodeOptions) -> EncodeResult:
        ...


def escape_concat_path(path: Path) -> str:
    """Quote a path for a ``file '...'`` concat directive."""
    return str(path).replace("'", "'\\''")


def build_concat_manifest(keyframes: Sequence[KeyFrame]) -> str:
    """
    Build the ffmpeg concat-demuxer manifest for ``keyframes``.

    Each frame is listed with its hold duration (4 decimals); the last frame is
    listed once more without a duration, which the concat demuxer needs to
    honour the final duration.
    """
    if not keyframes:
        raise InvalidInputError("Cannot build a manifest without keyframes", stage="manifest")

    lines: List[str] = []
    for keyframe in keyframes:
        lines.append(f"file '{escape_concat_path(keyframe.image_path)}'")
        lines.append(f"duration {keyframe.duration:.4f}")
    lines.append(f"file '{escape_concat_path(keyframes[-1].image_path)}'")
    return "\n".join(lines) + "\n"


class FfmpegEncoder(LoggerMixin):
    """VideoEncoder backed by the ffmpeg command line."""

    def build_command(self, job: EncodeJob, options: EncodeOptions) -> List[str]:
        command = [
            options.ffmpeg_binary,
            "-hide_banner",
            "-loglevel", options.log_level,
            "-f", "concat",
            "-safe", "0",
            "-i", str(job.manifest_path),
            "-i", str(job.audio_path),
            "-map", "0:v:0",
            "-map", "1:a:0",
            "-c:v", options.video_codec,
            "-preset", options.preset,
            "-crf", str(options.crf),
            "-pix_fmt", options.pixel_format,
            "-fps_mode", options.fps_mode,
            "-c:a", options.audio_codec,
            "-b:a", options.audio_bitrate,
        ]
        if options.shortest:
            command.append("-shortest")
        command.extend(["-movflags", options.movflags, "-y", str(job.output_path)])
        return command

    def submit(self, job: EncodeJob, options: EncodeOptions) -> EncodeResult:
        command = self.build_command(job, options)
        self.logger.info("Starting ffmpeg encode", output_path=str(job.output_path))
        started = time.monotonic()

        try:
            result = subprocess.run(command, capture_output=True, text=True, check=False)
        except OSError as exc:
            self.logger.error("Failed to launch ffmpeg", binary=options.ffmpeg_binary, error=str(exc))
            raise EncodingError(f"Cannot launch {options.ffmpeg_binary}: {exc}") from exc

        elapsed = time.monotonic() - started
        stderr_tail = (result.stderr or "")[-STDERR_TAIL_CHARS:]

        if result.returncode != 0:
            self.logger.error(
                "FFmpeg encoding failed",
                returncode=result.returncode,
                stderr=stderr_tail,
            )
            raise EncodingError(
                f"ffmpeg exited with code {result.returncode}: {stderr_tail}",
                returncode=result.returncode,
                stderr=stderr_tail,
            )

        if not Path(job.output_path).exists():
            raise EncodingError("ffmpeg reported success but produced no output file", returncode=0)

        self.logger.info("FFmpeg encode finished", elapsed=f"{elapsed:.2f}s")
        return EncodeResult(output_path=Path(job.output_path), elapsed_seconds=elapsed, stderr=stderr_tail)


class HighlightVideoGenerator(LoggerMixin):
    """Render and encode the word-highlight video for one assessment."""

    def __init__(
        self,
        settings=None,
        encoder: Optional[VideoEncoder] = None,
        renderer: Optional[FrameRenderer] = None,
        encode_options: Optional[EncodeOptions] = None,
    ):
        self.settings = settings or get_settings()
        self.encoder = encoder or FfmpegEncoder()
        self.renderer = renderer or FrameRenderer(self.settings)
        self.encode_options = encode_options or EncodeOptions.from_settings(self.settings)
        self.work_root = self.settings.cache_dir / "video_work"

    # ---------------------------
    # Main Video Generation
    # ---------------------------

    def generate(
        self,
        words: Sequence[AlignedWord],
        audio_path: Path,
        audio_duration: float,
        output_path: Path,
        session: Optional[SessionInfo] = None,
    ) -> Path:
        """
        Generate a highlight video synchronized to the recorded audio.

        Args:
            words: Aligned words in passage order
            audio_path: Recorded reading to mux under the frames
            audio_duration: Audio length in seconds
            output_path: Where the finished video is written
            session: Student name and WPM for the header

        Returns:
            Path to the finished video

        Raises:
            InvalidInputError: Empty word list, bad duration or missing audio
            MeasurementError: Fonts unavailable for layout or drawing
            StorageError: Working area or output cannot be written/removed
            EncodingError: ffmpeg cannot launch or fails
        """
        audio_path = Path(audio_path)
        output_path = Path(output_path)
        session = session or SessionInfo()
        duration = self._validate(words, audio_path, audio_duration)

        self.logger.info(
            "Starting highlight video generation",
            words=len(words),
            duration=duration,
            output_path=str(output_path),
        )

        work_dir = create_work_directory(self.work_root, prefix="video")
        partial_path = output_path.parent / f".{output_path.stem}.{work_dir.name}.partial{output_path.suffix}"
        stage = "layout"
        succeeded = False

        try:
            layouts = layout_words(
                words,
                self.renderer.font_book,
                FontSpec(self.settings.font_size),
                canvas_width=self.settings.video_width,
                padding=self.settings.video_padding,
                line_height=self.settings.line_height,
            )

            stage = "render"
            keyframes = self._render_keyframes(layouts, duration, session, work_dir)

            stage = "manifest"
            manifest_path = write_text_file(work_dir / "manifest.txt", build_concat_manifest(keyframes))
            ensure_directory(output_path.parent)

            stage = "encode"
            self.encoder.submit(EncodeJob(manifest_path, audio_path, partial_path), self.encode_options)

            stage = "finalize"
            os.replace(partial_path, output_path)
            succeeded = True

        except FluencyPipelineError as exc:
            exc.with_stage(stage)
            self.logger.error("Highlight video generation failed", stage=exc.stage, error=str(exc))
            raise
        except OSError as exc:
            self.logger.error("Highlight video generation failed", stage=stage, error=str(exc))
            raise StorageError(f"I/O failure during {stage}: {exc}", stage=stage) from exc
        finally:
            if not succeeded:
                discard_file(partial_path)
            self._cleanup(work_dir, raise_errors=succeeded)

        self.logger.info(
            "Highlight video generated",
            output_path=str(output_path),
            keyframes=len(keyframes),
        )
        return output_path

    def _validate(self, words: Sequence[AlignedWord], audio_path: Path, audio_duration: float) -> float:
        if not words:
            raise InvalidInputError("Cannot generate a video without words", stage="validate")
        try:
            duration = validate_duration(audio_duration)
        except InvalidInputError as exc:
            raise exc.with_stage("validate")
        if duration <= 0:
            raise InvalidInputError("Audio duration must be positive", stage="validate")
        if not audio_path.is_file():
            raise InvalidInputError(f"Audio file not found: {audio_path}", stage="validate")
        return duration

    def _render_keyframes(
        self,
        layouts: List[WordLayout],
        duration: float,
        session: SessionInfo,
        work_dir: Path,
    ) -> List[KeyFrame]:
        """Render one still per keyframe; returns once every frame is on disk."""
        schedule: List[Tuple[float, float]] = build_keyframe_schedule(
            extract_keyframe_times(layouts, duration)
        )
        frame_paths = [work_dir / f"frame_{index:06d}.png" for index in range(len(schedule))]

        with ThreadPoolExecutor(max_workers=self.settings.render_workers) as executor:
            futures = [
                executor.submit(self.renderer.render_to_file, timestamp, layouts, session, path)
                for (timestamp, _), path in zip(schedule, frame_paths)
            ]
            written = [future.result() for future in futures]

        self.logger.info("Keyframes rendered", keyframes=len(written), workers=self.settings.render_workers)
        return [
            KeyFrame(timestamp=timestamp, duration=hold, image_path=path.resolve())
            for (timestamp, hold), path in zip(schedule, written)
        ]

    def _cleanup(self, work_dir: Path, raise_errors: bool) -> None:
        try:
            remove_directory(work_dir)
        except StorageError:
            if raise_errors:
                raise
            # The original failure is already propagating
            self.logger.warning("Working directory left behind", work_dir=str(work_dir))
