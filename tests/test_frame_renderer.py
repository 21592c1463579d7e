"""
Tests for frame composition and rasterization.
"""

import pytest
from PIL import Image

from reading_fluency_pipeline.errors import StorageError
from reading_fluency_pipeline.models import SessionInfo, WordLayout, WordStatus
from reading_fluency_pipeline.services.frame_renderer import (
    BACKGROUND,
    NOT_YET_SPOKEN,
    PROGRESS_FILL,
    DrawText,
    FillRect,
    FrameRenderer,
    progress_fraction,
    resolve_word_color,
)
from reading_fluency_pipeline.services.keyframes import build_keyframe_schedule, extract_keyframe_times


def _layout(status=WordStatus.CORRECT, start=1.0, end=2.0, **kwargs):
    return WordLayout(word="word", x=100, y=200, width=80, status=status, start_time=start, end_time=end, **kwargs)


@pytest.mark.unit
class TestResolveWordColor:

    @pytest.mark.parametrize(
        "status, speaking, spoken",
        [
            (WordStatus.CORRECT, "#22c55e", "#86efac"),
            (WordStatus.MISREAD, "#f97316", "#fdba74"),
            (WordStatus.SUBSTITUTED, "#f97316", "#fdba74"),
            (WordStatus.SKIPPED, "#ef4444", "#fca5a5"),
        ],
    )
    def test_state_machine(self, status, speaking, spoken):
        layout = _layout(status)
        assert resolve_word_color(layout, 0.5) == (NOT_YET_SPOKEN, False)
        assert resolve_word_color(layout, 1.0) == (speaking, True)
        assert resolve_word_color(layout, 2.0) == (speaking, True)
        assert resolve_word_color(layout, 2.001) == (spoken, False)

    def test_hesitation_colors_correct_words(self):
        layout = _layout(hesitation=True, pause_duration=0.7)
        assert resolve_word_color(layout, 1.5) == ("#7c3aed", True)
        assert resolve_word_color(layout, 3.0) == ("#c4b5fd", False)
        assert resolve_word_color(layout, 0.0) == (NOT_YET_SPOKEN, False)

    def test_error_status_overrides_hesitation(self):
        layout = _layout(WordStatus.MISREAD, hesitation=True)
        assert resolve_word_color(layout, 1.5) == ("#f97316", True)
        assert resolve_word_color(layout, 3.0) == ("#fdba74", False)

    def test_untimed_words_use_spoken_palette(self):
        assert resolve_word_color(_layout(WordStatus.SKIPPED, None, None), 0.0) == ("#fca5a5", False)
        assert resolve_word_color(_layout(WordStatus.CORRECT, None, None), 9.0) == ("#86efac", False)

    def test_sub_microsecond_start_is_speaking_at_its_keyframe(self):
        layout = _layout(start=1.0000004, end=2.0)
        assert resolve_word_color(layout, 1.0) == ("#22c55e", True)

    def test_speaking_state_held_for_the_whole_word(self):
        layout = _layout(start=1.0000004, end=2.0)
        schedule = build_keyframe_schedule(extract_keyframe_times([layout], 3.0))

        speaking = sum(hold for t, hold in schedule if resolve_word_color(layout, t)[1])
        assert speaking == pytest.approx(1.001)
        assert resolve_word_color(layout, schedule[-1][0]) == ("#86efac", False)


@pytest.mark.unit
class TestProgressFraction:

    def test_relative_to_last_word_end(self):
        layouts = [_layout(start=0.0, end=1.0), _layout(start=1.0, end=4.0)]
        assert progress_fraction(layouts, 0.0) == 0.0
        assert progress_fraction(layouts, 2.0) == 0.5
        assert progress_fraction(layouts, 10.0) == 1.0

    def test_no_timing(self):
        assert progress_fraction([_layout(start=None, end=None)], 3.0) == 0.0
        assert progress_fraction([], 3.0) == 0.0


@pytest.mark.unit
class TestDrawCommands:

    @pytest.fixture
    def renderer(self, test_settings):
        return FrameRenderer(test_settings)

    def test_background_header_and_legend(self, renderer, sample_session):
        commands = renderer.draw_commands(0.0, [], sample_session)
        texts = [c.text for c in commands if isinstance(c, DrawText)]

        assert commands[0] == FillRect(0, 0, 800, 450, BACKGROUND)
        assert "Oral Fluency Analysis" in texts
        assert "Student: Ana  |  WPM: 84" in texts
        assert {"Correct", "Misread", "Skipped", "Hesitation", "↺ Repeat", "Not Yet Spoken"} <= set(texts)

    def test_current_word_is_underlined(self, renderer, sample_session):
        layout = _layout()
        rects_before = [c for c in renderer.draw_commands(0.5, [layout], sample_session) if isinstance(c, FillRect)]
        rects_during = [c for c in renderer.draw_commands(1.5, [layout], sample_session) if isinstance(c, FillRect)]

        underline = FillRect(100, 208, 170, 211, "#22c55e")
        assert underline in rects_during
        assert underline not in rects_before

    def test_hesitation_label(self, renderer, sample_session):
        texts = [
            c.text
            for c in renderer.draw_commands(0.0, [_layout(hesitation=True, pause_duration=0.3)], sample_session)
            if isinstance(c, DrawText)
        ]
        assert "⏸ 300ms" in texts

    def test_hesitation_label_defaults_to_half_second(self, renderer, sample_session):
        texts = [
            c.text
            for c in renderer.draw_commands(0.0, [_layout(hesitation=True)], sample_session)
            if isinstance(c, DrawText)
        ]
        assert "⏸ 500ms" in texts

    def test_hesitation_label_rounds_half_up(self, renderer, sample_session):
        texts = [
            c.text
            for c in renderer.draw_commands(0.0, [_layout(hesitation=True, pause_duration=0.0125)], sample_session)
            if isinstance(c, DrawText)
        ]
        assert "⏸ 13ms" in texts

    def test_repeat_glyph(self, renderer, sample_session):
        commands = renderer.draw_commands(0.0, [_layout(is_repeat=True)], sample_session)
        glyphs = [c for c in commands if isinstance(c, DrawText) and c.text == "↺"]
        assert len(glyphs) == 1
        assert glyphs[0].x == 160

    def test_progress_fill_only_after_start(self, renderer, sample_session):
        layouts = [_layout(start=0.0, end=2.0)]

        def fills(t):
            return [
                c for c in renderer.draw_commands(t, layouts, sample_session)
                if isinstance(c, FillRect) and c.color == PROGRESS_FILL
            ]

        assert fills(0.0) == []
        halfway = fills(1.0)
        assert len(halfway) == 1
        assert halfway[0].x1 == 60 + (800 - 120) * 0.5

    def test_commands_are_deterministic(self, renderer, sample_session):
        layouts = [_layout(), _layout(WordStatus.SKIPPED, None, None, is_repeat=True)]
        assert renderer.draw_commands(1.2, layouts, sample_session) == renderer.draw_commands(
            1.2, layouts, sample_session
        )


@pytest.mark.integration
class TestRasterization:

    def test_render_is_idempotent(self, test_settings, sample_session):
        renderer = FrameRenderer(test_settings)
        layouts = [_layout(), _layout(WordStatus.MISREAD, 2.5, 3.0, hesitation=True, is_repeat=True)]

        first = renderer.render(1.5, layouts, sample_session)
        second = renderer.render(1.5, layouts, sample_session)

        assert first.size == (800, 450)
        assert first.tobytes() == second.tobytes()

    def test_frames_differ_across_transitions(self, test_settings, sample_session):
        renderer = FrameRenderer(test_settings)
        layouts = [_layout()]
        assert renderer.render(0.0, layouts, sample_session).tobytes() != renderer.render(
            1.5, layouts, sample_session
        ).tobytes()

    def test_render_to_file_writes_png(self, test_settings, sample_session, temp_dir):
        renderer = FrameRenderer(test_settings)
        path = renderer.render_to_file(1.5, [_layout()], sample_session, temp_dir / "frame.png")

        with Image.open(path) as image:
            assert image.format == "PNG"
            assert image.size == (800, 450)

    def test_render_to_missing_directory(self, test_settings, temp_dir):
        renderer = FrameRenderer(test_settings)
        with pytest.raises(StorageError) as exc_info:
            renderer.render_to_file(0.0, [], SessionInfo(), temp_dir / "missing" / "frame.png")
        assert exc_info.value.stage == "render"
