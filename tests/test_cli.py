"""
Tests for the fluency-pipeline command line.
"""

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from reading_fluency_pipeline.cli import main
from reading_fluency_pipeline.errors import EncodingError


@pytest.fixture
def matching_file(temp_dir, sample_result) -> Path:
    path = temp_dir / "matching.json"
    sample_result.save_to_file(path)
    return path


@pytest.mark.unit
class TestAnalyzeCommand:

    def test_prints_report(self, matching_file, capsys):
        exit_code = main(["analyze", str(matching_file), "--duration", "60", "--student", "Ana"])

        assert exit_code == 0
        report = json.loads(capsys.readouterr().out)
        assert report["metrics"]["accuracy"] == 57
        assert report["metrics"]["words_per_minute"] == 6
        assert report["summary_inputs"]["student_name"] == "Ana"
        assert {p["type"] for p in report["patterns"]} == {
            "initial_sound", "visual_similarity", "final_sound", "substitution",
        }

    def test_include_disfluencies(self, matching_file, capsys):
        main(["analyze", str(matching_file), "--duration", "60", "--include-disfluencies"])
        types = {p["type"] for p in json.loads(capsys.readouterr().out)["patterns"]}
        assert {"hesitation", "repetition"} <= types

    def test_words_only_payload(self, temp_dir, capsys):
        path = temp_dir / "words.json"
        path.write_text(
            json.dumps({"words": [{"expected": "cat", "spoken": "cat", "status": "correct", "startTime": 0, "endTime": 1}]}),
            encoding="utf-8",
        )
        assert main(["analyze", str(path), "--duration", "10"]) == 0
        metrics = json.loads(capsys.readouterr().out)["metrics"]
        assert metrics["prosody_score"] == 3.4
        assert metrics["prosody_grade"] == "Proficient"

    def test_negative_duration_fails(self, matching_file, capsys):
        assert main(["analyze", str(matching_file), "--duration", "-5"]) == 1
        assert "Audio duration" in capsys.readouterr().err

    def test_word_without_status_fails(self, temp_dir, capsys):
        path = temp_dir / "words.json"
        path.write_text(json.dumps({"words": [{"expected": "cat", "spoken": "cat"}]}), encoding="utf-8")
        assert main(["analyze", str(path), "--duration", "10"]) == 1
        assert "missing fields" in capsys.readouterr().err

    def test_missing_file_fails(self, temp_dir, capsys):
        assert main(["analyze", str(temp_dir / "missing.json"), "--duration", "5"]) == 1
        assert "not found" in capsys.readouterr().err


@pytest.mark.unit
class TestVideoCommand:

    def test_invokes_generator(self, matching_file, audio_file, temp_dir, capsys):
        output = temp_dir / "out.mp4"
        with patch("reading_fluency_pipeline.cli.HighlightVideoGenerator") as generator_cls:
            generator_cls.return_value.generate.return_value = output
            exit_code = main(
                [
                    "video", str(matching_file),
                    "--audio", str(audio_file),
                    "--duration", "60",
                    "--output", str(output),
                    "--student", "Ana",
                ]
            )

        assert exit_code == 0
        args = generator_cls.return_value.generate.call_args[0]
        assert len(args[0]) == 7
        assert args[1] == audio_file
        assert args[2] == 60.0
        assert args[3] == output
        assert args[4].student_name == "Ana"
        assert args[4].words_per_minute == 6
        assert str(output) in capsys.readouterr().out

    def test_reports_failing_stage(self, matching_file, audio_file, temp_dir, capsys):
        with patch("reading_fluency_pipeline.cli.HighlightVideoGenerator") as generator_cls:
            generator_cls.return_value.generate.side_effect = EncodingError("ffmpeg exited with code 1")
            exit_code = main(
                [
                    "video", str(matching_file),
                    "--audio", str(audio_file),
                    "--duration", "60",
                    "--output", str(temp_dir / "out.mp4"),
                ]
            )

        assert exit_code == 1
        assert "[encode]" in capsys.readouterr().err
