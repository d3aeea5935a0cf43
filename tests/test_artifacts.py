"""
Unit tests for filename sanitization and transcript artifact persistence.
"""

import json
from unittest.mock import patch

import pytest

from lecturescribe.artifacts import sanitize_filename, write_transcript_artifacts
from lecturescribe.exceptions import PersistenceError
from lecturescribe.models import TranscriptRecord, TranscriptResult, Word


def _record(title="שיעור 5", topic="מדיטציה", text="שלום עולם"):
    return TranscriptRecord(
        source_file="/lectures/מדיטציה/שיעור 5~2.mp3",
        topic=topic,
        title=title,
        result=TranscriptResult(
            text=text,
            words=(Word("שלום", 0.0, 1.2), Word("עולם", 1.3, 4.8)),
            language="he",
        ),
        transcribed_at="2024-01-01T00:00:00+00:00",
    )


class TestSanitizeFilename:

    def test_removes_illegal_characters(self):
        assert sanitize_filename('Q&A: part 1/2 <"live"> | why? *') == "Q&A part 12 live  why"

    def test_truncates_to_limit(self):
        name = sanitize_filename("א" * 150)
        assert len(name) == 100

    def test_truncation_applies_after_removal(self):
        name = sanitize_filename(":" * 20 + "b" * 120)
        assert name == "b" * 100

    def test_empty_result_gets_placeholder(self):
        assert sanitize_filename("???") == "untitled"


class TestWriteTranscriptArtifacts:

    def test_writes_json_and_text(self, tmp_path):
        json_path, txt_path = write_transcript_artifacts(_record(), str(tmp_path))

        assert json_path == str(tmp_path / "מדיטציה" / "שיעור 5.json")
        assert txt_path == str(tmp_path / "מדיטציה" / "שיעור 5.txt")
        data = json.loads((tmp_path / "מדיטציה" / "שיעור 5.json").read_text(encoding="utf-8"))
        assert data == {
            "sourceFile": "/lectures/מדיטציה/שיעור 5~2.mp3",
            "topic": "מדיטציה",
            "title": "שיעור 5",
            "language": "he",
            "duration": 4.8,
            "text": "שלום עולם",
            "words": [
                {"word": "שלום", "start": 0.0, "end": 1.2},
                {"word": "עולם", "start": 1.3, "end": 4.8},
            ],
            "transcribedAt": "2024-01-01T00:00:00+00:00",
        }
        assert (tmp_path / "מדיטציה" / "שיעור 5.txt").read_text(encoding="utf-8") == "שלום עולם"

    def test_title_with_separators_stays_in_topic_dir(self, tmp_path):
        json_path, _ = write_transcript_artifacts(_record(title="a/b:c"), str(tmp_path))
        assert json_path == str(tmp_path / "מדיטציה" / "abc.json")

    def test_colliding_titles_overwrite(self, tmp_path):
        write_transcript_artifacts(_record(title="a:b", text="first"), str(tmp_path))
        write_transcript_artifacts(_record(title="ab", text="second"), str(tmp_path))
        assert (tmp_path / "מדיטציה" / "ab.txt").read_text(encoding="utf-8") == "second"

    def test_write_failure_raises_persistence_error(self, tmp_path):
        with patch("builtins.open", side_effect=PermissionError("read-only")):
            with pytest.raises(PersistenceError, match="read-only"):
                write_transcript_artifacts(_record(), str(tmp_path))
