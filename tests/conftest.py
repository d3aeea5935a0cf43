"""
Pytest configuration file for the LectureScribe test suite.

This file contains fixtures that are shared across multiple test files.
"""

import logging
from typing import Dict, List

import pytest

from lecturescribe.models import TranscriptResult, Word
from lecturescribe.transcriber import Transcriber


class FakeTranscriber(Transcriber):
    """Transcriber double that records calls and fails for chosen files."""

    def __init__(self, failures: Dict[str, Exception] = None):
        self.calls: List[str] = []
        self.failures = failures or {}

    def transcribe(self, audio_path: str) -> TranscriptResult:
        self.calls.append(audio_path)
        for fragment, error in self.failures.items():
            if fragment in audio_path:
                raise error
        return TranscriptResult(
            text=f"transcript of {audio_path}",
            words=(Word("שלום", 0.0, 1.2), Word("עולם", 1.3, 4.8)),
            language="he",
        )


@pytest.fixture(autouse=True)
def reset_logging():
    """Reset logging configuration before each test"""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    logging.basicConfig(level=logging.NOTSET)
    yield


@pytest.fixture
def archive(tmp_path):
    """A small lecture archive with nested topics and a root-level file."""
    root = tmp_path / "lectures"
    (root / "מדיטציה").mkdir(parents=True)
    (root / "תזונה" / "2023").mkdir(parents=True)
    (root / "מדיטציה" / "שיעור 5~2.mp3").write_bytes(b"a" * 16)
    (root / "מדיטציה" / "notes.pdf").write_bytes(b"not audio")
    (root / "תזונה" / "2023" / "Lecture A.M4A").write_bytes(b"b" * 16)
    (root / "intro.wav").write_bytes(b"c" * 16)
    return root


@pytest.fixture
def fake_transcriber():
    return FakeTranscriber()


@pytest.fixture
def make_transcriber():
    """Factory for transcribers that raise for paths containing the given fragments."""
    def make(failures: Dict[str, Exception] = None):
        return FakeTranscriber(failures)
    return make
