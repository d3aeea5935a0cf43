"""Data models for LectureScribe."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

@dataclass(frozen=True)
class Word:
    """A single recognized word with its offsets in seconds."""
    word: str
    start: float = 0.0
    end: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {"word": self.word, "start": self.start, "end": self.end}

@dataclass(frozen=True)
class AudioWorkItem:
    """One discovered audio file paired with its topic and title."""
    file_path: str
    topic: str
    title: str

@dataclass(frozen=True)
class TranscriptResult:
    """Holds the normalized output of the speech-to-text service."""
    text: str
    words: Tuple[Word, ...] = ()
    language: Optional[str] = None

    @property
    def duration(self) -> float:
        """Latest word end offset, or 0.0 when no words were returned."""
        if not self.words:
            return 0.0
        return max(w.end for w in self.words)

@dataclass(frozen=True)
class TranscriptRecord:
    """The persisted artifact for one successfully transcribed work item."""
    source_file: str
    topic: str
    title: str
    result: TranscriptResult
    transcribed_at: str

    def to_dict(self) -> Dict[str, Any]:
        # Key names are read by the HTML viewer, keep them stable.
        return {
            "sourceFile": self.source_file,
            "topic": self.topic,
            "title": self.title,
            "language": self.result.language,
            "duration": self.result.duration,
            "text": self.result.text,
            "words": [w.to_dict() for w in self.result.words],
            "transcribedAt": self.transcribed_at,
        }

@dataclass
class ProgressLedger:
    """
    Record of which source files have completed or failed transcription.

    Both collections behave as sets (no duplicates) but keep insertion order
    so the persisted document diffs cleanly between runs. A path present in
    ``completed`` is never also present in ``failed``.
    """
    completed: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)

    def is_completed(self, file_path: str) -> bool:
        return file_path in self.completed

    def mark_success(self, file_path: str) -> None:
        if file_path not in self.completed:
            self.completed.append(file_path)
        self.failed = [f for f in self.failed if f != file_path]

    def mark_failure(self, file_path: str) -> None:
        if file_path not in self.failed:
            self.failed.append(file_path)

    def to_dict(self) -> Dict[str, List[str]]:
        return {"completed": list(self.completed), "failed": list(self.failed)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProgressLedger":
        """
        Builds a ledger from its persisted form.

        Raises:
            ValueError: If the document does not have the expected shape.
        """
        if not isinstance(data, dict):
            raise ValueError("Ledger document root must be an object.")
        ledger = cls()
        for key in ("completed", "failed"):
            entries = data.get(key, [])
            if not isinstance(entries, list) or not all(isinstance(e, str) for e in entries):
                raise ValueError(f"Ledger field '{key}' must be a list of file paths.")
        for path in data.get("failed", []):
            ledger.mark_failure(path)
        for path in data.get("completed", []):
            ledger.mark_success(path)
        return ledger

@dataclass
class BatchSummary:
    """Final tallies of one batch run."""
    output_dir: str
    discovered: int = 0
    previously_completed: int = 0
    previously_failed: int = 0
    total: int = 0
    succeeded: int = 0
    failed: int = 0
    elapsed_seconds: float = 0.0
