"""Writes transcript records to the output directory."""

import json
import logging
import os
import re
from typing import Tuple

from .models import TranscriptRecord
from .exceptions import FileSystemError, PersistenceError
from .utils import ensure_dir_exists

logger = logging.getLogger(__name__)

MAX_FILENAME_LENGTH = 100

_ILLEGAL_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


def sanitize_filename(title: str, max_length: int = MAX_FILENAME_LENGTH) -> str:
    """
    Turns a lecture title into a base filename.

    Characters not allowed in Windows/POSIX filenames are removed and the
    result is cut to ``max_length`` characters. Different titles can map to
    the same name; the later artifact then overwrites the earlier one.
    """
    name = _ILLEGAL_CHARS.sub('', title)
    name = name[:max_length].strip().rstrip('.')
    return name or 'untitled'


def artifact_paths(record: TranscriptRecord, output_dir: str) -> Tuple[str, str]:
    """Returns the (json, txt) paths for a record."""
    topic_dir = os.path.join(output_dir, sanitize_filename(record.topic))
    base_name = sanitize_filename(record.title)
    return (
        os.path.join(topic_dir, f"{base_name}.json"),
        os.path.join(topic_dir, f"{base_name}.txt"),
    )


def write_transcript_artifacts(record: TranscriptRecord, output_dir: str) -> Tuple[str, str]:
    """
    Saves the full record as JSON and its text as a plain-text file.

    Args:
        record: The transcript record to persist.
        output_dir: Root of the transcript tree; a topic subdirectory is created.

    Returns:
        The (json_path, txt_path) that were written.

    Raises:
        PersistenceError: If the topic directory or either file cannot be written.
    """
    json_path, txt_path = artifact_paths(record, output_dir)
    if os.path.exists(json_path):
        logger.debug(f"Overwriting existing artifact {json_path}")
    try:
        ensure_dir_exists(os.path.dirname(json_path))
        with open(json_path, 'w', encoding='utf-8') as f:
            json.dump(record.to_dict(), f, ensure_ascii=False, indent=2)
        with open(txt_path, 'w', encoding='utf-8') as f:
            f.write(record.result.text)
    except (OSError, FileSystemError) as e:
        raise PersistenceError(f"Could not save transcript for '{record.title}': {e}") from e
    return json_path, txt_path
