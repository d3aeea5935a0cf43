"""Finds the audio files to transcribe under a source directory."""

import logging
import os
import re
from typing import List

from .models import AudioWorkItem
from .exceptions import DiscoveryError

logger = logging.getLogger(__name__)

AUDIO_EXTENSIONS = ('.mp3', '.mp4', '.wav', '.m4a')

# Copies synced from several devices end up as "name~2.mp3"
_DISAMBIGUATION_SUFFIX = re.compile(r'~\d+$')


def is_audio_file(filename: str) -> bool:
    """Case-insensitive check against the audio extension allow-list."""
    return filename.lower().endswith(AUDIO_EXTENSIONS)


def derive_title(filename: str) -> str:
    """
    Derives a lecture title from an audio filename.

    The extension is dropped, then any trailing ``~<digits>`` suffix.

    >>> derive_title('שיעור 5~2.mp3')
    'שיעור 5'
    """
    stem, _ = os.path.splitext(filename)
    return _DISAMBIGUATION_SUFFIX.sub('', stem)


def find_audio_files(root_dir: str, fallback_topic: str = 'כללי') -> List[AudioWorkItem]:
    """
    Recursively collects audio files under ``root_dir``.

    The topic of a file is the name of the top-level subdirectory it lives
    under; files placed directly in ``root_dir`` get ``fallback_topic``.
    Symbolic links to directories are not followed.

    Args:
        root_dir: The directory to scan.
        fallback_topic: Topic label for files at the root.

    Returns:
        Work items in directory-walk order, entries sorted by name within
        each directory.

    Raises:
        DiscoveryError: If the root directory does not exist or cannot be read.
    """
    if not os.path.exists(root_dir):
        raise DiscoveryError(f"Source directory not found: {root_dir}")
    if not os.path.isdir(root_dir):
        raise DiscoveryError(f"Source path is not a directory: {root_dir}")

    root_dir = os.path.abspath(root_dir)
    logger.info(f"Scanning directory for audio files: {root_dir}")
    try:
        items = _scan(root_dir, topic=None, fallback_topic=fallback_topic)
    except OSError as e:
        logger.error(f"Could not read source directory {root_dir}: {e}", exc_info=True)
        raise DiscoveryError(f"Could not read source directory {root_dir}: {e}") from e

    logger.info(f"Found {len(items)} audio files.")
    return items


def _scan(directory: str, topic, fallback_topic: str) -> List[AudioWorkItem]:
    items = []
    with os.scandir(directory) as it:
        entries = sorted(it, key=lambda e: e.name)
    for entry in entries:
        # Linked directories are not followed, a link back up the tree would never end
        if entry.is_dir(follow_symlinks=False):
            # Only the first level below the root names a topic
            items.extend(_scan(entry.path, topic or entry.name, fallback_topic))
        elif entry.is_file() and is_audio_file(entry.name):
            items.append(AudioWorkItem(
                file_path=entry.path,
                topic=topic or fallback_topic,
                title=derive_title(entry.name),
            ))
    return items
