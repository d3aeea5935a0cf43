"""Embeds the collected transcripts into the static HTML viewer."""

import json
import logging
import os
import re
from typing import Any, Dict, List

from .exceptions import EmbeddingError

logger = logging.getLogger(__name__)

START_MARKER = '// __EMBEDDED_TRANSCRIPTS__'
END_MARKER = '// __END_EMBEDDED__'
# Statements of the page's init section, one per line. The block goes
# between them and the last one becomes the fallback of the auto-load branch.
DEFAULT_ANCHOR = 'loadSettings();\nloadFromStorage();'
DEFAULT_PROGRESS_FILE = '_progress.json'

_EMBEDDED_BLOCK = re.compile(re.escape(START_MARKER) + r'.*?' + re.escape(END_MARKER), re.DOTALL)

_AUTO_LOAD = (
    "// Auto-load embedded transcripts\n"
    "{indent}if (EMBEDDED_DATA && EMBEDDED_DATA.length > 0) {{\n"
    "{indent}    knowledgeBase.transcripts = EMBEDDED_DATA;\n"
    "{indent}    rebuildTopics();\n"
    "{indent}    saveToStorage();\n"
    "{indent}    updateUI();\n"
    "{indent}    setStatus('success', '&#10003; נטענו ' + EMBEDDED_DATA.length + ' תמלולים');\n"
    "{indent}}} else {{\n"
    "{indent}    {fallback}\n"
    "{indent}}}"
)


def collect_transcripts(transcripts_dir: str, fallback_topic: str = 'כללי',
                        progress_file: str = DEFAULT_PROGRESS_FILE) -> List[Dict[str, Any]]:
    """
    Reads every transcript JSON under ``transcripts_dir``.

    The progress ledger at the root of the tree is skipped, as are files
    that cannot be parsed. Word timings are dropped to keep the page small.

    Raises:
        EmbeddingError: If ``transcripts_dir`` is not a directory.
    """
    if not os.path.isdir(transcripts_dir):
        raise EmbeddingError(f"Transcripts directory not found: {transcripts_dir}")

    ledger_path = os.path.join(transcripts_dir, progress_file)
    transcripts = []
    for dirpath, dirnames, filenames in os.walk(transcripts_dir):
        dirnames.sort()
        for filename in sorted(filenames):
            path = os.path.join(dirpath, filename)
            if not filename.endswith('.json') or path == ledger_path:
                continue
            try:
                with open(path, 'r', encoding='utf-8') as f:
                    raw = json.load(f)
                if not isinstance(raw, dict):
                    raise ValueError("root is not an object")
            except (OSError, ValueError) as e:
                logger.warning(f"Skip {filename}: {e}")
                continue
            transcripts.append({
                'sourceFile': raw.get('sourceFile') or '',
                'topic': raw.get('topic') or fallback_topic,
                'title': raw.get('title') or os.path.splitext(filename)[0],
                'duration': raw.get('duration') or 0,
                'text': raw.get('text') or '',
            })
    return transcripts


def build_embed_block(transcripts: List[Dict[str, Any]], indent: str = '        ') -> str:
    """Renders the sentinel-delimited script block holding ``EMBEDDED_DATA``."""
    data_json = json.dumps(transcripts, ensure_ascii=False)
    # A literal "</script>" inside the data would close the script element
    data_json = data_json.replace('</', '<\\/')
    return f"{START_MARKER}\n{indent}const EMBEDDED_DATA = {data_json};\n{indent}{END_MARKER}"


def build_auto_load(fallback: str, indent: str = '        ') -> str:
    """Renders the init branch that loads ``EMBEDDED_DATA`` and otherwise runs ``fallback``."""
    return _AUTO_LOAD.format(indent=indent, fallback=fallback)


def _anchor_pattern(anchor: str):
    statements = [line.strip() for line in anchor.splitlines() if line.strip()]
    if not statements:
        raise EmbeddingError("The embed anchor is empty.")
    return re.compile(r'\s*'.join(re.escape(s) for s in statements)), statements[-1]


def embed_transcripts(html: str, transcripts: List[Dict[str, Any]], anchor: str = DEFAULT_ANCHOR) -> str:
    """
    Returns ``html`` with the transcripts embedded.

    An existing embedded block is replaced in place. Otherwise ``anchor`` is
    located as a run of statements separated only by whitespace. Its last
    statement is replaced by the data block plus an auto-load branch that
    falls back to that statement when no data is embedded. Inserted lines
    use the indentation of the last statement.

    Raises:
        EmbeddingError: If the page has neither an embedded block nor the anchor.
    """
    match = _EMBEDDED_BLOCK.search(html)
    if match:
        indent = _line_indent(html, match.start())
        block = build_embed_block(transcripts, indent)
        return html[:match.start()] + block + html[match.end():]

    pattern, fallback = _anchor_pattern(anchor)
    match = pattern.search(html)
    if not match:
        raise EmbeddingError(f"Could not find '{START_MARKER}' or the init sequence {anchor!r} in the HTML page.")
    position = match.end() - len(fallback)
    indent = _line_indent(html, position)
    block = build_embed_block(transcripts, indent)
    return (html[:position] + block + '\n' + indent + build_auto_load(fallback, indent)
            + html[match.end():])


def embed_into_file(transcripts_dir: str, html_file: str, anchor: str = DEFAULT_ANCHOR,
                    fallback_topic: str = 'כללי', progress_file: str = DEFAULT_PROGRESS_FILE) -> int:
    """
    Collects transcripts and rewrites ``html_file`` with them embedded.

    Returns:
        The number of transcripts embedded.

    Raises:
        EmbeddingError: If the page cannot be read, written or has no insertion point.
    """
    logger.info("Collecting transcripts...")
    transcripts = collect_transcripts(transcripts_dir, fallback_topic, progress_file)
    logger.info(f"Found {len(transcripts)} transcripts")

    try:
        with open(html_file, 'r', encoding='utf-8') as f:
            html = f.read()
    except OSError as e:
        raise EmbeddingError(f"Could not read HTML page {html_file}: {e}") from e

    html = embed_transcripts(html, transcripts, anchor)

    try:
        with open(html_file, 'w', encoding='utf-8') as f:
            f.write(html)
    except OSError as e:
        raise EmbeddingError(f"Could not write HTML page {html_file}: {e}") from e

    logger.info(f"Embedded {len(transcripts)} transcripts into {html_file}")
    logger.info(f"HTML size: {len(html.encode('utf-8')) / 1024 / 1024:.1f} MB")
    return len(transcripts)


def _line_indent(text: str, position: int) -> str:
    line_start = text.rfind('\n', 0, position) + 1
    prefix = text[line_start:position]
    return prefix[:len(prefix) - len(prefix.lstrip())]
