#!/usr/bin/env python3
"""
LectureScribe Entry Point Script

Usage:
    python main.py transcribe [--source-dir DIR] [--output-dir DIR]
    python main.py embed [--transcripts-dir DIR] [--html-file FILE]
"""

import sys
from lecturescribe.cli import CLIHandler

if __name__ == "__main__":
    if sys.version_info < (3, 8):
        sys.stderr.write("LectureScribe requires Python 3.8 or later.\n")
        sys.exit(1)

    cli = CLIHandler()
    cli.run()
