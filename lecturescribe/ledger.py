"""Loads and saves the progress ledger that makes batch runs resumable."""

import json
import logging
import os
import tempfile

from .models import ProgressLedger
from .exceptions import LedgerError

logger = logging.getLogger(__name__)


class LedgerStore:
    """Persists a ProgressLedger as a single JSON document."""

    def __init__(self, path: str):
        self.path = path

    def load(self) -> ProgressLedger:
        """
        Reads the ledger from disk.

        Returns:
            The stored ledger, or an empty one if no document exists yet.

        Raises:
            LedgerError: If the document exists but cannot be read or parsed.
                         The file is left as is so no progress is lost.
        """
        if not os.path.exists(self.path):
            logger.info(f"No progress file at {self.path}, starting with an empty ledger.")
            return ProgressLedger()

        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            ledger = ProgressLedger.from_dict(data)
        except (OSError, ValueError) as e:
            # json.JSONDecodeError is a ValueError
            logger.error(f"Progress file {self.path} is unreadable: {e}")
            raise LedgerError(
                f"Progress file {self.path} is unreadable ({e}). "
                f"Fix or remove it manually before rerunning."
            ) from e

        logger.info(
            f"Loaded progress from {self.path}: "
            f"{len(ledger.completed)} completed, {len(ledger.failed)} failed."
        )
        return ledger

    def save(self, ledger: ProgressLedger) -> None:
        """
        Rewrites the ledger document.

        The document is written to a temporary file in the same directory and
        then moved over the target, so an interrupted write keeps the previous
        version.

        Raises:
            LedgerError: If the document cannot be written.
        """
        directory = os.path.dirname(os.path.abspath(self.path))
        tmp_path = None
        try:
            fd, tmp_path = tempfile.mkstemp(prefix='.progress-', suffix='.tmp', dir=directory)
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(ledger.to_dict(), f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self.path)
            tmp_path = None
        except OSError as e:
            logger.error(f"Could not save progress file {self.path}: {e}", exc_info=True)
            raise LedgerError(f"Could not save progress file {self.path}: {e}") from e
        finally:
            if tmp_path and os.path.exists(tmp_path):
                os.remove(tmp_path)
        logger.debug(f"Progress saved to {self.path}")
