"""Orchestrates the resumable batch transcription run."""

import logging
import os
import time
from datetime import datetime, timezone
from typing import Callable

from tqdm import tqdm

from .artifacts import write_transcript_artifacts
from .discovery import find_audio_files
from .exceptions import ConfigurationError, PersistenceError, TranscriptionError
from .ledger import LedgerStore
from .models import AudioWorkItem, BatchSummary, ProgressLedger, TranscriptRecord
from .transcriber import Transcriber
from .utils import ensure_dir_exists, format_duration

logger = logging.getLogger(__name__)

DEFAULT_PAUSE_SECONDS = 2.0


class BatchDriver:
    """
    Transcribes every audio file under a source tree that the ledger does not
    list as completed.

    Files are processed one at a time. The ledger is saved after every file,
    so an interrupted run loses at most the file in flight and a rerun picks
    up where the previous one stopped. Files recorded as failed are retried.
    """

    def __init__(
        self,
        source_dir: str,
        output_dir: str,
        transcriber: Transcriber,
        progress_file: str = '_progress.json',
        fallback_topic: str = 'כללי',
        pause_seconds: float = DEFAULT_PAUSE_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
        show_progress: bool = True,
    ):
        """
        Initializes the BatchDriver.

        Args:
            source_dir: Root of the lecture archive.
            output_dir: Root of the transcript tree; holds the progress file.
            transcriber: The speech-to-text client.
            progress_file: Ledger file name, relative to ``output_dir``.
            fallback_topic: Topic for files directly under ``source_dir``.
            pause_seconds: Delay between consecutive service calls.
            sleep: Function used for the delay.
            show_progress: Whether to draw a tqdm progress bar.
        """
        self.source_dir = source_dir
        self.output_dir = output_dir
        self.transcriber = transcriber
        self.ledger_store = LedgerStore(os.path.join(output_dir, progress_file))
        self.fallback_topic = fallback_topic
        self.pause_seconds = pause_seconds
        self.sleep = sleep
        self.show_progress = show_progress

    def run(self) -> BatchSummary:
        """
        Executes one batch run.

        Returns:
            A BatchSummary with the tallies of this run.

        Raises:
            FileSystemError: If the output directory cannot be created.
            DiscoveryError: If the source directory cannot be scanned.
            LedgerError: If the progress file cannot be read or written.
            ConfigurationError: If the transcriber is missing its credential.
        """
        start_time = time.time()
        logger.info("=== Batch Transcription ===")
        ensure_dir_exists(self.output_dir)

        items = find_audio_files(self.source_dir, self.fallback_topic)
        ledger = self.ledger_store.load()
        summary = BatchSummary(
            output_dir=self.output_dir,
            discovered=len(items),
            previously_completed=len(ledger.completed),
            previously_failed=len(ledger.failed),
        )
        logger.info(f"Previously completed: {summary.previously_completed}")
        logger.info(f"Previously failed: {summary.previously_failed}")

        remaining = [item for item in items if not ledger.is_completed(item.file_path)]
        logger.info(f"Remaining: {len(remaining)}")
        if not remaining:
            logger.info("All files already transcribed!")
            summary.elapsed_seconds = time.time() - start_time
            return summary

        self.transcriber.validate_credentials()

        with tqdm(total=len(remaining), unit="file", desc="Transcribing", disable=not self.show_progress) as pbar:
            for index, item in enumerate(remaining):
                logger.info(f"[{index + 1}/{len(remaining)}] {item.topic} / {item.title}")
                logger.info(f"  File: {os.path.basename(item.file_path)}")
                if self._process_item(item, ledger):
                    summary.succeeded += 1
                else:
                    summary.failed += 1
                summary.total += 1

                self.ledger_store.save(ledger)
                pbar.update(1)

                if index < len(remaining) - 1 and self.pause_seconds > 0:
                    self.sleep(self.pause_seconds)

        summary.elapsed_seconds = time.time() - start_time
        self._log_summary(summary)
        return summary

    def _process_item(self, item: AudioWorkItem, ledger: ProgressLedger) -> bool:
        """Transcribes and saves one item, recording the outcome in the ledger."""
        try:
            result = self.transcriber.transcribe(item.file_path)
            record = TranscriptRecord(
                source_file=item.file_path,
                topic=item.topic,
                title=item.title,
                result=result,
                transcribed_at=datetime.now(timezone.utc).isoformat(),
            )
            json_path, _ = write_transcript_artifacts(record, self.output_dir)
        except TranscriptionError as e:
            logger.error(f"  Transcription failed: {e}")
            ledger.mark_failure(item.file_path)
            return False
        except PersistenceError as e:
            logger.error(f"  Transcribed but could not save artifacts: {e}")
            ledger.mark_failure(item.file_path)
            return False
        except ConfigurationError:
            # A missing credential would fail every remaining file the same way
            raise
        except Exception as e:
            logger.error(f"  Unexpected error processing '{item.file_path}': {e}", exc_info=True)
            ledger.mark_failure(item.file_path)
            return False

        logger.info(f"  Done: {len(result.words)} words, {format_duration(result.duration)}")
        logger.info(f"  Saved: {os.path.basename(json_path)}")
        ledger.mark_success(item.file_path)
        return True

    @staticmethod
    def _log_summary(summary: BatchSummary) -> None:
        logger.info("=== Summary ===")
        logger.info(f"Total: {summary.total}")
        logger.info(f"Success: {summary.succeeded}")
        logger.info(f"Failed: {summary.failed}")
        logger.info(f"Total time: {summary.elapsed_seconds:.2f} seconds")
        logger.info(f"Transcripts saved to: {summary.output_dir}")
