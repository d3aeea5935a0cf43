"""Command-Line Interface handler for LectureScribe."""

import argparse
import logging
import sys
from typing import List, Optional

from .config_loader import ConfigLoader, load_api_key
from .log_setup import setup_logging
from .transcriber import ElevenLabsTranscriber
from .batch import BatchDriver
from .embedder import embed_into_file
from .exceptions import LectureScribeError, ConfigurationError

logger = logging.getLogger(__name__)

class CLIHandler:
    """Parses arguments and runs the batch transcription or the HTML embedding step."""

    def __init__(self):
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        """Creates the argument parser for the CLI."""
        parser = argparse.ArgumentParser(
            description="LectureScribe: transcribe an archive of audio lectures and build an offline HTML index.",
            formatter_class=argparse.ArgumentDefaultsHelpFormatter
        )
        parser.add_argument(
            "-c", "--config",
            default="config.yaml",
            help="Path to the configuration YAML file."
        )
        parser.add_argument(
            "--log-level",
            default="INFO",
            choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
            help="Set the logging level for console and file output."
        )
        subparsers = parser.add_subparsers(dest="command", required=True)

        transcribe = subparsers.add_parser(
            "transcribe",
            help="Transcribe every audio file not yet listed as completed in the progress file.",
            formatter_class=argparse.ArgumentDefaultsHelpFormatter
        )
        transcribe.add_argument(
            "-i", "--source-dir",
            default=None, # Default taken from config file
            help="Override the lecture archive directory specified in the config file."
        )
        transcribe.add_argument(
            "-o", "--output-dir",
            default=None,
            help="Override the transcript output directory specified in the config file."
        )
        transcribe.add_argument(
            "--no-progress-bar",
            action="store_true",
            help="Do not draw the progress bar (log lines only)."
        )

        embed = subparsers.add_parser(
            "embed",
            help="Embed all saved transcripts into the static HTML page.",
            formatter_class=argparse.ArgumentDefaultsHelpFormatter
        )
        embed.add_argument(
            "-t", "--transcripts-dir",
            default=None,
            help="Override the transcript directory (defaults to output_dir from the config file)."
        )
        embed.add_argument(
            "--html-file",
            default=None,
            help="Override the HTML page specified in the config file."
        )
        return parser

    def run(self, argv: Optional[List[str]] = None) -> None:
        """Parses arguments, sets up logging, loads config, and runs the selected command."""
        args = self.parser.parse_args(argv)

        log_level = getattr(logging, args.log_level.upper(), logging.INFO)
        # Temporary logging so config loading errors are visible
        setup_logging(log_level=log_level, log_dir='logs', log_file='lecturescribe_init.log')

        try:
            config = ConfigLoader().load_config(args.config)
        except ConfigurationError as e:
            logger.critical(f"Failed to load configuration from {args.config}: {e}")
            sys.exit(1)
        except FileNotFoundError:
            logger.critical(f"Configuration file not found: {args.config}")
            sys.exit(1)

        setup_logging(log_level=log_level, log_dir=config['log_dir'], log_file=config['log_file'])
        logger.info("Logging re-configured with settings from config file.")

        try:
            if args.command == "transcribe":
                self._run_transcribe(args, config)
            else:
                self._run_embed(args, config)
        except LectureScribeError as e:
            logger.critical(f"{type(e).__name__}: {e}")
            sys.exit(1)
        except KeyboardInterrupt:
            logger.warning("Process interrupted by user (Ctrl+C). Progress up to the last finished file is saved.")
            sys.exit(1)
        except Exception as e:
            logger.critical(f"An unexpected critical error occurred at the top level: {e}", exc_info=True)
            sys.exit(2)
        sys.exit(0)

    def _run_transcribe(self, args: argparse.Namespace, config: dict) -> None:
        if args.source_dir:
            logger.info(f"Overriding source_dir from config with CLI argument: {args.source_dir}")
            config['source_dir'] = args.source_dir
        if args.output_dir:
            logger.info(f"Overriding output_dir from config with CLI argument: {args.output_dir}")
            config['output_dir'] = args.output_dir
        if not config.get('source_dir'):
            raise ConfigurationError("No source directory given (config 'source_dir' or --source-dir).")

        transcriber = ElevenLabsTranscriber(
            api_key=load_api_key(config),
            base_url=config['api_base_url'],
            model_id=config['model_id'],
            language_code=config['language_code'],
            tag_audio_events=bool(config['tag_audio_events']),
            min_timeout=float(config['min_timeout_seconds']),
            seconds_per_mb=float(config['seconds_per_mb']),
            api_key_env=config['api_key_env'],
        )
        driver = BatchDriver(
            source_dir=config['source_dir'],
            output_dir=config['output_dir'],
            transcriber=transcriber,
            progress_file=config['progress_file'],
            fallback_topic=config['fallback_topic'],
            pause_seconds=float(config['pause_seconds']),
            show_progress=not args.no_progress_bar,
        )
        driver.run()

    def _run_embed(self, args: argparse.Namespace, config: dict) -> None:
        transcripts_dir = args.transcripts_dir or config['output_dir']
        html_file = args.html_file or config['html_file']
        embed_into_file(
            transcripts_dir,
            html_file,
            anchor=config['embed_anchor'],
            fallback_topic=config['fallback_topic'],
            progress_file=config['progress_file'],
        )


def main() -> None:
    CLIHandler().run()
