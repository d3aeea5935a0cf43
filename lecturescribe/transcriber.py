"""Handles Speech-to-Text transcription through the ElevenLabs API."""

import logging
import mimetypes
import os
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import requests
from requests_toolbelt import MultipartEncoder

from .models import TranscriptResult, Word
from .exceptions import ConfigurationError, TranscriptionError
from .utils import BYTES_PER_MB

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.elevenlabs.io"
SPEECH_TO_TEXT_PATH = "/v1/speech-to-text"
DEFAULT_MODEL = "scribe_v2"
DEFAULT_LANGUAGE = "he"

MIN_TIMEOUT_SECONDS = 30 * 60
SECONDS_PER_MB = 15


def compute_timeout(
    file_size_bytes: int,
    min_timeout: float = MIN_TIMEOUT_SECONDS,
    seconds_per_mb: float = SECONDS_PER_MB,
) -> float:
    """
    Request timeout for an upload of the given size.

    Larger recordings take proportionally longer on the service side, so the
    timeout grows with the file but never drops below ``min_timeout``.
    """
    size_mb = file_size_bytes / BYTES_PER_MB
    return max(float(min_timeout), size_mb * seconds_per_mb)


def normalize_response(payload: Dict[str, Any], default_language: str = DEFAULT_LANGUAGE) -> TranscriptResult:
    """
    Converts a speech-to-text response body into a TranscriptResult.

    The service has returned word text under both ``text`` and ``word``, so
    both are accepted. Missing offsets default to zero and a missing language
    falls back to ``default_language``.
    """
    words = []
    for raw in payload.get('words') or []:
        text = raw.get('text') or raw.get('word') or ''
        words.append(Word(
            word=text,
            start=float(raw.get('start') or 0),
            end=float(raw.get('end') or 0),
        ))
    return TranscriptResult(
        text=payload.get('text') or '',
        words=tuple(words),
        language=payload.get('language_code') or default_language,
    )


class Transcriber(ABC):
    """Abstract base class for transcription services."""

    def validate_credentials(self) -> None:
        """
        Checks that the service can be called at all.

        Raises:
            ConfigurationError: If a required credential is missing.
        """

    @abstractmethod
    def transcribe(self, audio_path: str) -> TranscriptResult:
        """
        Transcribes the given audio file.

        Args:
            audio_path: Path to the audio file.

        Returns:
            A TranscriptResult with text, word timings and language.

        Raises:
            TranscriptionError: If transcription fails.
            ConfigurationError: If the service is not configured.
        """
        pass


class ElevenLabsTranscriber(Transcriber):
    """Uploads audio to the ElevenLabs speech-to-text endpoint, one file per request."""

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = DEFAULT_BASE_URL,
        model_id: str = DEFAULT_MODEL,
        language_code: str = DEFAULT_LANGUAGE,
        tag_audio_events: bool = False,
        min_timeout: float = MIN_TIMEOUT_SECONDS,
        seconds_per_mb: float = SECONDS_PER_MB,
        api_key_env: str = "ELEVENLABS_API_KEY",
        session: Optional[requests.Session] = None,
    ):
        """
        Initializes the ElevenLabsTranscriber.

        Args:
            api_key: The API key. May be None; the error is raised on first use.
            base_url: Service root, without the endpoint path.
            model_id: Speech-to-text model identifier.
            language_code: Source-language hint, also the default detected language.
            tag_audio_events: Whether the service should annotate laughter, applause etc.
            min_timeout: Lower bound of the per-request timeout, in seconds.
            seconds_per_mb: Timeout added per megabyte of audio.
            api_key_env: Name of the environment variable the key comes from,
                         used in error messages only.
            session: Optional requests session (connection reuse, testing).
        """
        self.api_key = api_key
        self.url = base_url.rstrip('/') + SPEECH_TO_TEXT_PATH
        self.model_id = model_id
        self.language_code = language_code
        self.tag_audio_events = tag_audio_events
        self.min_timeout = min_timeout
        self.seconds_per_mb = seconds_per_mb
        self.api_key_env = api_key_env
        self.session = session or requests.Session()
        logger.info(f"Initialized ElevenLabs transcriber (model '{self.model_id}', language '{self.language_code}')")

    def validate_credentials(self) -> None:
        if not self.api_key:
            raise ConfigurationError(f"{self.api_key_env} is not set (environment or .env file).")

    def transcribe(self, audio_path: str) -> TranscriptResult:
        self.validate_credentials()
        if not os.path.isfile(audio_path):
            raise TranscriptionError(f"Audio file not found: {audio_path}")

        try:
            size_bytes = os.path.getsize(audio_path)
        except OSError as e:
            raise TranscriptionError(f"Could not stat audio file {audio_path}: {e}") from e
        timeout = compute_timeout(size_bytes, self.min_timeout, self.seconds_per_mb)
        logger.info(f"  Size: {size_bytes / BYTES_PER_MB:.1f} MB")
        logger.info(f"  Timeout: {timeout / 60:.0f} min")

        mime_type = mimetypes.guess_type(audio_path)[0] or 'audio/mpeg'
        try:
            with open(audio_path, 'rb') as audio_file:
                # MultipartEncoder reads the file lazily while sending
                encoder = MultipartEncoder(fields={
                    'file': (os.path.basename(audio_path), audio_file, mime_type),
                    'model_id': self.model_id,
                    'language_code': self.language_code,
                    'tag_audio_events': 'true' if self.tag_audio_events else 'false',
                })
                response = self.session.post(
                    self.url,
                    data=encoder,
                    headers={
                        'xi-api-key': self.api_key,
                        'Content-Type': encoder.content_type,
                    },
                    timeout=timeout,
                )
            response.raise_for_status()
        except requests.exceptions.Timeout as e:
            raise TranscriptionError(f"Request timed out after {timeout:.0f}s for {audio_path}") from e
        except requests.exceptions.HTTPError as e:
            raise TranscriptionError(self._describe_http_error(e)) from e
        except requests.exceptions.RequestException as e:
            raise TranscriptionError(f"Request to speech-to-text service failed: {e}") from e
        except OSError as e:
            raise TranscriptionError(f"Could not read audio file {audio_path}: {e}") from e

        try:
            payload = response.json()
        except ValueError as e:
            raise TranscriptionError(f"Speech-to-text service returned a non-JSON response: {e}") from e
        if not isinstance(payload, dict):
            raise TranscriptionError("Speech-to-text service returned an unexpected response shape.")

        result = normalize_response(payload, default_language=self.language_code)
        logger.debug(f"Received {len(result.words)} words, language '{result.language}'")
        return result

    @staticmethod
    def _describe_http_error(error: requests.exceptions.HTTPError) -> str:
        response = error.response
        if response is None:
            return f"Speech-to-text request failed: {error}"
        detail = None
        try:
            body = response.json()
            if isinstance(body, dict):
                detail = body.get('detail')
        except ValueError:
            detail = (response.text or '')[:200] or None
        message = f"Speech-to-text service returned HTTP {response.status_code}"
        if detail:
            message += f": {detail}"
        return message
