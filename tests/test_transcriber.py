"""
Unit tests for the ElevenLabs transcription client.

Tests cover:
- Timeout policy
- Response normalization (fallback word field, defaults, duration)
- Request shape (endpoint, headers, form fields, streamed upload)
- Error mapping for missing key, HTTP errors, timeouts and bad bodies
"""

from unittest.mock import Mock

import pytest
import requests
from requests_toolbelt import MultipartEncoder

from lecturescribe.exceptions import ConfigurationError, TranscriptionError
from lecturescribe.models import TranscriptResult, Word
from lecturescribe.transcriber import ElevenLabsTranscriber, compute_timeout, normalize_response

MB = 1024 * 1024


class TestComputeTimeout:

    def test_small_file_uses_minimum(self):
        assert compute_timeout(10 * MB) == 1800

    def test_large_file_scales_with_size(self):
        assert compute_timeout(200 * MB) == 3000

    def test_custom_policy(self):
        assert compute_timeout(4 * MB, min_timeout=10, seconds_per_mb=5) == 20


class TestNormalizeResponse:

    def test_reads_text_or_word_field(self):
        result = normalize_response({
            "text": "שלום עולם",
            "words": [
                {"text": "שלום", "start": 0.1, "end": 1.2},
                {"word": "עולם", "start": 1.3, "end": 2.0},
            ],
            "language_code": "heb",
        })
        assert [w.word for w in result.words] == ["שלום", "עולם"]
        assert result.language == "heb"
        assert result.text == "שלום עולם"

    def test_missing_fields_default(self):
        result = normalize_response({"words": [{}]}, default_language="he")
        assert result.words == (Word("", 0.0, 0.0),)
        assert result.text == ""
        assert result.language == "he"

    def test_duration_is_latest_end(self):
        result = normalize_response({"words": [{"end": 1.2}, {"end": 4.8}, {"end": 3.0}]})
        assert result.duration == 4.8

    def test_duration_without_words(self):
        assert normalize_response({"text": "x"}).duration == 0
        assert TranscriptResult(text="").duration == 0


def _response(payload=None, status_code=200):
    response = Mock()
    response.status_code = status_code
    response.json.return_value = payload if payload is not None else {}
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(
            f"{status_code} Error", response=response
        )
    return response


@pytest.fixture
def audio_file(tmp_path):
    path = tmp_path / "lecture.mp3"
    path.write_bytes(b"\x00" * 2048)
    return path


class TestElevenLabsTranscriber:

    def test_posts_streamed_multipart_request(self, audio_file):
        session = Mock()
        session.post.return_value = _response({"text": "hi", "words": [{"text": "hi", "start": 0, "end": 0.5}]})
        transcriber = ElevenLabsTranscriber(api_key="secret", session=session)

        result = transcriber.transcribe(str(audio_file))

        assert result.text == "hi"
        assert result.duration == 0.5
        args, kwargs = session.post.call_args
        assert args[0] == "https://api.elevenlabs.io/v1/speech-to-text"
        assert kwargs["headers"]["xi-api-key"] == "secret"
        assert kwargs["headers"]["Content-Type"].startswith("multipart/form-data")
        assert kwargs["timeout"] == 1800
        encoder = kwargs["data"]
        assert isinstance(encoder, MultipartEncoder)
        assert encoder.fields["model_id"] == "scribe_v2"
        assert encoder.fields["language_code"] == "he"
        assert encoder.fields["tag_audio_events"] == "false"
        assert encoder.fields["file"][0] == "lecture.mp3"

    def test_language_defaults_to_hint(self, audio_file):
        session = Mock()
        session.post.return_value = _response({"text": "hello"})
        transcriber = ElevenLabsTranscriber(api_key="secret", language_code="en", session=session)
        assert transcriber.transcribe(str(audio_file)).language == "en"

    def test_missing_api_key_is_configuration_error(self, audio_file):
        session = Mock()
        transcriber = ElevenLabsTranscriber(api_key=None, session=session)
        with pytest.raises(ConfigurationError, match="ELEVENLABS_API_KEY"):
            transcriber.transcribe(str(audio_file))
        session.post.assert_not_called()

    def test_missing_file(self, tmp_path):
        transcriber = ElevenLabsTranscriber(api_key="secret", session=Mock())
        with pytest.raises(TranscriptionError, match="not found"):
            transcriber.transcribe(str(tmp_path / "gone.mp3"))

    def test_http_error_includes_status_and_detail(self, audio_file):
        session = Mock()
        session.post.return_value = _response({"detail": "invalid api key"}, status_code=401)
        transcriber = ElevenLabsTranscriber(api_key="secret", session=session)
        with pytest.raises(TranscriptionError) as exc_info:
            transcriber.transcribe(str(audio_file))
        assert "401" in str(exc_info.value)
        assert "invalid api key" in str(exc_info.value)

    def test_timeout(self, audio_file):
        session = Mock()
        session.post.side_effect = requests.exceptions.Timeout("read timed out")
        transcriber = ElevenLabsTranscriber(api_key="secret", session=session)
        with pytest.raises(TranscriptionError, match="timed out"):
            transcriber.transcribe(str(audio_file))

    def test_connection_error(self, audio_file):
        session = Mock()
        session.post.side_effect = requests.exceptions.ConnectionError("refused")
        transcriber = ElevenLabsTranscriber(api_key="secret", session=session)
        with pytest.raises(TranscriptionError, match="refused"):
            transcriber.transcribe(str(audio_file))

    def test_non_json_body(self, audio_file):
        session = Mock()
        response = _response()
        response.json.side_effect = ValueError("Expecting value")
        session.post.return_value = response
        transcriber = ElevenLabsTranscriber(api_key="secret", session=session)
        with pytest.raises(TranscriptionError, match="non-JSON"):
            transcriber.transcribe(str(audio_file))
