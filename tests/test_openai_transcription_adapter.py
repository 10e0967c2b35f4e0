from __future__ import annotations

from pathlib import Path
import tempfile
import unittest

from notescribe.adapters.openai_transcription import (
    DEFAULT_SPEAKER_PROMPT,
    OpenAITranscriptionAdapter,
    parse_transcription_response,
)
from notescribe.contracts.errors import ProviderResponseError, ProviderRetryExhaustedError, TranscriptionError


class _Obj:
    def __init__(self, **kwargs) -> None:
        for key, value in kwargs.items():
            setattr(self, key, value)


class _FakeTranscriptionsAPI:
    def __init__(self, responses: list[object]) -> None:
        self._responses = list(responses)
        self.calls: list[dict[str, object]] = []

    def create(self, **kwargs):
        file_handle = kwargs["file"]
        self.calls.append(
            {
                "filename": Path(file_handle.name).name,
                "model": kwargs.get("model"),
                "response_format": kwargs.get("response_format"),
                "language": kwargs.get("language"),
                "prompt": kwargs.get("prompt"),
            }
        )
        next_item = self._responses.pop(0)
        if isinstance(next_item, Exception):
            raise next_item
        return next_item


class _FakeAudioAPI:
    def __init__(self, transcriptions: _FakeTranscriptionsAPI) -> None:
        self.transcriptions = transcriptions


class _FakeClient:
    def __init__(self, responses: list[object]) -> None:
        self.audio = _FakeAudioAPI(_FakeTranscriptionsAPI(responses))


class OpenAITranscriptionAdapterTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.audio_path = Path(self._tmp.name) / "meeting_chunk_600_run1.mp3"
        self.audio_path.write_bytes(b"ID3")

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_retries_transient_failures_and_returns_text(self) -> None:
        client = _FakeClient([RuntimeError("transient"), {"text": "  hello world \n", "language": "en"}])
        adapter = OpenAITranscriptionAdapter(client, model="whisper-1", language="en", max_retries=2)

        text = adapter.transcribe(self.audio_path)

        self.assertEqual(text, "hello world")
        calls = client.audio.transcriptions.calls
        self.assertEqual(len(calls), 2)
        self.assertEqual(calls[0]["filename"], "meeting_chunk_600_run1.mp3")
        self.assertEqual(calls[0]["model"], "whisper-1")
        self.assertEqual(calls[0]["response_format"], "json")
        self.assertEqual(calls[0]["language"], "en")
        self.assertEqual(calls[0]["prompt"], DEFAULT_SPEAKER_PROMPT)

    def test_accepts_sdk_response_objects(self) -> None:
        client = _FakeClient([_Obj(text="from sdk", duration=12.5)])
        adapter = OpenAITranscriptionAdapter(client, prompt=None)

        self.assertEqual(adapter.transcribe(self.audio_path), "from sdk")
        self.assertIsNone(client.audio.transcriptions.calls[0]["prompt"])

    def test_raises_after_retries_exhausted(self) -> None:
        client = _FakeClient([RuntimeError("down"), RuntimeError("still down")])
        adapter = OpenAITranscriptionAdapter(client, model="whisper-1", max_retries=1)

        with self.assertRaises(ProviderRetryExhaustedError) as ctx:
            adapter.transcribe(self.audio_path)

        self.assertIsInstance(ctx.exception, TranscriptionError)
        self.assertEqual(len(client.audio.transcriptions.calls), 2)

    def test_malformed_response_is_not_retried(self) -> None:
        client = _FakeClient([{"segments": []}, {"text": "never reached"}])
        adapter = OpenAITranscriptionAdapter(client, max_retries=3)

        with self.assertRaises(ProviderResponseError):
            adapter.transcribe(self.audio_path)

        self.assertEqual(len(client.audio.transcriptions.calls), 1)

    def test_constructor_validation(self) -> None:
        with self.assertRaises(ValueError):
            OpenAITranscriptionAdapter(_FakeClient([]), model="")
        with self.assertRaises(ValueError):
            OpenAITranscriptionAdapter(_FakeClient([]), max_retries=-1)


class ParseTranscriptionResponseTests(unittest.TestCase):
    def test_plain_string_response(self) -> None:
        self.assertEqual(parse_transcription_response("plain text").text, "plain text")

    def test_rejects_wrong_shapes(self) -> None:
        for response in ({"text": 42}, {"text": "   "}, None, _Obj(language="en")):
            with self.subTest(response=response):
                with self.assertRaises(ProviderResponseError):
                    parse_transcription_response(response)

    def test_keeps_optional_metadata(self) -> None:
        parsed = parse_transcription_response({"text": "hi", "language": "en", "duration": 3.5, "extra": 1})

        self.assertEqual(parsed.language, "en")
        self.assertEqual(parsed.duration, 3.5)


if __name__ == "__main__":
    unittest.main()
