from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from notescribe.adapters.transcription import TranscriptionProvider
from notescribe.contracts.errors import ProviderResponseError, ProviderRetryExhaustedError


DEFAULT_TRANSCRIPTION_MODEL = "whisper-1"
DEFAULT_SPEAKER_PROMPT = (
    "The following audio contains multiple speakers. Please transcribe the entire audio "
    "and identify speakers as Speaker 1, Speaker 2, etc. when possible."
)

logger = logging.getLogger(__name__)


class _OpenAITranscriptionsAPI(Protocol):
    def create(self, **kwargs: Any) -> Any: ...


class _OpenAIAudioAPI(Protocol):
    transcriptions: _OpenAITranscriptionsAPI


class OpenAIClientLike(Protocol):
    audio: _OpenAIAudioAPI


class TranscriptionResponse(BaseModel):
    """Shape the adapter accepts from the transcriptions endpoint."""

    model_config = ConfigDict(extra="ignore", from_attributes=True)

    text: str
    language: str | None = None
    duration: float | None = None

    @field_validator("text")
    @classmethod
    def _strip_text(cls, value: str) -> str:
        return value.strip()


def parse_transcription_response(response: Any) -> TranscriptionResponse:
    if isinstance(response, str):
        response = {"text": response}
    try:
        if isinstance(response, dict):
            parsed = TranscriptionResponse.model_validate(response)
        else:
            parsed = TranscriptionResponse.model_validate(response, from_attributes=True)
    except ValidationError as exc:
        raise ProviderResponseError(f"unexpected OpenAI transcription response: {exc}") from exc
    if not parsed.text:
        raise ProviderResponseError("OpenAI transcription response missing text")
    return parsed


class OpenAITranscriptionAdapter(TranscriptionProvider):
    """OpenAI transcription provider with adapter-managed retries per file."""

    def __init__(
        self,
        client: OpenAIClientLike,
        *,
        model: str = DEFAULT_TRANSCRIPTION_MODEL,
        language: str | None = None,
        prompt: str | None = DEFAULT_SPEAKER_PROMPT,
        max_retries: int = 2,
    ) -> None:
        if not model:
            raise ValueError("model is required")
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        self._client = client
        self._model = model
        self._language = language
        self._prompt = prompt
        self._max_retries = max_retries

    @property
    def model(self) -> str:
        return self._model

    def transcribe(self, audio_path: Path) -> str:
        last_error: Exception | None = None
        attempts = self._max_retries + 1
        for attempt in range(1, attempts + 1):
            try:
                return self._transcribe_once(Path(audio_path))
            except ProviderResponseError:
                raise
            except Exception as exc:  # pragma: no cover - exact provider exceptions vary
                last_error = exc
                logger.warning(
                    "OpenAI transcription attempt %d/%d failed for %s: %s",
                    attempt,
                    attempts,
                    Path(audio_path).name,
                    exc,
                )
        message = f"OpenAI transcription failed for {audio_path} after {attempts} attempts"
        raise ProviderRetryExhaustedError(message) from last_error

    def _transcribe_once(self, audio_path: Path) -> str:
        request_kwargs: dict[str, Any] = {
            "model": self._model,
            "response_format": "json",
        }
        if self._language:
            request_kwargs["language"] = self._language
        if self._prompt:
            request_kwargs["prompt"] = self._prompt

        logger.debug("sending %s to OpenAI model %s", audio_path.name, self._model)
        with audio_path.open("rb") as fh:
            response = self._client.audio.transcriptions.create(file=fh, **request_kwargs)
        return parse_transcription_response(response).text


__all__ = [
    "DEFAULT_SPEAKER_PROMPT",
    "DEFAULT_TRANSCRIPTION_MODEL",
    "OpenAIClientLike",
    "OpenAITranscriptionAdapter",
    "TranscriptionResponse",
    "parse_transcription_response",
]
