from __future__ import annotations

from pathlib import Path
from typing import Protocol


class TranscriptionProvider(Protocol):
    """Provider adapter boundary: one audio file in, its transcript text out."""

    def transcribe(self, audio_path: Path) -> str:
        """Return the spoken-word transcript of the audio file at audio_path."""


__all__ = ["TranscriptionProvider"]
