from __future__ import annotations


class PipelineError(Exception):
    """Raised by the pipeline entrypoint for user-facing failures."""


class ContractError(PipelineError):
    """Raised when manifest/contracts are invalid."""


class ComponentError(Exception):
    """Base exception for component-level failures."""


class InputValidationError(ComponentError):
    """Raised when an input path or config is invalid."""


class FfmpegError(ComponentError):
    """Raised when ffmpeg/ffprobe operations fail."""


class DurationUnavailableError(FfmpegError):
    """Raised when the play length of an audio file cannot be determined."""


class TranscriptionError(ComponentError):
    """Raised when transcription provider calls fail."""


class ChunkError(ComponentError):
    """Base for failures tied to one chunk of a chunked run."""

    stage = "chunk"

    def __init__(self, message: str, *, index: int, start_s: int, end_s: int) -> None:
        super().__init__(message)
        self.index = index
        self.start_s = start_s
        self.end_s = end_s

    def __str__(self) -> str:
        base = super().__str__()
        return (
            f"{self.stage} failed for chunk {self.index} "
            f"({self.start_s}s-{self.end_s}s): {base}"
        )


class ExtractionFailedError(ChunkError):
    """Raised when a chunk's audio segment could not be extracted."""

    stage = "extract"


class ChunkTranscriptionFailedError(ChunkError, TranscriptionError):
    """Raised when the provider call for a chunk failed."""

    stage = "transcribe"


class TranscriptionCancelledError(ComponentError):
    """Raised when a chunked run is cancelled between chunks."""

    def __init__(self, message: str, *, next_index: int) -> None:
        super().__init__(message)
        self.next_index = next_index


class ProviderError(TranscriptionError):
    """Base for provider/API failures raised inside provider adapters."""


class ProviderResponseError(ProviderError):
    """Raised when a provider returns an unexpected response shape."""


class ProviderRetryExhaustedError(ProviderError):
    """Raised when adapter-managed provider retries are exhausted."""
