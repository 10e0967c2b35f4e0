from .artifacts import (
    ArtifactWriteWarning,
    AudioSource,
    ChunkPlan,
    ChunkResult,
    ChunkSpec,
    TranscriptionOutcome,
)
from .errors import (
    ChunkError,
    ChunkTranscriptionFailedError,
    ComponentError,
    ContractError,
    DurationUnavailableError,
    ExtractionFailedError,
    FfmpegError,
    InputValidationError,
    PipelineError,
    ProviderError,
    ProviderResponseError,
    ProviderRetryExhaustedError,
    TranscriptionCancelledError,
    TranscriptionError,
)
from .manifest import ArtifactRefs, Manifest, StepRecord

__all__ = [
    "AudioSource",
    "ChunkSpec",
    "ChunkPlan",
    "ChunkResult",
    "ArtifactWriteWarning",
    "TranscriptionOutcome",
    "ArtifactRefs",
    "Manifest",
    "StepRecord",
    "PipelineError",
    "ContractError",
    "ComponentError",
    "InputValidationError",
    "FfmpegError",
    "DurationUnavailableError",
    "TranscriptionError",
    "ChunkError",
    "ExtractionFailedError",
    "ChunkTranscriptionFailedError",
    "TranscriptionCancelledError",
    "ProviderError",
    "ProviderResponseError",
    "ProviderRetryExhaustedError",
]
