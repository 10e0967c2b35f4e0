from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Protocol
from uuid import uuid4

from notescribe.adapters.ffmpeg import DurationProber, SegmentExtractor
from notescribe.adapters.transcription import TranscriptionProvider
from notescribe.components.chunk_artifacts import chunk_artifact_name, write_chunk_artifact
from notescribe.components.chunking import DEFAULT_CHUNK_SECONDS, plan_chunks, segment_path
from notescribe.contracts.artifacts import (
    ArtifactWriteWarning,
    AudioSource,
    ChunkResult,
    ChunkSpec,
    TranscriptionOutcome,
)
from notescribe.contracts.errors import (
    ChunkTranscriptionFailedError,
    ExtractionFailedError,
    InputValidationError,
    TranscriptionCancelledError,
)
from notescribe.utils.time import Timer


CHUNK_SEPARATOR = "\n\n"

logger = logging.getLogger(__name__)


class CancelSignal(Protocol):
    def is_set(self) -> bool: ...


@dataclass(frozen=True, slots=True)
class ChunkProgress:
    position: int
    total: int
    spec: ChunkSpec

    def describe(self) -> str:
        return (
            f"Transcribing chunk {self.position}/{self.total} "
            f"({self.spec.start_min:.1f}-{self.spec.end_min:.1f} minutes)"
        )


type ProgressCallback = Callable[[ChunkProgress], None]


def join_chunk_transcripts(results: list[ChunkResult]) -> str:
    """Concatenate chunk transcripts by chunk index, whatever order they arrived in."""
    ordered = sorted(results, key=lambda result: result.index)
    return CHUNK_SEPARATOR.join(result.text.strip() for result in ordered).strip()


def _require_text(result: object, spec: ChunkSpec) -> str:
    if not isinstance(result, str):
        raise ChunkTranscriptionFailedError(
            f"provider returned {type(result).__name__} instead of text",
            index=spec.index,
            start_s=spec.start_s,
            end_s=spec.end_s,
        )
    return result


def _remove_segment(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        logger.warning("could not remove temporary segment %s: %s", path, exc)
    else:
        logger.debug("removed temporary segment %s", path)


def _transcribe_whole_file(source: AudioSource, provider: TranscriptionProvider, total_s: int) -> TranscriptionOutcome:
    logger.info("%s is %ss long, transcribing in a single request", source.path.name, total_s)
    spec = ChunkSpec(index=0, start_s=0, end_s=total_s)
    try:
        result = provider.transcribe(source.path)
    except Exception as exc:
        raise ChunkTranscriptionFailedError(str(exc), index=0, start_s=0, end_s=total_s) from exc
    text = _require_text(result, spec)
    return TranscriptionOutcome(text=text.strip(), artifact_paths=[], chunk_count=1, duration_s=total_s)


def _transcribe_spec(
    source: AudioSource,
    spec: ChunkSpec,
    *,
    provider: TranscriptionProvider,
    extractor: SegmentExtractor,
    temp_path: Path,
) -> str:
    try:
        try:
            extractor.extract_segment(source.path, spec.start_s, spec.duration_s, temp_path)
        except Exception as exc:
            raise ExtractionFailedError(str(exc), index=spec.index, start_s=spec.start_s, end_s=spec.end_s) from exc
        try:
            result = provider.transcribe(temp_path)
        except Exception as exc:
            raise ChunkTranscriptionFailedError(
                str(exc), index=spec.index, start_s=spec.start_s, end_s=spec.end_s
            ) from exc
        return _require_text(result, spec)
    finally:
        _remove_segment(temp_path)


def transcribe_chunked(
    source: AudioSource,
    provider: TranscriptionProvider,
    *,
    prober: DurationProber,
    extractor: SegmentExtractor,
    chunk_seconds: int = DEFAULT_CHUNK_SECONDS,
    artifact_dir: Path | None = None,
    work_dir: Path | None = None,
    run_token: str | None = None,
    on_progress: ProgressCallback | None = None,
    cancel_event: CancelSignal | None = None,
    segment_extension: str = ".mp3",
) -> TranscriptionOutcome:
    """
    Transcribe an audio file of any length against a provider with a
    per-request duration limit.

    Files no longer than chunk_seconds go to the provider in one call. Longer
    files are split into sequential segments, each extracted to a temporary
    file, transcribed, and deleted before the next one starts. Any extraction
    or provider failure aborts the run; chunk transcripts already obtained are
    discarded. Failing to write a per-chunk artifact only adds a warning.
    """
    if chunk_seconds <= 0:
        raise InputValidationError("chunk_seconds must be > 0")

    total_s = source.resolve_duration(prober)
    if total_s <= chunk_seconds:
        return _transcribe_whole_file(source, provider, total_s)

    plan = plan_chunks(total_s, chunk_seconds)
    token = run_token or uuid4().hex[:12]
    if work_dir is not None:
        Path(work_dir).mkdir(parents=True, exist_ok=True)

    logger.info(
        "%s is %d minutes long, transcribing in %d chunks of %ss",
        source.path.name,
        total_s // 60,
        len(plan),
        chunk_seconds,
    )

    results: list[ChunkResult] = []
    artifact_paths: list[Path] = []
    warnings: list[ArtifactWriteWarning] = []

    for spec in plan:
        if cancel_event is not None and cancel_event.is_set():
            raise TranscriptionCancelledError(
                f"transcription cancelled before chunk {spec.index} of {len(plan)}",
                next_index=spec.index,
            )

        progress = ChunkProgress(position=spec.index + 1, total=len(plan), spec=spec)
        logger.info("%s", progress.describe())
        if on_progress is not None:
            on_progress(progress)

        temp_path = segment_path(
            source.path,
            spec,
            run_token=token,
            work_dir=work_dir,
            extension=segment_extension,
        )
        timer = Timer.start()
        text = _transcribe_spec(source, spec, provider=provider, extractor=extractor, temp_path=temp_path)
        logger.debug("chunk %d/%d transcribed in %.1fs", progress.position, progress.total, timer.elapsed_s())

        artifact_path: Path | None = None
        if artifact_dir is not None:
            try:
                artifact_path = write_chunk_artifact(artifact_dir, spec, text)
            except (OSError, UnicodeError) as exc:
                logger.warning("failed to save chunk %d transcription: %s", spec.index + 1, exc)
                warnings.append(
                    ArtifactWriteWarning(
                        index=spec.index,
                        path=Path(artifact_dir) / chunk_artifact_name(spec),
                        message=str(exc),
                    )
                )
            else:
                artifact_paths.append(artifact_path)

        results.append(ChunkResult(index=spec.index, text=text, artifact_path=artifact_path))

    return TranscriptionOutcome(
        text=join_chunk_transcripts(results),
        artifact_paths=artifact_paths,
        chunk_count=len(plan),
        duration_s=total_s,
        warnings=warnings,
    )


__all__ = [
    "CHUNK_SEPARATOR",
    "CancelSignal",
    "ChunkProgress",
    "ProgressCallback",
    "join_chunk_transcripts",
    "transcribe_chunked",
]
