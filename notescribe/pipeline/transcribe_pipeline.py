from __future__ import annotations

import logging
import traceback as tb
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Literal, Protocol
from uuid import uuid4

from notescribe.adapters.ffmpeg import DurationProber, SegmentExtractor
from notescribe.adapters.transcription import TranscriptionProvider
from notescribe.components.chunking import DEFAULT_CHUNK_SECONDS
from notescribe.components.transcription import CancelSignal, ProgressCallback, transcribe_chunked
from notescribe.contracts.artifacts import AudioSource, TranscriptionOutcome
from notescribe.contracts.errors import InputValidationError, PipelineError
from notescribe.contracts.manifest import Manifest, StepRecord
from notescribe.pipeline.io import build_pipeline_paths, manifest_path_ref, persist_manifest, write_text_file
from notescribe.utils.hashing import sha256_file


OutputFormat = Literal["text", "markdown"]

SUPPORTED_AUDIO_EXTENSIONS = frozenset({".mp3", ".wav", ".m4a", ".ogg", ".flac"})

logger = logging.getLogger(__name__)


class AudioConverter(Protocol):
    def convert(self, input_path: Path, output_path: Path | None = None) -> Path:
        """Re-encode input_path to the transcription profile and return the converted path."""


@dataclass(frozen=True, slots=True)
class PipelineConfig:
    output_dir: Path
    prober: DurationProber
    extractor: SegmentExtractor
    transcription_provider: TranscriptionProvider
    chunk_seconds: int = DEFAULT_CHUNK_SECONDS
    converter: AudioConverter | None = None
    save_chunks: bool = False
    output_format: OutputFormat = "text"
    provider_name: str | None = None
    model: str | None = None
    include_error_traceback: bool = False
    run_id: str | None = None
    on_progress: ProgressCallback | None = None
    cancel_event: CancelSignal | None = None


def format_transcript(
    text: str,
    *,
    source_path: Path,
    output_format: OutputFormat,
    generated_at: datetime | None = None,
) -> str:
    if output_format == "text":
        return text.rstrip() + "\n"
    if output_format != "markdown":
        raise InputValidationError(f"invalid format: {output_format}. Must be 'text' or 'markdown'")
    generated_at = generated_at or datetime.now()
    return (
        f"# Transcription: {source_path.stem}\n\n"
        f"**Source File:** {source_path}\n"
        f"**Generated:** {generated_at:%Y-%m-%d %H:%M:%S}\n\n"
        f"## Content\n\n"
        f"{text.rstrip()}\n"
    )


def run(input_path: Path, config: PipelineConfig) -> Manifest:
    input_path = Path(input_path)
    paths = build_pipeline_paths(config.output_dir)
    manifest = Manifest(run_id=config.run_id or uuid4().hex)

    audio_path: Path = input_path
    outcome: TranscriptionOutcome | None = None

    def fail_step(step: StepRecord, exc: Exception, *, step_context: dict[str, Any] | None = None) -> None:
        error_context = {
            "step": step.name,
            "input_path": str(input_path),
            "run_dir": str(paths.run_dir),
            "step_context": _json_safe(step_context or {}),
        }
        for attr in ("index", "start_s", "end_s", "stage", "next_index"):
            if hasattr(exc, attr):
                error_context[attr] = getattr(exc, attr)
        error_payload: dict[str, Any] = {
            "type": type(exc).__name__,
            "message": str(exc),
            "context": error_context,
        }
        if config.include_error_traceback:
            error_payload["traceback"] = "".join(tb.format_exception(type(exc), exc, exc.__traceback__))

        step.finish(
            status="failed",
            error=error_payload,
            error_type=type(exc).__name__,
            meta={"context": _json_safe(step_context or {})},
        )
        manifest.errors.append(f"{step.name}: {type(exc).__name__}: {exc}")
        logger.error("step '%s' failed: %s", step.name, exc)
        try:
            persist_manifest(manifest, paths.manifest_path)
        except OSError as persist_exc:
            logger.warning("could not persist manifest to %s: %s", paths.manifest_path, persist_exc)

        if isinstance(exc, PipelineError):
            raise exc
        raise PipelineError(f"pipeline failed at step '{step.name}': {exc}") from exc

    def complete_step(step: StepRecord, *, step_context: dict[str, Any] | None = None, artifacts: dict[str, Any] | None = None) -> None:
        meta: dict[str, Any] = {}
        if step_context:
            meta["context"] = _json_safe(step_context)
        if artifacts:
            meta["artifacts"] = _json_safe(artifacts)
        step.finish(status="success", meta=meta or None)
        persist_manifest(manifest, paths.manifest_path)

    def skip_step(name: str, *, reason: str) -> None:
        step = manifest.ensure_step(name)
        step.finish(status="skipped", meta={"reason": reason})
        persist_manifest(manifest, paths.manifest_path)

    def start_step(name: str, *, step_context: dict[str, Any] | None = None) -> StepRecord:
        step = manifest.ensure_step(name)
        step.start()
        if step_context:
            step.meta["context"] = _json_safe(step_context)
        logger.debug("starting step '%s'", name)
        return step

    # 1. validate
    validate_context = {"output_dir": str(paths.run_dir)}
    step = start_step("validate", step_context=validate_context)
    try:
        if not input_path.exists():
            raise InputValidationError(f"file does not exist: {input_path}")
        if not input_path.is_file():
            raise InputValidationError(f"input is not a file: {input_path}")
        if input_path.suffix.lower() not in SUPPORTED_AUDIO_EXTENSIONS:
            raise InputValidationError(f"unsupported audio file format: {input_path}")
        if paths.run_dir.exists() and not paths.run_dir.is_dir():
            raise InputValidationError(f"output_dir is not a directory: {paths.run_dir}")
        if config.output_format not in ("text", "markdown"):
            raise InputValidationError(f"invalid format: {config.output_format}. Must be 'text' or 'markdown'")

        paths.run_dir.mkdir(parents=True, exist_ok=True)
        manifest.artifacts.input_path = str(input_path)
        manifest.input_sha256 = sha256_file(input_path)
        manifest.artifacts.input_sha256 = manifest.input_sha256

        complete_step(
            step,
            step_context=validate_context,
            artifacts={
                "input_path": manifest.artifacts.input_path,
                "input_sha256": manifest.artifacts.input_sha256,
            },
        )
    except Exception as exc:
        fail_step(step, exc, step_context=validate_context)

    # 2. convert
    if config.converter is None:
        skip_step("convert", reason="no converter configured")
    else:
        convert_context = {
            "converter": type(config.converter).__name__,
            "output_path": str(paths.converted_audio_path),
        }
        step = start_step("convert", step_context=convert_context)
        try:
            audio_path = config.converter.convert(input_path, paths.converted_audio_path)
            complete_step(
                step,
                step_context=convert_context,
                artifacts={"converted_audio_path": manifest_path_ref(audio_path, base_dir=paths.run_dir)},
            )
        except Exception as exc:
            fail_step(step, exc, step_context=convert_context)

    # 3. transcribe
    transcribe_context = {
        "provider": config.provider_name or type(config.transcription_provider).__name__,
        "model": config.model,
        "chunk_seconds": config.chunk_seconds,
        "save_chunks": config.save_chunks,
    }
    step = start_step("transcribe", step_context=transcribe_context)
    try:
        outcome = transcribe_chunked(
            AudioSource(audio_path),
            config.transcription_provider,
            prober=config.prober,
            extractor=config.extractor,
            chunk_seconds=config.chunk_seconds,
            artifact_dir=paths.chunks_dir if config.save_chunks else None,
            work_dir=paths.work_dir,
            run_token=manifest.run_id,
            on_progress=config.on_progress,
            cancel_event=config.cancel_event,
        )
        if not outcome.text:
            raise PipelineError("transcription produced an empty transcript")

        manifest.artifacts.input_duration_s = outcome.duration_s
        manifest.artifacts.chunk_seconds = config.chunk_seconds
        manifest.artifacts.chunk_count = outcome.chunk_count
        manifest.artifacts.transcript_provider = transcribe_context["provider"]
        manifest.artifacts.transcript_model = config.model
        if outcome.artifact_paths:
            manifest.artifacts.chunks_dir = manifest_path_ref(paths.chunks_dir, base_dir=paths.run_dir)
            manifest.artifacts.chunk_transcript_paths = [
                manifest_path_ref(path, base_dir=paths.run_dir) for path in outcome.artifact_paths
            ]
        for warning in outcome.warnings:
            message = f"chunk {warning.index + 1} transcription not saved: {warning.message}"
            step.warnings.append(message)
            manifest.warnings.append(message)

        complete_step(
            step,
            step_context=transcribe_context,
            artifacts={
                "input_duration_s": manifest.artifacts.input_duration_s,
                "chunk_count": manifest.artifacts.chunk_count,
                "chunk_transcript_paths": manifest.artifacts.chunk_transcript_paths,
            },
        )
    except Exception as exc:
        fail_step(step, exc, step_context=transcribe_context)
    finally:
        _remove_empty_dir(paths.work_dir)

    # 4. write outputs
    transcript_path = paths.transcript_path(config.output_format)
    write_context = {"transcript_path": str(transcript_path), "format": config.output_format}
    step = start_step("write_outputs", step_context=write_context)
    try:
        if outcome is None:
            raise PipelineError("write_outputs requires a transcription outcome")

        rendered = format_transcript(outcome.text, source_path=input_path, output_format=config.output_format)
        write_text_file(transcript_path, rendered)
        manifest.artifacts.transcript_path = manifest_path_ref(transcript_path, base_dir=paths.run_dir)
        manifest.artifacts.transcript_sha256 = sha256_file(transcript_path)
        manifest.artifacts.transcript_format = config.output_format
        manifest.validate_artifact_refs(
            required=["input_path", "input_sha256", "transcript_path", "transcript_sha256"],
            optional=["chunks_dir", "chunk_transcript_paths"],
        )

        complete_step(
            step,
            step_context=write_context,
            artifacts={
                "transcript_path": manifest.artifacts.transcript_path,
                "transcript_sha256": manifest.artifacts.transcript_sha256,
            },
        )
    except Exception as exc:
        fail_step(step, exc, step_context=write_context)

    return manifest


def _remove_empty_dir(path: Path) -> None:
    try:
        path.rmdir()
    except OSError:
        pass


def _json_safe(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, dict):
        return {str(k): _json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_json_safe(v) for v in value]
    return repr(value)


__all__ = [
    "AudioConverter",
    "OutputFormat",
    "PipelineConfig",
    "SUPPORTED_AUDIO_EXTENSIONS",
    "format_transcript",
    "run",
]
