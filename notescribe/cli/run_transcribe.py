from __future__ import annotations

import argparse
import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Sequence

from notescribe.adapters.ffmpeg import FfmpegCli
from notescribe.adapters.openai_transcription import (
    DEFAULT_SPEAKER_PROMPT,
    DEFAULT_TRANSCRIPTION_MODEL,
    OpenAITranscriptionAdapter,
)
from notescribe.components.chunking import DEFAULT_CHUNK_SECONDS
from notescribe.components.transcription import ChunkProgress
from notescribe.contracts.manifest import Manifest
from notescribe.pipeline.io import build_pipeline_paths
from notescribe.pipeline.transcribe_pipeline import PipelineConfig, run as run_pipeline


type Argv = Sequence[str]

MODEL_ENV_VAR = "NOTESCRIBE_TRANSCRIPTION_MODEL"


@dataclass(frozen=True, slots=True)
class CliRunResult:
    manifest_path: Path
    output_dir: Path
    transcript_path: Path | None = None
    chunk_file_count: int = 0


def _positive_int(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid int value: {value}") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError("must be > 0")
    return parsed


def _nonnegative_int(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid int value: {value}") from exc
    if parsed < 0:
        raise argparse.ArgumentTypeError("must be >= 0")
    return parsed


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=(
            "Transcribe an audio file (mp3, wav, m4a, ogg, flac). "
            "Files longer than --chunk-seconds are split and transcribed chunk by chunk."
        )
    )
    parser.add_argument("--input", dest="input_path", type=Path, required=True, help="Input audio file path.")
    parser.add_argument("--output-dir", type=Path, required=True, help="Output artifacts directory.")
    parser.add_argument("--provider", choices=["openai"], default="openai", help="Transcription provider.")
    parser.add_argument(
        "--model",
        default=os.environ.get(MODEL_ENV_VAR) or DEFAULT_TRANSCRIPTION_MODEL,
        help=f"Transcription model (default: ${MODEL_ENV_VAR} or {DEFAULT_TRANSCRIPTION_MODEL}).",
    )
    parser.add_argument(
        "--chunk-seconds",
        type=_positive_int,
        default=DEFAULT_CHUNK_SECONDS,
        help="Maximum audio length sent in one provider request.",
    )
    parser.add_argument("--language", default=None, help="Transcription language code (e.g. en).")
    parser.add_argument(
        "--transcription-prompt",
        default=DEFAULT_SPEAKER_PROMPT,
        help="Provider prompt for transcription (pass an empty string to disable).",
    )
    parser.add_argument(
        "--transcription-max-retries",
        type=_nonnegative_int,
        default=2,
        help="Provider retries per request (>= 0).",
    )
    parser.add_argument("--format", dest="output_format", choices=["text", "markdown"], default="text", help="Transcript file format.")
    parser.add_argument("--save-chunks", action="store_true", help="Save each chunk transcript to <output-dir>/chunks.")
    parser.add_argument("--convert", action="store_true", help="Re-encode the input to mono MP3 before transcribing.")
    parser.add_argument("--run-id", default=None, help="Optional deterministic run identifier.")
    parser.add_argument(
        "--include-error-traceback",
        action="store_true",
        help="Persist traceback details in manifest step errors.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    return parser


def parse_args(argv: Argv | None = None) -> argparse.Namespace:
    return build_parser().parse_args(list(argv) if argv is not None else None)


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def print_progress(progress: ChunkProgress) -> None:
    print(progress.describe(), file=sys.stderr, flush=True)


def build_pipeline_config(
    args: argparse.Namespace,
    *,
    ffmpeg: Any,
    transcription_provider: Any,
) -> PipelineConfig:
    return PipelineConfig(
        output_dir=Path(args.output_dir),
        prober=ffmpeg,
        extractor=ffmpeg,
        transcription_provider=transcription_provider,
        chunk_seconds=int(args.chunk_seconds),
        converter=ffmpeg if args.convert else None,
        save_chunks=bool(args.save_chunks),
        output_format=args.output_format,
        provider_name=args.provider,
        model=args.model,
        include_error_traceback=bool(args.include_error_traceback),
        run_id=args.run_id,
        on_progress=print_progress,
    )


def _load_openai_client() -> Any:
    try:
        from openai import OpenAI
    except ImportError as exc:  # pragma: no cover - depends on local runtime
        raise RuntimeError("The 'openai' package is required to use the CLI (pip install openai).") from exc
    return OpenAI()


def _build_runtime_dependencies(args: argparse.Namespace) -> dict[str, Any]:
    if args.provider != "openai":
        raise ValueError(f"unsupported provider: {args.provider}")

    ffmpeg = FfmpegCli()
    ffmpeg.check_dependencies()
    client = _load_openai_client()
    return {
        "ffmpeg": ffmpeg,
        "transcription_provider": OpenAITranscriptionAdapter(
            client,
            model=args.model,
            language=args.language,
            prompt=args.transcription_prompt or None,
            max_retries=int(args.transcription_max_retries),
        ),
    }


def run_from_args(args: argparse.Namespace) -> CliRunResult:
    deps = _build_runtime_dependencies(args)
    config = build_pipeline_config(args, **deps)
    manifest: Manifest = run_pipeline(Path(args.input_path), config)
    paths = build_pipeline_paths(Path(args.output_dir))
    return CliRunResult(
        manifest_path=paths.manifest_path,
        output_dir=paths.run_dir,
        transcript_path=paths.transcript_path(args.output_format),
        chunk_file_count=len(manifest.artifacts.chunk_transcript_paths),
    )


def main(argv: Argv | None = None) -> int:
    args = parse_args(argv)
    configure_logging(args.verbose)
    try:
        result = run_from_args(args)
    except Exception as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    if result.transcript_path is not None:
        print(f"transcript_path={result.transcript_path}")
    print(f"manifest_path={result.manifest_path}")
    print(f"output_dir={result.output_dir}")
    if result.chunk_file_count:
        print(f"chunk_files={result.chunk_file_count}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
