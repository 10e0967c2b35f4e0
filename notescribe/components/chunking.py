from __future__ import annotations

from pathlib import Path

from notescribe.contracts.artifacts import ChunkPlan, ChunkSpec
from notescribe.contracts.errors import InputValidationError


# Ten minutes of 128 kbps mono MP3 is ~9.6 MB, well under the 25 MB upload cap
# of the hosted transcription endpoints.
DEFAULT_CHUNK_SECONDS = 10 * 60


def _validate_chunk_seconds(chunk_seconds: int) -> None:
    if chunk_seconds <= 0:
        raise InputValidationError("chunk_seconds must be > 0")


def _validate_total_seconds(total_seconds: int) -> None:
    if total_seconds <= 0:
        raise InputValidationError("total_seconds must be > 0 to plan chunks")


def plan_chunks(total_seconds: int, chunk_seconds: int = DEFAULT_CHUNK_SECONDS) -> ChunkPlan:
    """Split [0, total_seconds) into contiguous ranges of at most chunk_seconds."""
    _validate_total_seconds(total_seconds)
    _validate_chunk_seconds(chunk_seconds)

    count = -(-total_seconds // chunk_seconds)
    specs = []
    for index in range(count):
        start_s = index * chunk_seconds
        end_s = min(start_s + chunk_seconds, total_seconds)
        specs.append(ChunkSpec(index=index, start_s=start_s, end_s=end_s))

    return ChunkPlan(total_s=total_seconds, chunk_seconds=chunk_seconds, specs=tuple(specs))


def segment_path(
    source_path: Path,
    spec: ChunkSpec,
    *,
    run_token: str,
    work_dir: Path | None = None,
    extension: str = ".mp3",
) -> Path:
    """Temporary segment location: source stem, start offset and a per-run token."""
    source_path = Path(source_path)
    directory = Path(work_dir) if work_dir is not None else source_path.parent
    return directory / f"{source_path.stem}_chunk_{spec.start_s}_{run_token}{extension}"


__all__ = ["DEFAULT_CHUNK_SECONDS", "plan_chunks", "segment_path"]
