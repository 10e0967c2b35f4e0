from __future__ import annotations

from pathlib import Path

from notescribe.contracts.artifacts import ChunkSpec
from notescribe.pipeline.io import write_text_file


def chunk_artifact_name(spec: ChunkSpec) -> str:
    return f"transcription_chunk_{spec.index + 1:02d}.md"


def render_chunk_artifact(spec: ChunkSpec, text: str) -> str:
    return (
        f"# Transcription Chunk {spec.index + 1}\n\n"
        f"**Time Range:** {spec.start_min:.1f} - {spec.end_min:.1f} minutes\n\n"
        f"{text}\n"
    )


def write_chunk_artifact(artifact_dir: Path, spec: ChunkSpec, text: str) -> Path:
    """Persist one chunk transcript as Markdown. Raises OSError on failure."""
    path = Path(artifact_dir) / chunk_artifact_name(spec)
    write_text_file(path, render_chunk_artifact(spec, text))
    return path


__all__ = ["chunk_artifact_name", "render_chunk_artifact", "write_chunk_artifact"]
