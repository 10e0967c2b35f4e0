from __future__ import annotations

import json
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from notescribe.contracts.manifest import Manifest


@dataclass(frozen=True, slots=True)
class PipelinePaths:
    run_dir: Path
    manifest_path: Path
    converted_audio_path: Path
    chunks_dir: Path
    work_dir: Path
    transcript_text_path: Path
    transcript_markdown_path: Path

    def transcript_path(self, output_format: str) -> Path:
        if output_format == "markdown":
            return self.transcript_markdown_path
        return self.transcript_text_path


def build_pipeline_paths(
    run_dir: Path,
    *,
    manifest_filename: str = "manifest.json",
    converted_audio_filename: str = "audio.mp3",
    chunks_dirname: str = "chunks",
    work_dirname: str = ".work",
    transcript_text_filename: str = "transcript.txt",
    transcript_markdown_filename: str = "transcript.md",
) -> PipelinePaths:
    run_dir = Path(run_dir)
    return PipelinePaths(
        run_dir=run_dir,
        manifest_path=run_dir / manifest_filename,
        converted_audio_path=run_dir / converted_audio_filename,
        chunks_dir=run_dir / chunks_dirname,
        work_dir=run_dir / work_dirname,
        transcript_text_path=run_dir / transcript_text_filename,
        transcript_markdown_path=run_dir / transcript_markdown_filename,
    )


def manifest_path_ref(path: Path, *, base_dir: Path) -> str:
    path = Path(path)
    base_dir = Path(base_dir)
    try:
        return path.relative_to(base_dir).as_posix()
    except ValueError:
        return str(path)


def write_text_file(path: Path, text: str, *, encoding: str = "utf-8") -> None:
    _atomic_write_bytes(path, text.encode(encoding))


def write_json_file(path: Path, data: Any) -> None:
    payload = json.dumps(data, indent=2, sort_keys=True, default=str).encode("utf-8")
    _atomic_write_bytes(path, payload)


def persist_manifest(manifest: Manifest, path: Path) -> None:
    manifest.touch()
    write_json_file(path, manifest.to_dict())


def _atomic_write_bytes(path: Path, payload: bytes) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(prefix=f"{path.name}.", suffix=".tmp", dir=path.parent)
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as tmp_file:
            tmp_file.write(payload)
            tmp_file.flush()
            try:
                os.fsync(tmp_file.fileno())
            except OSError:
                # fsync is unsupported on some filesystems.
                pass
        os.replace(tmp_path, path)
    finally:
        try:
            tmp_path.unlink(missing_ok=True)
        except OSError:
            pass


__all__ = [
    "PipelinePaths",
    "build_pipeline_paths",
    "manifest_path_ref",
    "persist_manifest",
    "write_json_file",
    "write_text_file",
]
