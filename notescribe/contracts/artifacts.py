from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from notescribe.adapters.ffmpeg import DurationProber


@dataclass(slots=True)
class AudioSource:
    """A playable audio file; the duration is probed once and then cached."""

    path: Path
    _duration_s: int | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        self.path = Path(self.path).absolute()

    @property
    def duration_s(self) -> int | None:
        return self._duration_s

    def resolve_duration(self, prober: DurationProber) -> int:
        if self._duration_s is None:
            self._duration_s = prober.probe_duration(self.path)
        return self._duration_s


@dataclass(frozen=True, slots=True)
class ChunkSpec:
    index: int
    start_s: int
    end_s: int

    @property
    def duration_s(self) -> int:
        return self.end_s - self.start_s

    @property
    def start_min(self) -> float:
        return self.start_s / 60.0

    @property
    def end_min(self) -> float:
        return self.end_s / 60.0


@dataclass(frozen=True, slots=True)
class ChunkPlan:
    total_s: int
    chunk_seconds: int
    specs: tuple[ChunkSpec, ...]

    def __len__(self) -> int:
        return len(self.specs)

    def __iter__(self):
        return iter(self.specs)

    def __getitem__(self, index: int) -> ChunkSpec:
        return self.specs[index]

    @property
    def is_single(self) -> bool:
        return len(self.specs) == 1


@dataclass(frozen=True, slots=True)
class ChunkResult:
    index: int
    text: str
    artifact_path: Path | None = None


@dataclass(frozen=True, slots=True)
class ArtifactWriteWarning:
    """Non-fatal failure to persist one chunk transcript file."""

    index: int
    path: Path
    message: str


@dataclass(frozen=True, slots=True)
class TranscriptionOutcome:
    text: str
    artifact_paths: list[Path] = field(default_factory=list)
    chunk_count: int = 1
    duration_s: int | None = None
    warnings: list[ArtifactWriteWarning] = field(default_factory=list)

    @property
    def chunked(self) -> bool:
        return self.chunk_count > 1
