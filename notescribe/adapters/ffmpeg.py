from __future__ import annotations

import logging
import math
import os
import shutil
import subprocess
from dataclasses import dataclass, field
from os import PathLike
from pathlib import Path
from typing import Callable, Mapping, Protocol, Sequence

from notescribe.contracts.errors import DurationUnavailableError, FfmpegError


type StrPath = str | PathLike[str]
type CommandRunner = Callable[[Sequence[str]], subprocess.CompletedProcess[str]]

FFMPEG_PATH_ENV_VAR = "FFMPEG_PATH"
FFPROBE_PATH_ENV_VAR = "FFPROBE_PATH"

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class EncodingProfile:
    """Encoding every transcription input is converted to, chunked or not."""

    codec: str = "libmp3lame"
    bitrate: str = "128k"
    sample_rate: int = 44100
    channels: int = 1
    extension: str = ".mp3"


DEFAULT_PROFILE = EncodingProfile()


def _path_str(value: StrPath) -> str:
    return str(Path(value))


def _require_positive_int(name: str, value: int) -> None:
    if value <= 0:
        raise ValueError(f"{name} must be > 0")


def _require_non_negative_int(name: str, value: int) -> None:
    if value < 0:
        raise ValueError(f"{name} must be >= 0")


def _profile_args(profile: EncodingProfile) -> list[str]:
    _require_positive_int("sample_rate", profile.sample_rate)
    _require_positive_int("channels", profile.channels)
    return [
        "-acodec",
        profile.codec,
        "-ab",
        profile.bitrate,
        "-ar",
        str(profile.sample_rate),
        "-ac",
        str(profile.channels),
    ]


def build_ffprobe_duration_cmd(input_path: StrPath, *, ffprobe: StrPath = "ffprobe") -> list[str]:
    return [
        _path_str(ffprobe),
        "-v",
        "error",
        "-show_entries",
        "format=duration",
        "-of",
        "default=noprint_wrappers=1:nokey=1",
        _path_str(input_path),
    ]


def build_ffmpeg_segment_cmd(
    input_path: StrPath,
    output_path: StrPath,
    start_s: int,
    duration_s: int,
    *,
    profile: EncodingProfile = DEFAULT_PROFILE,
    ffmpeg: StrPath = "ffmpeg",
) -> list[str]:
    """Build a deterministic ffmpeg command re-encoding one time range of the input."""
    _require_non_negative_int("start_s", start_s)
    _require_positive_int("duration_s", duration_s)

    return [
        _path_str(ffmpeg),
        "-y",
        "-i",
        _path_str(input_path),
        "-ss",
        str(start_s),
        "-t",
        str(duration_s),
        "-vn",
        *_profile_args(profile),
        _path_str(output_path),
    ]


def build_ffmpeg_convert_cmd(
    input_path: StrPath,
    output_path: StrPath,
    *,
    profile: EncodingProfile = DEFAULT_PROFILE,
    ffmpeg: StrPath = "ffmpeg",
) -> list[str]:
    """Build a deterministic ffmpeg command re-encoding a whole file to the profile."""
    return [
        _path_str(ffmpeg),
        "-y",
        "-i",
        _path_str(input_path),
        "-vn",
        *_profile_args(profile),
        _path_str(output_path),
    ]


def parse_ffprobe_duration(stdout: str) -> int:
    raw = stdout.strip()
    if not raw:
        raise DurationUnavailableError("ffprobe reported no duration")
    try:
        value = float(raw.splitlines()[0])
    except ValueError as exc:
        raise DurationUnavailableError(f"unparsable ffprobe duration: {raw!r}") from exc
    if not math.isfinite(value) or value < 0:
        raise DurationUnavailableError(f"invalid ffprobe duration: {raw!r}")
    return int(value)


class DurationProber(Protocol):
    def probe_duration(self, path: StrPath) -> int:
        """Return the play length of an audio file in whole seconds."""


class SegmentExtractor(Protocol):
    def extract_segment(self, source_path: StrPath, start_s: int, duration_s: int, output_path: StrPath) -> Path:
        """Write the [start_s, start_s + duration_s) range of source_path to output_path."""


def _run_subprocess(cmd: Sequence[str]) -> subprocess.CompletedProcess[str]:
    return subprocess.run(list(cmd), capture_output=True, text=True, check=False)


def resolve_tool(
    name: str,
    env_var: str,
    *,
    env: Mapping[str, str] | None = None,
    which: Callable[[str], str | None] | None = None,
) -> Path:
    effective_env: Mapping[str, str] = dict(os.environ) if env is None else env
    which = which or shutil.which

    env_override = effective_env.get(env_var)
    if env_override:
        override_path = Path(env_override)
        if override_path.is_file():
            return override_path
        raise FfmpegError(f"{env_var} is set but {name} was not found at: {override_path}")

    from_path = which(name)
    if from_path:
        return Path(from_path)

    raise FfmpegError(
        f"{name} not found. Install ffmpeg and add it to PATH, or set {env_var} to the executable path."
    )


@dataclass(frozen=True, slots=True)
class FfmpegCli:
    """Duration prober, segment extractor and converter backed by the ffmpeg tools."""

    profile: EncodingProfile = DEFAULT_PROFILE
    ffmpeg_executable: Path | None = None
    ffprobe_executable: Path | None = None
    env: Mapping[str, str] | None = None
    runner: CommandRunner = field(default=_run_subprocess)

    def check_dependencies(self) -> tuple[Path, Path]:
        return self._ffmpeg(), self._ffprobe()

    def probe_duration(self, path: StrPath) -> int:
        input_path = Path(path)
        if not input_path.is_file():
            raise DurationUnavailableError(f"audio file not found: {input_path}")
        try:
            cmd = build_ffprobe_duration_cmd(input_path, ffprobe=self._ffprobe())
        except FfmpegError as exc:
            raise DurationUnavailableError(str(exc)) from exc

        completed = self.runner(cmd)
        if completed.returncode != 0:
            message = completed.stderr.strip() or "ffprobe failed"
            raise DurationUnavailableError(f"could not probe {input_path}: {message}")
        duration_s = parse_ffprobe_duration(completed.stdout)
        logger.debug("probed %s: %ss", input_path, duration_s)
        return duration_s

    def extract_segment(self, source_path: StrPath, start_s: int, duration_s: int, output_path: StrPath) -> Path:
        output = Path(output_path)
        cmd = build_ffmpeg_segment_cmd(
            source_path,
            output,
            start_s,
            duration_s,
            profile=self.profile,
            ffmpeg=self._ffmpeg(),
        )
        self._run_or_raise(cmd, f"ffmpeg failed to extract segment at {start_s}s")
        if not output.is_file():
            raise FfmpegError(f"ffmpeg did not produce segment output: {output}")
        return output

    def convert(self, input_path: StrPath, output_path: StrPath | None = None) -> Path:
        source = Path(input_path)
        if source.suffix.lower() == self.profile.extension and output_path is None:
            return source
        output = Path(output_path) if output_path is not None else source.with_suffix(self.profile.extension)
        cmd = build_ffmpeg_convert_cmd(source, output, profile=self.profile, ffmpeg=self._ffmpeg())
        self._run_or_raise(cmd, "ffmpeg conversion failed")
        if not output.is_file():
            raise FfmpegError(f"ffmpeg did not produce converted audio: {output}")
        return output

    def _run_or_raise(self, cmd: Sequence[str], fallback_message: str) -> None:
        completed = self.runner(cmd)
        if completed.returncode == 0:
            return
        message = completed.stderr.strip() or completed.stdout.strip() or fallback_message
        raise FfmpegError(message)

    def _ffmpeg(self) -> Path:
        if self.ffmpeg_executable is not None:
            return self.ffmpeg_executable
        return resolve_tool("ffmpeg", FFMPEG_PATH_ENV_VAR, env=self.env)

    def _ffprobe(self) -> Path:
        if self.ffprobe_executable is not None:
            return self.ffprobe_executable
        return resolve_tool("ffprobe", FFPROBE_PATH_ENV_VAR, env=self.env)


__all__ = [
    "DEFAULT_PROFILE",
    "DurationProber",
    "EncodingProfile",
    "FFMPEG_PATH_ENV_VAR",
    "FFPROBE_PATH_ENV_VAR",
    "FfmpegCli",
    "SegmentExtractor",
    "build_ffmpeg_convert_cmd",
    "build_ffmpeg_segment_cmd",
    "build_ffprobe_duration_cmd",
    "parse_ffprobe_duration",
    "resolve_tool",
]
