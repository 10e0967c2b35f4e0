from __future__ import annotations

from .ffmpeg import (
    DEFAULT_PROFILE,
    DurationProber,
    EncodingProfile,
    FfmpegCli,
    SegmentExtractor,
    build_ffmpeg_convert_cmd,
    build_ffmpeg_segment_cmd,
    build_ffprobe_duration_cmd,
)
from .openai_transcription import OpenAIClientLike, OpenAITranscriptionAdapter
from .transcription import TranscriptionProvider

__all__ = [
    "DEFAULT_PROFILE",
    "DurationProber",
    "EncodingProfile",
    "FfmpegCli",
    "SegmentExtractor",
    "build_ffmpeg_convert_cmd",
    "build_ffmpeg_segment_cmd",
    "build_ffprobe_duration_cmd",
    "TranscriptionProvider",
    "OpenAIClientLike",
    "OpenAITranscriptionAdapter",
]
