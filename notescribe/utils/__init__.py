"""Small helpers shared by the pipeline: file hashing and wall-clock timing."""

from __future__ import annotations

from .hashing import sha256_file
from .time import Timer, now_unix_s

__all__ = [
    "sha256_file",
    "now_unix_s",
    "Timer",
]
