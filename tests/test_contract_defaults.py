from pathlib import Path
import unittest

from notescribe.contracts.artifacts import (
    AudioSource,
    ChunkResult,
    ChunkSpec,
    TranscriptionOutcome,
)
from notescribe.contracts.errors import (
    ChunkError,
    ChunkTranscriptionFailedError,
    ComponentError,
    DurationUnavailableError,
    ExtractionFailedError,
    FfmpegError,
    TranscriptionError,
)


class ArtifactDefaultsTests(unittest.TestCase):
    def test_artifact_construction_defaults(self) -> None:
        source = AudioSource(Path("x.wav"))
        self.assertTrue(source.path.is_absolute())
        self.assertIsNone(source.duration_s)

        spec = ChunkSpec(index=2, start_s=1200, end_s=1500)
        self.assertEqual(spec.duration_s, 300)
        self.assertEqual(spec.start_min, 20.0)
        self.assertEqual(spec.end_min, 25.0)

        result = ChunkResult(index=0, text="hi")
        self.assertEqual(result.text, "hi")
        self.assertIsNone(result.artifact_path)

        outcome = TranscriptionOutcome(text="hi")
        self.assertEqual(outcome.artifact_paths, [])
        self.assertEqual(outcome.warnings, [])
        self.assertEqual(outcome.chunk_count, 1)
        self.assertFalse(outcome.chunked)
        self.assertIsNone(outcome.duration_s)


class ErrorHierarchyTests(unittest.TestCase):
    def test_chunk_errors_carry_range_and_stage(self) -> None:
        err = ExtractionFailedError("bad frame", index=4, start_s=2400, end_s=3000)

        self.assertIsInstance(err, ChunkError)
        self.assertEqual(err.stage, "extract")
        self.assertEqual(str(err), "extract failed for chunk 4 (2400s-3000s): bad frame")

    def test_chunk_transcription_failure_is_a_transcription_error(self) -> None:
        err = ChunkTranscriptionFailedError("429", index=1, start_s=600, end_s=1200)

        self.assertIsInstance(err, TranscriptionError)
        self.assertIsInstance(err, ChunkError)
        self.assertEqual(err.stage, "transcribe")

    def test_duration_unavailable_is_an_ffmpeg_error(self) -> None:
        self.assertTrue(issubclass(DurationUnavailableError, FfmpegError))
        self.assertTrue(issubclass(FfmpegError, ComponentError))


if __name__ == "__main__":
    unittest.main()
