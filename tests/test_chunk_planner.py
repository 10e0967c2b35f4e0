from __future__ import annotations

import math
from pathlib import Path
import unittest

from notescribe.components.chunking import DEFAULT_CHUNK_SECONDS, plan_chunks, segment_path
from notescribe.contracts.artifacts import ChunkSpec
from notescribe.contracts.errors import InputValidationError


class PlanChunksTests(unittest.TestCase):
    def test_twenty_five_minutes_in_ten_minute_chunks(self) -> None:
        plan = plan_chunks(1500, 600)

        self.assertEqual(
            list(plan),
            [
                ChunkSpec(index=0, start_s=0, end_s=600),
                ChunkSpec(index=1, start_s=600, end_s=1200),
                ChunkSpec(index=2, start_s=1200, end_s=1500),
            ],
        )
        self.assertEqual(plan.total_s, 1500)
        self.assertEqual(plan.chunk_seconds, 600)
        self.assertEqual(plan[2].duration_s, 300)

    def test_plan_covers_range_exactly_once(self) -> None:
        for total in (1, 59, 60, 61, 599, 600, 601, 1799, 3600, 7201):
            for chunk in (1, 7, 60, 600):
                with self.subTest(total=total, chunk=chunk):
                    plan = plan_chunks(total, chunk)
                    self.assertEqual(len(plan), math.ceil(total / chunk))
                    self.assertEqual(plan[0].start_s, 0)
                    self.assertEqual(plan[len(plan) - 1].end_s, total)
                    for previous, current in zip(plan.specs, plan.specs[1:]):
                        self.assertEqual(previous.end_s, current.start_s)
                    self.assertEqual([spec.index for spec in plan], list(range(len(plan))))
                    self.assertTrue(all(0 < spec.duration_s <= chunk for spec in plan))

    def test_short_file_is_a_single_chunk(self) -> None:
        for total in (1, 599, 600):
            with self.subTest(total=total):
                plan = plan_chunks(total, 600)
                self.assertTrue(plan.is_single)
                self.assertEqual(plan[0], ChunkSpec(index=0, start_s=0, end_s=total))

    def test_default_chunk_is_ten_minutes(self) -> None:
        self.assertEqual(DEFAULT_CHUNK_SECONDS, 600)
        self.assertEqual(len(plan_chunks(3600)), 6)

    def test_rejects_empty_duration_and_bad_chunk_length(self) -> None:
        with self.assertRaises(InputValidationError):
            plan_chunks(0, 600)
        with self.assertRaises(InputValidationError):
            plan_chunks(100, 0)
        with self.assertRaises(InputValidationError):
            plan_chunks(100, -5)

    def test_plan_is_immutable(self) -> None:
        plan = plan_chunks(1200, 600)
        with self.assertRaises(AttributeError):
            plan.specs = ()  # type: ignore[misc]
        self.assertIsInstance(plan.specs, tuple)


class SegmentPathTests(unittest.TestCase):
    def test_path_encodes_start_offset_and_run_token(self) -> None:
        spec = ChunkSpec(index=1, start_s=600, end_s=1200)

        path = segment_path(Path("/audio/meeting.wav"), spec, run_token="abc123")

        self.assertEqual(path, Path("/audio/meeting_chunk_600_abc123.mp3"))

    def test_work_dir_and_tokens_keep_concurrent_runs_apart(self) -> None:
        spec = ChunkSpec(index=0, start_s=0, end_s=600)

        first = segment_path(Path("/audio/a.mp3"), spec, run_token="run1", work_dir=Path("/tmp/work"))
        second = segment_path(Path("/audio/a.mp3"), spec, run_token="run2", work_dir=Path("/tmp/work"))

        self.assertEqual(first.parent, Path("/tmp/work"))
        self.assertNotEqual(first, second)


if __name__ == "__main__":
    unittest.main()
