import unittest

from notescribe.contracts.manifest import StepRecord


class StepRecordTests(unittest.TestCase):
    def test_duration_calculation(self) -> None:
        step = StepRecord(name="transcribe")
        step.start(at_s=10.0)
        step.finish(status="success", at_s=10.125, meta={"chunk_count": 3})

        self.assertEqual(step.duration_ms, 125)
        self.assertEqual(step.attempts, 1)
        self.assertEqual(step.status, "success")
        self.assertEqual(step.meta["chunk_count"], 3)

    def test_duration_non_negative(self) -> None:
        step = StepRecord(name="transcribe", started_at_s=5.0, ended_at_s=4.0)
        self.assertEqual(step.compute_duration_ms(), 0)

    def test_skipped_step_has_no_duration(self) -> None:
        step = StepRecord(name="convert")
        step.finish(status="skipped", at_s=3.0)

        self.assertIsNone(step.duration_ms)
        self.assertEqual(step.attempts, 0)


if __name__ == "__main__":
    unittest.main()
