import unittest

from notescribe.contracts.errors import ContractError
from notescribe.contracts.manifest import Manifest


class ManifestValidationTests(unittest.TestCase):
    def test_required_vs_optional_artifact_validation(self) -> None:
        m = Manifest()
        m.artifacts.input_path = "input.m4a"

        m.validate_artifact_refs(required=["input_path"], optional=["chunks_dir"])

        with self.assertRaises(ContractError):
            m.validate_artifact_refs(required=["transcript_path"])

        with self.assertRaises(ContractError):
            m.validate_artifact_refs(required=["does_not_exist"])

    def test_empty_chunk_list_counts_as_missing(self) -> None:
        m = Manifest()

        with self.assertRaises(ContractError):
            m.validate_artifact_refs(required=["chunk_transcript_paths"])

        m.artifacts.chunk_transcript_paths = ["chunks/transcription_chunk_01.md"]
        m.validate_artifact_refs(required=["chunk_transcript_paths"])


if __name__ == "__main__":
    unittest.main()
