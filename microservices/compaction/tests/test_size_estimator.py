"""Tests for :mod:`microservices.compaction.src.size_estimator`."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

_project_root = str(Path(__file__).resolve().parents[3])
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from microservices.compaction.src.compression_ratios import default_ratio_table
from microservices.compaction.src.file_listing import FileEntry
from microservices.compaction.src.formats import CompressionCodec, SerializationFormat
from microservices.compaction.src.size_estimator import estimate_corpus_size, stored_size_bytes


@pytest.fixture()
def entries() -> list[FileEntry]:
    return [
        FileEntry("/d/_SUCCESS", 0),
        FileEntry("/d/.part-0.gz.crc", 5_000),
        FileEntry("/d/part-0.gz", 1_000_000),
        FileEntry("/d/part-1.gz", 3_000_000),
    ]


class TestStoredSize:
    def test_ignores_hidden_entries(self, entries) -> None:
        assert stored_size_bytes(entries) == 4_000_000

    def test_empty(self) -> None:
        assert stored_size_bytes([]) == 0


class TestEstimateCorpusSize:

    def test_text_gzip(self, entries) -> None:
        print("\n[TEST] Estimate gzip text corpus")
        estimated = estimate_corpus_size(
            entries, SerializationFormat.TEXT, CompressionCodec.GZIP, default_ratio_table()
        )
        print(f"  4 MB stored × 2.5 → {estimated} bytes")
        assert estimated == 10_000_000

    def test_uncompressed_text_is_stored_size(self, entries) -> None:
        estimated = estimate_corpus_size(
            entries, SerializationFormat.TEXT, CompressionCodec.NONE, default_ratio_table()
        )
        assert estimated == 4_000_000

    def test_truncates_to_whole_bytes(self) -> None:
        # 3 bytes × 1.6 × 1.7 = 8.16
        estimated = estimate_corpus_size(
            [FileEntry("/d/a.avro", 3)],
            SerializationFormat.AVRO,
            CompressionCodec.SNAPPY,
            default_ratio_table(),
        )
        assert estimated == 8

    def test_empty_corpus_is_zero(self) -> None:
        estimated = estimate_corpus_size(
            [FileEntry("/d/_SUCCESS", 0)],
            SerializationFormat.PARQUET,
            CompressionCodec.SNAPPY,
            default_ratio_table(),
        )
        assert estimated == 0
