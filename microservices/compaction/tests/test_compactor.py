"""
Unit tests for the Spark execution step.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest
from pyspark.sql import SparkSession
from pyspark.sql.types import IntegerType, StringType, StructField, StructType

# Add project root to path for direct execution
_project_root = str(Path(__file__).resolve().parents[3])
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from microservices.compaction.src.compactor import resize, run_compaction
from microservices.compaction.src.file_listing import LocalFileListing
from microservices.compaction.src.formats import (
    CompactionStrategy,
    CompressionCodec,
    SerializationFormat,
)
from microservices.compaction.src.planner import CompactionPlan, CompactionRequest, build_plan


def _plan(**overrides) -> CompactionPlan:
    fields = dict(
        input_path="/in",
        output_path="/out",
        input_files=(),
        input_serialization=SerializationFormat.PARQUET,
        input_compression=CompressionCodec.NONE,
        output_serialization=SerializationFormat.PARQUET,
        output_compression=CompressionCodec.NONE,
        strategy=CompactionStrategy.BLOCK_SIZE,
        estimated_input_size_bytes=0,
        output_block_size_bytes=134217728,
        split_size=1,
    )
    fields.update(overrides)
    return CompactionPlan(**fields)


@pytest.fixture()
def small_parquet_dir(spark: SparkSession, tmp_path: Path) -> Path:
    """20 rows spread over 5 snappy Parquet part files."""
    data = [(f"id_{i}", i) for i in range(20)]
    schema = StructType([
        StructField("id", StringType()),
        StructField("value", IntegerType()),
    ])
    out = tmp_path / "small"
    (
        spark.createDataFrame(data, schema)
        .repartition(5)
        .write.option("compression", "snappy")
        .parquet(str(out))
    )
    return out


def _part_files(path: Path, suffix: str) -> list[Path]:
    return [p for p in path.iterdir() if p.name.startswith("part-") and p.name.endswith(suffix)]


class TestResize:
    def test_coalesces_down(self, spark: SparkSession) -> None:
        df = spark.range(10).repartition(4)
        assert resize(df, 2).rdd.getNumPartitions() == 2

    def test_repartitions_up(self, spark: SparkSession) -> None:
        df = spark.range(10).coalesce(1)
        assert resize(df, 3).rdd.getNumPartitions() == 3

    def test_unchanged(self, spark: SparkSession) -> None:
        df = spark.range(10).repartition(2)
        assert resize(df, 2).rdd.getNumPartitions() == 2


class TestRunCompaction:

    def test_parquet_end_to_end(
        self, spark: SparkSession, small_parquet_dir: Path, tmp_path: Path
    ) -> None:
        print("\n[TEST] Plan + compact 5 snappy Parquet files")
        print(f"  Input parts: {len(_part_files(small_parquet_dir, '.parquet'))}")
        out = tmp_path / "compacted"
        plan = build_plan(
            CompactionRequest(str(small_parquet_dir), str(out)),
            LocalFileListing(),
        )
        print(f"  Plan: split_size={plan.split_size}, "
              f"{plan.input_serialization.value}/{plan.input_compression.value}")
        assert plan.input_serialization is SerializationFormat.PARQUET
        assert plan.input_compression is CompressionCodec.SNAPPY
        assert plan.split_size == 1

        run_compaction(spark, plan)

        parts = _part_files(out, ".parquet")
        print(f"  Output parts: {[p.name for p in parts]}")
        assert len(parts) == 1
        assert ".snappy." in parts[0].name
        assert spark.read.parquet(str(out)).count() == 20

    def test_parquet_to_gzip_text(
        self, spark: SparkSession, small_parquet_dir: Path, tmp_path: Path
    ) -> None:
        out = tmp_path / "as_text"
        plan = build_plan(
            CompactionRequest(
                str(small_parquet_dir), str(out),
                output_serialization="text",
                output_compression="gzip",
            ),
            LocalFileListing(),
        )
        run_compaction(spark, plan)

        parts = _part_files(out, ".gz")
        assert len(parts) == 1
        lines = spark.read.text(str(out)).collect()
        assert len(lines) == 20
        assert '"id":"id_0"' in "".join(r.value for r in lines)

    def test_text_split_into_requested_partitions(self, spark: SparkSession, tmp_path: Path) -> None:
        src = tmp_path / "src"
        src.mkdir()
        for i in range(4):
            (src / f"part-{i}.txt").write_text(f"line {i}\n", encoding="utf-8")
        plan = _plan(
            input_path=str(src),
            output_path=str(tmp_path / "out"),
            input_files=tuple(str(p) for p in sorted(src.iterdir())),
            input_serialization=SerializationFormat.TEXT,
            output_serialization=SerializationFormat.TEXT,
            split_size=2,
        )
        run_compaction(spark, plan)
        assert len(_part_files(tmp_path / "out", ".txt")) == 2
        assert spark.read.text(str(tmp_path / "out")).count() == 4

    def test_no_input_files_is_a_no_op(self, spark: SparkSession, tmp_path: Path) -> None:
        out = tmp_path / "untouched"
        run_compaction(spark, _plan(output_path=str(out)))
        assert not out.exists()
