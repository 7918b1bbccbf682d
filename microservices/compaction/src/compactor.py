"""
Spark execution of a compaction plan.

Reads the plan's concrete input files, coalesces them to the planned split
size and writes them in the output serialization/codec.  All sizing
decisions are already made by :mod:`microservices.compaction.src.planner`;
this module only moves data.
"""

from __future__ import annotations

import logging

from pyspark.sql import DataFrame, SparkSession
from pyspark.sql.functions import struct, to_json

from microservices.compaction.src.formats import SerializationFormat
from microservices.compaction.src.output_compression import output_compression_properties
from microservices.compaction.src.planner import CompactionPlan
from microservices.compaction.src.retry import retry

logger = logging.getLogger(__name__)

_AVRO_FORMAT = "avro"


def read_input(spark: SparkSession, plan: CompactionPlan) -> DataFrame:
    """Load the plan's input files in their input serialization."""
    paths = list(plan.input_files)
    serialization = plan.input_serialization

    if serialization is SerializationFormat.PARQUET:
        return spark.read.parquet(*paths)
    if serialization is SerializationFormat.AVRO:
        return spark.read.format(_AVRO_FORMAT).load(paths)
    return spark.read.text(paths)


def resize(df: DataFrame, split_size: int) -> DataFrame:
    """Bring *df* to exactly *split_size* partitions."""
    current = df.rdd.getNumPartitions()
    if split_size < current:
        # coalesce avoids a full shuffle when reducing partitions
        logger.info("Coalescing from %d → %d partitions.", current, split_size)
        return df.coalesce(split_size)
    if split_size > current:
        logger.info("Repartitioning from %d → %d partitions.", current, split_size)
        return df.repartition(split_size)
    logger.info("Partition count already at %d.", current)
    return df


@retry(max_retries=3, backoff_sec=2.0, backoff_factor=2.0)
def write_output(df: DataFrame, plan: CompactionPlan, mode: str = "errorifexists") -> None:
    """Write *df* to the plan's output path, format and codec."""
    props = output_compression_properties(plan.output_compression)
    serialization = plan.output_serialization

    if serialization is SerializationFormat.TEXT and len(df.columns) != 1:
        df = df.select(to_json(struct(*df.columns)).alias("value"))

    writer = df.write.mode(mode).option("compression", props.writer_compression(serialization))
    if serialization is SerializationFormat.PARQUET:
        writer.parquet(plan.output_path)
    elif serialization is SerializationFormat.AVRO:
        writer.format(_AVRO_FORMAT).save(plan.output_path)
    else:
        writer.text(plan.output_path)
    logger.info(
        "%s/%s written → %s",
        serialization.value, plan.output_compression.value, plan.output_path,
    )


def run_compaction(spark: SparkSession, plan: CompactionPlan, mode: str = "errorifexists") -> None:
    """Read → resize → write for one plan."""
    if not plan.input_files:
        logger.warning("No visible input files under %s; nothing to compact.", plan.input_path)
        return

    logger.info(
        "Compacting %d file(s) from %s into %d partition(s).",
        len(plan.input_files), plan.input_path, plan.split_size,
    )
    df = read_input(spark, plan)
    df = resize(df, plan.split_size)
    write_output(df, plan, mode=mode)
    logger.info("Compaction complete for: %s", plan.input_path)
