"""
Compaction pipeline - rewrite a directory of small files as fewer, larger ones.

Detects the input format/codec, plans the number of output partitions and
runs the Spark read → coalesce → write.

Usage
-----
    spark-submit \\
        microservices/compaction/pipelines/compact.py \\
        -i hdfs://namenode:9000/data/raw/kt4/event_date=2025-01-15 \\
        -o hdfs://namenode:9000/data/compacted/kt4/event_date=2025-01-15 \\
        [-is parquet] [-ic snappy] [-os parquet] [-oc gzip] \\
        [-cs block_size | size_range] [--dry-run]
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

_project_root = str(Path(__file__).resolve().parents[3])
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from microservices.compaction.src.compactor import run_compaction
from microservices.compaction.src.config_loader import load_config, size_ranges_from_config
from microservices.compaction.src.errors import CompactionError, ConfigurationError
from microservices.compaction.src.file_listing import FileListing, HadoopFileListing, LocalFileListing
from microservices.compaction.src.formats import CompactionStrategy
from microservices.compaction.src.logging_config import configure_logging
from microservices.compaction.src.output_compression import output_compression_properties
from microservices.compaction.src.planner import CompactionPlan, CompactionRequest, build_plan
from microservices.compaction.src.spark_session import apply_output_properties, get_spark_session

logger = logging.getLogger(__name__)

_DEFAULT_CONFIG = "microservices/compaction/config/compaction_config.yaml"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="spark-compaction",
        description="Compact many small files into fewer, block-sized files.",
    )
    parser.add_argument("-i", "--input-path", required=True,
                        help="Path (or glob) of the files to compact.")
    parser.add_argument("-o", "--output-path", required=True,
                        help="Directory the compacted files are written to.")
    parser.add_argument("-is", "--input-serialization",
                        help="Input serialization (avro, parquet, text). Detected when omitted.")
    parser.add_argument("-ic", "--input-compression",
                        help="Input compression (none, snappy, gzip, bzip2). Detected when omitted.")
    parser.add_argument("-os", "--output-serialization",
                        help="Output serialization (avro, parquet, text). Defaults to the input's.")
    parser.add_argument("-oc", "--output-compression",
                        help="Output compression (none, snappy, gzip, bzip2). Defaults to the input's.")
    parser.add_argument("-cs", "--compaction-strategy",
                        choices=[s.value for s in CompactionStrategy],
                        help="How the split size is calculated (default: from config).")
    parser.add_argument("--config", type=str, default=_DEFAULT_CONFIG,
                        help="Path to the YAML configuration file.")
    parser.add_argument("--dry-run", action="store_true",
                        help="Plan and log the split size without moving data.")
    parser.add_argument("--local-listing", action="store_true",
                        help="Plan against the local disk instead of the Hadoop filesystem.")
    return parser


def plan_from_args(args: argparse.Namespace, cfg: dict, listing: FileListing) -> CompactionPlan:
    """Build the compaction plan for parsed CLI arguments."""
    raw_strategy = args.compaction_strategy or cfg["compaction"]["strategy"]
    try:
        strategy = CompactionStrategy(str(raw_strategy).strip().lower())
    except ValueError as exc:
        raise ConfigurationError(f"Unknown compaction strategy: '{raw_strategy}'") from exc

    # tiers are only read when they are used
    tiers = size_ranges_from_config(cfg) if strategy is CompactionStrategy.SIZE_RANGE else ()
    request = CompactionRequest(
        input_path=args.input_path,
        output_path=args.output_path,
        input_serialization=args.input_serialization,
        input_compression=args.input_compression,
        output_serialization=args.output_serialization,
        output_compression=args.output_compression,
        strategy=strategy,
        size_ranges=tiers,
    )
    return build_plan(request, listing)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the compaction pipeline.  Returns the process exit code."""
    configure_logging()
    parser = build_parser()
    args = parser.parse_args(argv)
    cfg = load_config(args.config)

    if args.local_listing and args.dry_run:
        try:
            plan = plan_from_args(args, cfg, LocalFileListing(cfg["local"]["block_size_bytes"]))
        except CompactionError as exc:
            logger.error("[compaction] %s", exc)
            return 1
        logger.info("[compaction] Dry run, plan: %s", plan)
        return 0

    spark = get_spark_session(
        app_name=cfg["spark"]["app_name"],
        master=cfg["spark"].get("master"),
        extra_config=cfg["spark"].get("config"),
    )
    try:
        listing: FileListing = (
            LocalFileListing(cfg["local"]["block_size_bytes"])
            if args.local_listing
            else HadoopFileListing(spark)
        )
        plan = plan_from_args(args, cfg, listing)
        if args.dry_run:
            logger.info("[compaction] Dry run, plan: %s", plan)
            return 0

        apply_output_properties(spark, output_compression_properties(plan.output_compression))
        run_compaction(spark, plan)
    except CompactionError as exc:
        logger.error("[compaction] %s", exc)
        return 1
    finally:
        spark.stop()

    logger.info("=== Compaction completed  |  %s → %s ===", plan.input_path, plan.output_path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
