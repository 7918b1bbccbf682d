"""
Compaction planning pipeline.

Turns a :class:`CompactionRequest` and a filesystem snapshot into a frozen
:class:`CompactionPlan`.  Each stage takes the previous stage's result
explicitly, so there is no hidden ordering between them:

  1. resolve input entries       (glob, expand a single directory)
  2. detect formats              (only for values the request leaves unset)
  3. validate formats            (+ reject unsupported output pairs)
  4. estimate corpus size        (stored bytes × input ratio)
  5. size                        (block-size or size-range strategy)

The same snapshot and request always yield an identical plan.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from microservices.compaction.src.compression_ratios import (
    CompressionRatioTable,
    default_ratio_table,
)
from microservices.compaction.src.detector import detect_formats, resolve_input_entries
from microservices.compaction.src.file_listing import FileListing
from microservices.compaction.src.formats import (
    CODEC_EXTENSIONS,
    CompactionStrategy,
    CompressionCodec,
    SerializationFormat,
)
from microservices.compaction.src.size_estimator import estimate_corpus_size
from microservices.compaction.src.sizing import SizeRangeRule, plan_split_size
from microservices.compaction.src.validator import check_supported_combination, validate_formats

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompactionRequest:
    """What the caller asked for.  ``None`` means "detect" / "same as input"."""
    input_path: str
    output_path: str
    input_serialization: Optional[str] = None
    input_compression: Optional[str] = None
    output_serialization: Optional[str] = None
    output_compression: Optional[str] = None
    strategy: CompactionStrategy = CompactionStrategy.BLOCK_SIZE
    size_ranges: tuple[SizeRangeRule, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class CompactionPlan:
    """Resolved, validated input for one Spark compaction run."""
    input_path: str
    output_path: str
    input_files: tuple[str, ...]
    input_serialization: SerializationFormat
    input_compression: CompressionCodec
    output_serialization: SerializationFormat
    output_compression: CompressionCodec
    strategy: CompactionStrategy
    estimated_input_size_bytes: int
    output_block_size_bytes: Optional[int]
    split_size: int

    @property
    def input_paths_csv(self) -> str:
        """Input files joined with commas, as Spark readers accept them."""
        return ",".join(self.input_files)


def build_plan(
    request: CompactionRequest,
    listing: FileListing,
    ratios: Optional[CompressionRatioTable] = None,
    codec_extensions: dict[str, CompressionCodec] = CODEC_EXTENSIONS,
) -> CompactionPlan:
    """Plan a compaction run.

    Raises
    ------
    FileSystemAccessError
        Listing, sizing or block-size lookup failed.
    InvalidFormatError
        A resolved serialization/compression value is not allowed.
    UnsupportedCombinationError
        The output format cannot be written with the output codec.
    UnresolvedTierError
        ``size_range`` strategy and no tier matches.
    InvalidBlockSizeError
        ``block_size`` strategy and the output block size is not positive.
    """
    ratios = ratios or default_ratio_table()
    strategy = CompactionStrategy(request.strategy)
    logger.info(
        "[plan] %s → %s (strategy=%s)",
        request.input_path, request.output_path, strategy.value,
    )

    entries = resolve_input_entries(listing, request.input_path)
    detected = detect_formats(entries, codec_extensions=codec_extensions)

    input_serialization = request.input_serialization or detected.serialization.value
    input_compression = request.input_compression or detected.compression.value
    formats = validate_formats(
        input_compression=input_compression,
        input_serialization=input_serialization,
        output_compression=request.output_compression or input_compression,
        output_serialization=request.output_serialization or input_serialization,
    )
    check_supported_combination(formats.output_serialization, formats.output_compression)

    estimated = estimate_corpus_size(
        entries, formats.input_serialization, formats.input_compression, ratios,
    )

    block_size: Optional[int] = None
    corpus_bytes = 0
    if strategy is CompactionStrategy.SIZE_RANGE:
        corpus_bytes = listing.content_summary(request.input_path)
    else:
        block_size = listing.default_block_size(request.output_path)

    split_size = plan_split_size(
        strategy,
        estimated_bytes=estimated,
        output_ratio=ratios.ratio(formats.output_serialization, formats.output_compression),
        block_size_bytes=block_size,
        corpus_bytes=corpus_bytes,
        tiers=request.size_ranges,
    )

    plan = CompactionPlan(
        input_path=request.input_path,
        output_path=request.output_path,
        input_files=tuple(e.path for e in entries if not e.is_hidden),
        input_serialization=formats.input_serialization,
        input_compression=formats.input_compression,
        output_serialization=formats.output_serialization,
        output_compression=formats.output_compression,
        strategy=strategy,
        estimated_input_size_bytes=estimated,
        output_block_size_bytes=block_size,
        split_size=split_size,
    )
    logger.info(
        "[plan] %d file(s), %s/%s → %s/%s, split_size=%d",
        len(plan.input_files),
        plan.input_serialization.value, plan.input_compression.value,
        plan.output_serialization.value, plan.output_compression.value,
        plan.split_size,
    )
    return plan
