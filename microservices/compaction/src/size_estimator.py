"""
Corpus size estimation.

Stored bytes are scaled by the compression ratio of the input
format/codec to approximate the logical size of the data.  This assumes
uniform compressibility and is only as good as the ratio table.
"""

from __future__ import annotations

import logging
from typing import Iterable

from microservices.compaction.src.compression_ratios import CompressionRatioTable
from microservices.compaction.src.file_listing import FileEntry
from microservices.compaction.src.formats import CompressionCodec, SerializationFormat

logger = logging.getLogger(__name__)


def stored_size_bytes(entries: Iterable[FileEntry]) -> int:
    """Sum of on-disk bytes over visible entries."""
    return sum(e.size_bytes for e in entries if not e.is_hidden)


def estimate_corpus_size(
    entries: Iterable[FileEntry],
    serialization: SerializationFormat,
    compression: CompressionCodec,
    ratios: CompressionRatioTable,
) -> int:
    """Estimate the logical size of a corpus in bytes (never negative)."""
    stored = stored_size_bytes(entries)
    ratio = ratios.ratio(serialization, compression)
    estimated = max(0, int(stored * ratio))
    logger.info(
        "[estimate] stored=%d bytes × %.3f (%s/%s) → %d bytes",
        stored, ratio, serialization.value, compression.value, estimated,
    )
    return estimated
