"""
Compaction sizing: how many output partitions to coalesce into.

Two strategies:

``block_size`` (default)
    One file per output block, plus one::

        split = floor((estimated_bytes / output_ratio) / block_size) + 1

    The ``+ 1`` guarantees at least one partition and errs toward files
    slightly smaller than a block.

``size_range``
    The raw corpus size is bucketed into configured tiers, each with a
    target post-compaction file size::

        split = round(corpus_mb / tier.target_size_after_compaction_mb)

    A tier with ``max_gb == 0`` is open-ended.  Every tier is evaluated and
    the **last** matching one wins, so overlapping tiers resolve to the one
    listed later.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence

from microservices.compaction.src.errors import (
    ConfigurationError,
    InvalidBlockSizeError,
    UnresolvedTierError,
)
from microservices.compaction.src.formats import CompactionStrategy

logger = logging.getLogger(__name__)

# Historical conversion factors; tier boundaries in existing configs were
# tuned against these exact values.
BYTES_TO_MB = 0.00000095367432
MB_TO_GB = 0.0009756


@dataclass(frozen=True)
class SizeRangeRule:
    """One size-range tier.  ``max_gb == 0`` means no upper bound."""
    min_gb: float
    max_gb: float
    target_size_after_compaction_mb: float

    def __post_init__(self) -> None:
        if self.target_size_after_compaction_mb <= 0:
            raise ConfigurationError(
                "size_after_compaction_in_mb must be positive, "
                f"got {self.target_size_after_compaction_mb}"
            )

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> SizeRangeRule:
        """Build a tier from a ``size_ranges_for_compaction`` config entry.

        Raises
        ------
        ConfigurationError
            A key is missing or a value is not a number.
        """
        try:
            min_gb = float(raw["min_size_in_gb"])
            max_gb = float(raw["max_size_in_gb"])
            target_mb = float(raw["size_after_compaction_in_mb"])
        except KeyError as exc:
            raise ConfigurationError(f"Size-range tier {dict(raw)} is missing {exc}") from exc
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"Size-range tier {dict(raw)} is malformed: {exc}") from exc
        return cls(min_gb=min_gb, max_gb=max_gb, target_size_after_compaction_mb=target_mb)

    def matches(self, corpus_gb: float) -> bool:
        upper = corpus_gb if self.max_gb == 0 else self.max_gb
        return self.min_gb <= corpus_gb <= upper


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def block_size_split(
    estimated_bytes: int,
    output_ratio: float,
    block_size_bytes: int,
) -> int:
    """Partition count that keeps each output file under one block.

    Raises
    ------
    InvalidBlockSizeError
        If *block_size_bytes* is zero or negative.
    """
    if block_size_bytes <= 0:
        raise InvalidBlockSizeError(
            f"Output block size must be positive, got {block_size_bytes}"
        )
    split = int(math.floor((estimated_bytes / output_ratio) / block_size_bytes)) + 1
    logger.info(
        "[sizing] block_size: %d bytes / %.3f / %d-byte blocks → %d partition(s)",
        estimated_bytes, output_ratio, block_size_bytes, split,
    )
    return split


def size_range_split(corpus_bytes: int, tiers: Sequence[SizeRangeRule]) -> int:
    """Partition count from the last tier matching the corpus size.

    Raises
    ------
    UnresolvedTierError
        If no tier matches.
    """
    corpus_mb = corpus_bytes * BYTES_TO_MB
    corpus_gb = corpus_mb * MB_TO_GB
    logger.info("[sizing] size_range: corpus %.2f MB / %.4f GB", corpus_mb, corpus_gb)

    matched: Optional[SizeRangeRule] = None
    for tier in tiers:
        if tier.matches(corpus_gb):
            if matched is not None:
                logger.debug("[sizing] tier %s overrides earlier match %s", tier, matched)
            matched = tier

    if matched is None:
        raise UnresolvedTierError(
            f"No size range matches a corpus of {corpus_gb:.4f} GB "
            f"({len(tiers)} tier(s) configured)"
        )

    split = _round_half_up(corpus_mb / matched.target_size_after_compaction_mb)
    if split < 1:
        logger.warning(
            "[sizing] %.2f MB / %s MB rounds to %d partitions; using 1.",
            corpus_mb, matched.target_size_after_compaction_mb, split,
        )
        split = 1
    logger.info(
        "[sizing] tier [%s, %s] GB @ %s MB → %d partition(s)",
        matched.min_gb, matched.max_gb, matched.target_size_after_compaction_mb, split,
    )
    return split


def plan_split_size(
    strategy: CompactionStrategy,
    *,
    estimated_bytes: int = 0,
    output_ratio: float = 1.0,
    block_size_bytes: Optional[int] = None,
    corpus_bytes: int = 0,
    tiers: Sequence[SizeRangeRule] = (),
) -> int:
    """Dispatch to the sizing function for *strategy*."""
    if CompactionStrategy(strategy) is CompactionStrategy.SIZE_RANGE:
        return size_range_split(corpus_bytes, tiers)
    if block_size_bytes is None:
        raise InvalidBlockSizeError("Block-size strategy requires an output block size")
    return block_size_split(estimated_bytes, output_ratio, block_size_bytes)
