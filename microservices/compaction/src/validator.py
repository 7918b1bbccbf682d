"""
Format/codec validation for a compaction plan.

Runs after detection and before any size is estimated.  Values are
case-insensitive strings or the matching enum members; the first illegal value (checked in the order input
compression, input serialization, output compression, output
serialization) raises :class:`InvalidFormatError`.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import NamedTuple

from microservices.compaction.src.errors import InvalidFormatError, UnsupportedCombinationError
from microservices.compaction.src.formats import (
    LEGAL_COMPRESSIONS,
    LEGAL_SERIALIZATIONS,
    CompressionCodec,
    SerializationFormat,
)

logger = logging.getLogger(__name__)

# Accepted by validation but rejected by the Spark writers.
UNSUPPORTED_OUTPUT_COMBINATIONS: frozenset[tuple[SerializationFormat, CompressionCodec]] = frozenset({
    (SerializationFormat.PARQUET, CompressionCodec.BZIP2),
    (SerializationFormat.AVRO, CompressionCodec.BZIP2),
})


class ValidatedFormats(NamedTuple):
    input_serialization: SerializationFormat
    input_compression: CompressionCodec
    output_serialization: SerializationFormat
    output_compression: CompressionCodec


def _check(value: str | Enum, legal: frozenset[str], label: str) -> str:
    raw = value.value if isinstance(value, Enum) else str(value)
    normalised = raw.strip().lower()
    if normalised not in legal:
        raise InvalidFormatError(
            f"Invalid {label} format specified: '{raw}'. "
            f"Expected one of {sorted(legal)}"
        )
    return normalised


def validate_formats(
    input_compression: str,
    input_serialization: str,
    output_compression: str,
    output_serialization: str,
) -> ValidatedFormats:
    """Validate all four values and return them as enums.

    Raises
    ------
    InvalidFormatError
        On the first value outside its legal set.
    """
    ic = _check(input_compression, LEGAL_COMPRESSIONS, "input compression")
    is_ = _check(input_serialization, LEGAL_SERIALIZATIONS, "input serialization")
    oc = _check(output_compression, LEGAL_COMPRESSIONS, "output compression")
    os_ = _check(output_serialization, LEGAL_SERIALIZATIONS, "output serialization")

    validated = ValidatedFormats(
        input_serialization=SerializationFormat(is_),
        input_compression=CompressionCodec(ic),
        output_serialization=SerializationFormat(os_),
        output_compression=CompressionCodec(oc),
    )
    logger.info(
        "[validate] input=%s/%s output=%s/%s",
        is_, ic, os_, oc,
    )
    return validated


def check_supported_combination(
    serialization: SerializationFormat,
    compression: CompressionCodec,
) -> None:
    """Reject output pairs the write path cannot produce."""
    if (serialization, compression) in UNSUPPORTED_OUTPUT_COMBINATIONS:
        raise UnsupportedCombinationError(
            f"Output serialization '{serialization.value}' cannot be written "
            f"with compression '{compression.value}'"
        )
