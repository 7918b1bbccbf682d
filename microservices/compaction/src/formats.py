"""
Serialization formats, compression codecs and sizing strategies understood
by the compaction service.

Values are the lower-case strings accepted on the command line and in
``compaction_config.yaml``.
"""

from __future__ import annotations

from enum import Enum


class SerializationFormat(str, Enum):
    """On-disk record encoding of a dataset."""

    AVRO = "avro"
    PARQUET = "parquet"
    TEXT = "text"


class CompressionCodec(str, Enum):
    """Byte-level compression applied to stored files."""

    NONE = "none"
    SNAPPY = "snappy"
    GZIP = "gzip"
    BZIP2 = "bzip2"
    LZO = "lzo"


class CompactionStrategy(str, Enum):
    """How the number of output partitions is chosen."""

    BLOCK_SIZE = "block_size"
    SIZE_RANGE = "size_range"


# Filename suffix → serialization.  Anything else is read as text.
SERIALIZATION_EXTENSIONS: dict[str, SerializationFormat] = {
    ".parquet": SerializationFormat.PARQUET,
    ".avro": SerializationFormat.AVRO,
}

# Codec extensions as registered by Hadoop's CompressionCodecFactory.
CODEC_EXTENSIONS: dict[str, CompressionCodec] = {
    ".bz2": CompressionCodec.BZIP2,
    ".gz": CompressionCodec.GZIP,
    ".snappy": CompressionCodec.SNAPPY,
    ".lzo": CompressionCodec.LZO,
}

# Values a user may pass explicitly for input or output.  LZO is only ever
# detected, never chosen.
LEGAL_SERIALIZATIONS: frozenset[str] = frozenset(f.value for f in SerializationFormat)
LEGAL_COMPRESSIONS: frozenset[str] = frozenset(
    c.value for c in CompressionCodec if c is not CompressionCodec.LZO
)
