"""
Output codec → Spark/Hadoop compression properties.

Spark's writers decide compression from a handful of settings spread
across Hadoop's ``mapred`` output properties (text), the Parquet and Avro
data sources, and the Avro output format.  This module maps a
:class:`CompressionCodec` to all of them in one frozen struct so the
mapping can be tested without a SparkSession.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from microservices.compaction.src.errors import InvalidFormatError
from microservices.compaction.src.formats import CompressionCodec, SerializationFormat

SHOULD_COMPRESS_OUTPUT = "spark.hadoop.mapred.output.compress"
OUTPUT_COMPRESSION_CODEC = "spark.hadoop.mapred.output.compression.codec"
COMPRESSION_TYPE = "spark.hadoop.mapred.output.compression.type"
SPARK_PARQUET_COMPRESSION_CODEC = "spark.sql.parquet.compression.codec"
SPARK_AVRO_COMPRESSION_CODEC = "spark.sql.avro.compression.codec"
AVRO_COMPRESSION_CODEC = "avro.output.codec"

_HADOOP_CODEC_CLASSES = {
    CompressionCodec.SNAPPY: "org.apache.hadoop.io.compress.SnappyCodec",
    CompressionCodec.GZIP: "org.apache.hadoop.io.compress.GzipCodec",
    CompressionCodec.BZIP2: "org.apache.hadoop.io.compress.BZip2Codec",
}

# Avro's container format calls gzip's algorithm "deflate".
_AVRO_CODEC_NAMES = {
    CompressionCodec.GZIP: "deflate",
}


@dataclass(frozen=True)
class OutputCompressionProperties:
    """Everything the Spark writers consult to compress output."""
    codec: CompressionCodec
    compress_output: bool
    codec_class: Optional[str] = None
    compression_type: Optional[str] = None
    parquet_codec: str = "uncompressed"
    avro_codec: Optional[str] = None

    def to_spark_conf(self) -> dict[str, str]:
        """Render as Spark configuration key/value pairs."""
        conf = {
            SHOULD_COMPRESS_OUTPUT: "true" if self.compress_output else "false",
            SPARK_PARQUET_COMPRESSION_CODEC: self.parquet_codec,
        }
        if self.codec_class:
            conf[OUTPUT_COMPRESSION_CODEC] = self.codec_class
        if self.compression_type:
            conf[COMPRESSION_TYPE] = self.compression_type
        if self.avro_codec:
            conf[SPARK_AVRO_COMPRESSION_CODEC] = self.avro_codec
            conf[AVRO_COMPRESSION_CODEC] = self.avro_codec
        return conf

    def writer_compression(self, serialization: SerializationFormat) -> str:
        """Value for the DataFrameWriter ``compression`` option."""
        if serialization is SerializationFormat.PARQUET:
            return self.parquet_codec
        if serialization is SerializationFormat.AVRO:
            return self.avro_codec or "uncompressed"
        return self.codec.value


def output_compression_properties(codec: CompressionCodec) -> OutputCompressionProperties:
    """Translate an output codec into writer properties.

    Raises
    ------
    InvalidFormatError
        For codecs that cannot be chosen for output (``lzo``).
    """
    codec = CompressionCodec(codec)
    if codec is CompressionCodec.NONE:
        return OutputCompressionProperties(codec=codec, compress_output=False)
    if codec not in _HADOOP_CODEC_CLASSES:
        raise InvalidFormatError(f"No output compression mapping for '{codec.value}'")
    return OutputCompressionProperties(
        codec=codec,
        compress_output=True,
        codec_class=_HADOOP_CODEC_CLASSES[codec],
        compression_type="BLOCK",
        parquet_codec=codec.value,
        avro_codec=_AVRO_CODEC_NAMES.get(codec, codec.value),
    )
