"""
Serialization and compression detection for an input corpus.

Detection is filename based, the same way Hadoop's
``CompressionCodecFactory`` picks a codec:

  1. Strip a known serialization suffix (``.parquet``, ``.avro``) from the
     file name.  No suffix → the corpus is read as text.
  2. Sniff the codec from what is left (``part-0000.snappy.parquet`` →
     ``part-0000.snappy`` → snappy).  No codec extension → ``none``.

Hidden files (``_SUCCESS``, ``.part-0000.crc`` …) are ignored.
"""

from __future__ import annotations

import logging
from typing import Mapping, NamedTuple, Optional

from microservices.compaction.src.file_listing import FileEntry, FileListing
from microservices.compaction.src.formats import (
    CODEC_EXTENSIONS,
    SERIALIZATION_EXTENSIONS,
    CompressionCodec,
    SerializationFormat,
)

logger = logging.getLogger(__name__)


class DetectedFormats(NamedTuple):
    serialization: SerializationFormat
    compression: CompressionCodec


def resolve_input_entries(listing: FileListing, input_path: str) -> list[FileEntry]:
    """Expand *input_path* into the entries that make up the corpus.

    A path (or glob) that resolves to exactly one directory is replaced by
    that directory's children.  Anything else is returned as matched.
    """
    entries = listing.glob(input_path)
    if len(entries) == 1 and entries[0].is_directory:
        entries = listing.list(entries[0].path)
    logger.info("[detect] %s → %d entr(ies)", input_path, len(entries))
    return entries


def detect_serialization(
    path: str,
    serialization_extensions: Mapping[str, SerializationFormat] = SERIALIZATION_EXTENSIONS,
) -> tuple[Optional[SerializationFormat], str]:
    """Return ``(format, remainder)`` for a single path.

    *remainder* is the path with the matched suffix removed, or the full
    path when no suffix matches (in which case *format* is ``None``).
    """
    for suffix, fmt in serialization_extensions.items():
        if path.endswith(suffix):
            return fmt, path[: -len(suffix)]
    return None, path


def detect_compression(
    path: str,
    codec_extensions: Mapping[str, CompressionCodec] = CODEC_EXTENSIONS,
) -> Optional[CompressionCodec]:
    """Return the codec whose extension ends *path*; longest match wins."""
    best: Optional[str] = None
    for ext in codec_extensions:
        if path.endswith(ext) and (best is None or len(ext) > len(best)):
            best = ext
    return codec_extensions[best] if best is not None else None


def detect_formats(
    entries: list[FileEntry],
    serialization_extensions: Mapping[str, SerializationFormat] = SERIALIZATION_EXTENSIONS,
    codec_extensions: Mapping[str, CompressionCodec] = CODEC_EXTENSIONS,
) -> DetectedFormats:
    """Infer the corpus-wide serialization and compression.

    The first visible entry with a serialization suffix decides the
    format; the first visible entry whose remainder carries a codec
    extension decides the compression.  Defaults: text / none.
    """
    serialization: Optional[SerializationFormat] = None
    compression: Optional[CompressionCodec] = None

    for entry in entries:
        if entry.is_hidden:
            continue

        fmt, remainder = detect_serialization(entry.path, serialization_extensions)
        if serialization is None and fmt is not None:
            serialization = fmt

        if compression is None:
            compression = detect_compression(remainder, codec_extensions)

        if serialization is not None and compression is not None:
            break

    detected = DetectedFormats(
        serialization=serialization or SerializationFormat.TEXT,
        compression=compression or CompressionCodec.NONE,
    )
    logger.info(
        "[detect] serialization=%s compression=%s",
        detected.serialization.value, detected.compression.value,
    )
    return detected
