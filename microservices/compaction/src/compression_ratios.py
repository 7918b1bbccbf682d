"""
Static compression-ratio table.

A ratio estimates how much larger the logical (uncompressed, row-oriented)
form of a dataset is than the bytes actually stored on disk.  The numbers
are rules of thumb measured on text-like data, not per-dataset measurements:

    codec     ratio   approx. space saved
    snappy    1.7     ~40 %
    lzo       2.0     ~50 %
    gzip      2.5     ~60 %
    bzip2     3.33    ~70 %

    avro      1.6     ~40 %   (container overhead vs. encoding gains)
    parquet   2.0     ~50 %   (columnar encoding)
    text      1.0

``ratio(fmt, codec) == base(fmt) * codec_ratio(codec)``; ``codec=None`` and
``CompressionCodec.NONE`` both return the base ratio.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional

from microservices.compaction.src.formats import CompressionCodec, SerializationFormat

_BASE_RATIOS = {
    SerializationFormat.AVRO: 1.6,
    SerializationFormat.PARQUET: 2.0,
    SerializationFormat.TEXT: 1.0,
}

_CODEC_RATIOS = {
    CompressionCodec.NONE: 1.0,
    CompressionCodec.SNAPPY: 1.7,
    CompressionCodec.LZO: 2.0,
    CompressionCodec.GZIP: 2.5,
    CompressionCodec.BZIP2: 3.33,
}

RatioKey = tuple[SerializationFormat, Optional[CompressionCodec]]


@dataclass(frozen=True)
class CompressionRatioTable:
    """Immutable ``(serialization, codec) → ratio`` lookup."""

    base_ratios: Mapping[SerializationFormat, float]
    codec_ratios: Mapping[CompressionCodec, float]
    _ratios: Mapping[RatioKey, float] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        for name, value in [*self.base_ratios.items(), *self.codec_ratios.items()]:
            if value <= 0:
                raise ValueError(f"Compression ratio for {name!r} must be positive, got {value}")

        ratios: dict[RatioKey, float] = {}
        for fmt, base in self.base_ratios.items():
            ratios[(fmt, None)] = base
            for codec, multiplier in self.codec_ratios.items():
                ratios[(fmt, codec)] = base if codec is CompressionCodec.NONE else base * multiplier

        object.__setattr__(self, "base_ratios", MappingProxyType(dict(self.base_ratios)))
        object.__setattr__(self, "codec_ratios", MappingProxyType(dict(self.codec_ratios)))
        object.__setattr__(self, "_ratios", MappingProxyType(ratios))

    def ratio(
        self,
        serialization: SerializationFormat,
        compression: Optional[CompressionCodec] = None,
    ) -> float:
        """Return the size-inflation factor for a format/codec pair.

        Raises
        ------
        KeyError
            If the pair is not declared in the table.
        """
        key = (SerializationFormat(serialization), None if compression is None else CompressionCodec(compression))
        try:
            return self._ratios[key]
        except KeyError:
            raise KeyError(
                f"No compression ratio declared for serialization={key[0].value!r}, "
                f"compression={key[1].value if key[1] else None!r}"
            ) from None

    def keys(self) -> list[RatioKey]:
        return list(self._ratios)


def default_ratio_table() -> CompressionRatioTable:
    """Build the table with the standard base and codec ratios."""
    return CompressionRatioTable(base_ratios=_BASE_RATIOS, codec_ratios=_CODEC_RATIOS)
