"""
Error types raised while planning a compaction run.

Every error is fatal to the invocation: the planner never retries and never
returns a partial plan.  The CLI catches :class:`CompactionError`, logs it
and exits with status 1 before any data is moved.
"""

from __future__ import annotations


class CompactionError(Exception):
    """Base class for all compaction planning failures."""


class InvalidFormatError(CompactionError, ValueError):
    """A serialization or compression value is outside its legal set."""


class FileSystemAccessError(CompactionError, OSError):
    """The filesystem could not be listed, sized or queried for a path."""


class UnresolvedTierError(CompactionError):
    """No size-range tier matches the corpus size."""


class UnsupportedCombinationError(CompactionError):
    """The output format/codec pair is rejected by the Spark write path."""


class InvalidBlockSizeError(CompactionError, ValueError):
    """The output filesystem reported a block size that is zero or negative."""


class ConfigurationError(CompactionError, ValueError):
    """A configuration value (strategy name, size-range tier) is malformed."""
