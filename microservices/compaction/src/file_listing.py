"""
Filesystem listing for compaction planning.

The planner needs four things from the filesystem, all read-only:

  - ``glob(path)``               → entries matching an input path/pattern
  - ``list(path)``               → children of a directory
  - ``content_summary(path)``    → bytes consumed on disk (incl. replication)
  - ``default_block_size(path)`` → configured block size for a path

:class:`HadoopFileListing` answers these through the Hadoop ``FileSystem``
API of a running SparkSession (HDFS, S3A, local ``file://`` …).
:class:`LocalFileListing` answers them from the local disk without a JVM and
is used for planning against local directories and in tests.

Any failure is surfaced as :class:`FileSystemAccessError`.
"""

from __future__ import annotations

import glob as _glob
import logging
import os
from dataclasses import dataclass
from typing import Any, Callable, Protocol

from py4j.protocol import Py4JError
from pyspark.sql import SparkSession

from microservices.compaction.src.errors import FileSystemAccessError
from microservices.compaction.src.retry import retry

logger = logging.getLogger(__name__)

_HIDDEN_PREFIXES = ("_", ".")

# HDFS default (dfs.blocksize)
DEFAULT_LOCAL_BLOCK_SIZE_BYTES = 134217728


@dataclass(frozen=True)
class FileEntry:
    """One listed path and the space it consumes on disk."""
    path: str
    size_bytes: int
    is_directory: bool = False

    @property
    def name(self) -> str:
        return self.path.rstrip("/").rsplit("/", 1)[-1]

    @property
    def is_hidden(self) -> bool:
        """``_SUCCESS``, ``.crc`` and similar bookkeeping files."""
        return self.name.startswith(_HIDDEN_PREFIXES)


class FileListing(Protocol):
    """Read-only filesystem operations the planner depends on."""

    def glob(self, path: str) -> list[FileEntry]: ...

    def list(self, path: str) -> list[FileEntry]: ...

    def content_summary(self, path: str) -> int: ...

    def default_block_size(self, path: str) -> int: ...


# ── Hadoop FileSystem via the Spark JVM gateway ──────────────────────────

class HadoopFileListing:
    """List and size paths with ``org.apache.hadoop.fs.FileSystem``.

    The filesystem is resolved per path from the session's Hadoop
    configuration, so ``hdfs://``, ``s3a://`` and ``file://`` inputs all work.
    Gateway/network drops are retried; Java-side errors are not.
    """

    def __init__(self, spark: SparkSession) -> None:
        self._jvm = spark.sparkContext._jvm
        self._hadoop_conf = spark.sparkContext._jsc.hadoopConfiguration()

    def glob(self, path: str) -> list[FileEntry]:
        """Entries matching *path*.

        A lone directory match is returned with ``size_bytes=0``: it is
        expanded with :meth:`list` before anything is summed, so its
        recursive content summary is never fetched.
        """
        def _glob_status(fs: Any, jpath: Any) -> list[FileEntry]:
            statuses = list(fs.globStatus(jpath) or [])
            if len(statuses) == 1 and statuses[0].isDirectory():
                return [self._to_entry(fs, statuses[0], sized=False)]
            return [self._to_entry(fs, s) for s in statuses]

        entries = self._run("glob", path, _glob_status)
        if not entries:
            raise FileSystemAccessError(f"Input path matches nothing: {path}")
        logger.debug("[listing] %s matched %d entr(ies)", path, len(entries))
        return entries

    def list(self, path: str) -> list[FileEntry]:
        def _list_status(fs: Any, jpath: Any) -> list[FileEntry]:
            return [self._to_entry(fs, s) for s in fs.listStatus(jpath)]

        return self._run("list", path, _list_status)

    def content_summary(self, path: str) -> int:
        return self._run(
            "content summary",
            path,
            lambda fs, jpath: int(fs.getContentSummary(jpath).getSpaceConsumed()),
        )

    def default_block_size(self, path: str) -> int:
        return self._run(
            "default block size",
            path,
            lambda fs, jpath: int(fs.getDefaultBlockSize(jpath)),
        )

    # ── internals ─────────────────────────────────────────────────────

    def _run(self, op: str, path: str, fn: Callable[[Any, Any], Any]) -> Any:
        try:
            return self._call(path, fn)
        except Py4JError as exc:
            raise FileSystemAccessError(f"Filesystem {op} failed for '{path}': {exc}") from exc

    @retry(max_retries=3, backoff_sec=2.0, backoff_factor=2.0)
    def _call(self, path: str, fn: Callable[[Any, Any], Any]) -> Any:
        jpath = self._jvm.org.apache.hadoop.fs.Path(path)
        fs = jpath.getFileSystem(self._hadoop_conf)
        return fn(fs, jpath)

    @staticmethod
    def _to_entry(fs: Any, status: Any, sized: bool = True) -> FileEntry:
        # space consumed, so replicas count toward the corpus size
        jpath = status.getPath()
        return FileEntry(
            path=jpath.toString(),
            size_bytes=int(fs.getContentSummary(jpath).getSpaceConsumed()) if sized else 0,
            is_directory=bool(status.isDirectory()),
        )


# ── Local disk ────────────────────────────────────────────────────────────

class LocalFileListing:
    """Local-disk listing with a fixed block size.

    Parameters
    ----------
    block_size_bytes : int
        Value reported by :meth:`default_block_size` (local disks have no
        HDFS block size of their own).
    """

    def __init__(self, block_size_bytes: int = DEFAULT_LOCAL_BLOCK_SIZE_BYTES) -> None:
        self.block_size_bytes = block_size_bytes

    def glob(self, path: str) -> list[FileEntry]:
        matches = sorted(_glob.glob(_strip_scheme(path)))
        if not matches:
            raise FileSystemAccessError(f"Input path matches nothing: {path}")
        return [self._to_entry(m) for m in matches]

    def list(self, path: str) -> list[FileEntry]:
        local = _strip_scheme(path)
        try:
            names = sorted(os.listdir(local))
        except OSError as exc:
            raise FileSystemAccessError(f"Filesystem list failed for '{path}': {exc}") from exc
        return [self._to_entry(os.path.join(local, n)) for n in names]

    def content_summary(self, path: str) -> int:
        return sum(e.size_bytes for e in self.glob(path))

    def default_block_size(self, path: str) -> int:
        return self.block_size_bytes

    @staticmethod
    def _to_entry(path: str) -> FileEntry:
        try:
            if os.path.isdir(path):
                size = sum(
                    os.path.getsize(os.path.join(root, f))
                    for root, _dirs, files in os.walk(path)
                    for f in files
                )
                return FileEntry(path=path, size_bytes=size, is_directory=True)
            return FileEntry(path=path, size_bytes=os.path.getsize(path))
        except OSError as exc:
            raise FileSystemAccessError(f"Cannot stat '{path}': {exc}") from exc


def _strip_scheme(path: str) -> str:
    if path.startswith("file://"):
        return path[len("file://"):]
    if path.startswith("file:"):
        return path[len("file:"):]
    return path
