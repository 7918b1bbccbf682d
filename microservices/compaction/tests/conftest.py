"""
Shared fixtures for the compaction microservice tests.

Most tests are pure Python and use :class:`InMemoryFileListing`; only the
Spark execution and Hadoop listing tests need the ``spark`` fixture.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Callable, Optional

# Set Python executable paths BEFORE importing pyspark
os.environ["PYSPARK_PYTHON"] = sys.executable
os.environ["PYSPARK_DRIVER_PYTHON"] = sys.executable

_project_root = str(Path(__file__).resolve().parents[3])
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

import pytest
from pyspark.sql import SparkSession

from microservices.compaction.src.errors import FileSystemAccessError
from microservices.compaction.src.file_listing import FileEntry


class InMemoryFileListing:
    """``FileListing`` backed by dicts; records every call."""

    def __init__(
        self,
        globs: dict[str, list[FileEntry]],
        children: Optional[dict[str, list[FileEntry]]] = None,
        space_consumed: Optional[dict[str, int]] = None,
        block_size: int = 134217728,
    ) -> None:
        self.globs = globs
        self.children = children or {}
        self.space_consumed = space_consumed or {}
        self.block_size = block_size
        self.calls: list[tuple[str, str]] = []

    def glob(self, path: str) -> list[FileEntry]:
        self.calls.append(("glob", path))
        if path not in self.globs:
            raise FileSystemAccessError(f"Input path matches nothing: {path}")
        return list(self.globs[path])

    def list(self, path: str) -> list[FileEntry]:
        self.calls.append(("list", path))
        return list(self.children.get(path, []))

    def content_summary(self, path: str) -> int:
        self.calls.append(("content_summary", path))
        return self.space_consumed[path]

    def default_block_size(self, path: str) -> int:
        self.calls.append(("default_block_size", path))
        return self.block_size


@pytest.fixture()
def make_listing() -> Callable[..., InMemoryFileListing]:
    return InMemoryFileListing


@pytest.fixture()
def snappy_parquet_dir() -> InMemoryFileListing:
    """``/data/in`` with two snappy Parquet parts plus bookkeeping files."""
    base = "hdfs://namenode:9000/data/in"
    children = [
        FileEntry(f"{base}/_SUCCESS", 0),
        FileEntry(f"{base}/.part-00000.snappy.parquet.crc", 12),
        FileEntry(f"{base}/part-00000.snappy.parquet", 600 * 1024 * 1024),
        FileEntry(f"{base}/part-00001.snappy.parquet", 424 * 1024 * 1024),
    ]
    return InMemoryFileListing(
        globs={base: [FileEntry(base, 1024 * 1024 * 1024, is_directory=True)]},
        children={base: children},
        space_consumed={base: 1024 * 1024 * 1024},
    )


@pytest.fixture(scope="session")
def spark() -> SparkSession:
    """Create a lightweight local SparkSession for testing."""
    session = (
        SparkSession.builder
        .master("local[1]")
        .appName("compaction-tests")
        .config("spark.ui.enabled", "false")
        .config("spark.sql.shuffle.partitions", "1")
        .config("spark.default.parallelism", "1")
        .config("spark.python.worker.reuse", "false")
        .config("spark.network.timeout", "300s")
        .getOrCreate()
    )
    yield session
    session.stop()
