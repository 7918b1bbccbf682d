"""
Configuration loader for the compaction service.

Reads ``compaction_config.yaml`` and fills in defaults for every section.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from microservices.compaction.src.file_listing import DEFAULT_LOCAL_BLOCK_SIZE_BYTES
from microservices.compaction.src.formats import CompactionStrategy
from microservices.compaction.src.sizing import SizeRangeRule

logger = logging.getLogger(__name__)

_DEFAULT_CONFIG_PATH = "microservices/compaction/config/compaction_config.yaml"


def load_config(path: str | None = None) -> dict[str, Any]:
    """Read the YAML config and return it with defaults applied.

    Parameters
    ----------
    path : str | None
        Explicit path.  Falls back to *_DEFAULT_CONFIG_PATH*.

    Raises
    ------
    FileNotFoundError
        If the YAML file does not exist.
    yaml.YAMLError
        If the file is not valid YAML.
    """
    config_path = path or _DEFAULT_CONFIG_PATH
    p = Path(config_path)

    if not p.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(p, "r", encoding="utf-8") as fh:
        cfg = yaml.safe_load(fh) or {}

    logger.info("[config] Loaded configuration from %s", config_path)
    return _apply_defaults(cfg)


def _apply_defaults(cfg: dict[str, Any]) -> dict[str, Any]:
    spark = cfg.setdefault("spark", {})
    spark.setdefault("app_name", "spark-compaction")
    spark.setdefault("master", None)
    spark["config"] = spark.get("config") or {}

    comp = cfg.setdefault("compaction", {})
    comp.setdefault("strategy", CompactionStrategy.BLOCK_SIZE.value)
    comp["size_ranges_for_compaction"] = comp.get("size_ranges_for_compaction") or []

    local = cfg.setdefault("local", {})
    local.setdefault("block_size_bytes", DEFAULT_LOCAL_BLOCK_SIZE_BYTES)

    return cfg


def size_ranges_from_config(cfg: dict[str, Any]) -> tuple[SizeRangeRule, ...]:
    """Parse ``compaction.size_ranges_for_compaction`` in file order."""
    raw = cfg.get("compaction", {}).get("size_ranges_for_compaction") or []
    return tuple(SizeRangeRule.from_mapping(entry) for entry in raw)
