"""
Configuration system for sqlquality.

Implements 12-factor config principles:
- Environment variables as primary config source
- Optional JSON or YAML config file
- Heuristic thresholds kept as named settings rather than literals

Usage:
    from sqlquality.config import get_config

    config = get_config()
    if config.is_rule_enabled("FullTableScan"):
        ...

Environment variables:
- SQLQUALITY_CONFIG_FILE=sqlquality.yaml
- SQLQUALITY_LOW_SELECTIVITY_FILTERED_PCT=90
- SQLQUALITY_LOW_SELECTIVITY_MIN_ROWS=100
- SQLQUALITY_DISABLED_RULES=ImplicitTypeConversion,low_selectivity
- SQLQUALITY_FAIL_ON=root
"""

from __future__ import annotations

import json
import logging
import os
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from sqlquality.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

ENV_PREFIX = "SQLQUALITY_"


class FailOn(str, Enum):
    """Which issues make a CI gate fail."""

    ROOT = "root"      # Any root-cause issue
    ANY = "any"        # Any issue, derived included
    NONE = "none"      # Report only, never fail


class Config(BaseModel):
    """
    sqlquality configuration.

    The low-selectivity thresholds are a fixed heuristic: a table node is
    reported when filtered > low_selectivity_filtered_pct AND
    rows_examined_per_scan > low_selectivity_min_rows.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    low_selectivity_filtered_pct: float = Field(
        default=90.0,
        ge=0.0,
        le=100.0,
        description="filtered percentage above which low selectivity is reported",
    )
    low_selectivity_min_rows: int = Field(
        default=100,
        ge=0,
        description="rows_examined_per_scan above which low selectivity is reported",
    )
    disabled_rules: frozenset[str] = Field(
        default_factory=frozenset,
        description="Catalog kinds or issue kinds to suppress",
    )
    fail_on: FailOn = Field(
        default=FailOn.ROOT,
        description="Issues that fail a batch gate",
    )

    def is_rule_enabled(self, kind: str) -> bool:
        """Check a catalog kind (FullTableScan) or issue kind (full_table_scan)."""
        return kind not in self.disabled_rules


DEFAULT_CONFIG = Config()


def _parse_env_int(key: str, value: str) -> int:
    try:
        return int(value)
    except ValueError as e:
        raise ConfigurationError(f"{key} must be an integer, got {value!r}", config_key=key) from e


def _parse_env_float(key: str, value: str) -> float:
    try:
        return float(value)
    except ValueError as e:
        raise ConfigurationError(f"{key} must be a number, got {value!r}", config_key=key) from e


def _build(data: dict[str, Any], origin: str) -> Config:
    try:
        return Config(**data)
    except ValidationError as e:
        first = e.errors()[0]
        key = ".".join(str(p) for p in first.get("loc", ())) or None
        raise ConfigurationError(f"Invalid configuration in {origin}: {e}", config_key=key) from e


def load_config_from_env(environ: dict[str, str] | None = None) -> Config:
    """Load configuration from SQLQUALITY_* environment variables."""
    env = os.environ if environ is None else environ
    data: dict[str, Any] = {}

    key = f"{ENV_PREFIX}LOW_SELECTIVITY_FILTERED_PCT"
    if key in env:
        data["low_selectivity_filtered_pct"] = _parse_env_float(key, env[key])

    key = f"{ENV_PREFIX}LOW_SELECTIVITY_MIN_ROWS"
    if key in env:
        data["low_selectivity_min_rows"] = _parse_env_int(key, env[key])

    key = f"{ENV_PREFIX}DISABLED_RULES"
    if key in env:
        data["disabled_rules"] = frozenset(
            r.strip() for r in env[key].split(",") if r.strip()
        )

    key = f"{ENV_PREFIX}FAIL_ON"
    if key in env:
        data["fail_on"] = env[key].strip().lower()

    return _build(data, "environment")


def load_config_from_file(path: Path) -> Config:
    """
    Load configuration from a JSON or YAML file.

    Falls back to environment variables when the file does not exist.
    """
    if not path.exists():
        logger.warning("Config file not found: %s, using environment", path)
        return load_config_from_env()

    try:
        with open(path, encoding="utf-8") as f:
            if path.suffix in (".yaml", ".yml"):
                data = yaml.safe_load(f)
            else:
                data = json.load(f)
    except (OSError, json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Failed to load config from {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping")

    if "disabled_rules" in data:
        data["disabled_rules"] = frozenset(data["disabled_rules"] or ())
    return _build(data, str(path))


@lru_cache(maxsize=1)
def get_config() -> Config:
    """
    Get the global configuration instance.

    Loads from:
    1. SQLQUALITY_CONFIG_FILE (if set)
    2. Environment variables (default)

    Result is cached for the lifetime of the process.
    """
    config_file = os.environ.get(f"{ENV_PREFIX}CONFIG_FILE")

    if config_file:
        return load_config_from_file(Path(config_file))

    return load_config_from_env()


def reset_config() -> None:
    """Reset the cached configuration (mainly for testing)."""
    get_config.cache_clear()
