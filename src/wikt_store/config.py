"""Settings and the prefix-search row budget policy.

Settings are read from a YAML file::

    database: /data/enwikt.sqlite
    log_level: INFO
    compensation:
      definition: 42
      semantic_relation: 512
      source_language: 555
      translation: 55555
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from wikt_store.exceptions import ConfigError
from wikt_store.filters import PageFilter

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "WIKT_STORE_CONFIG"

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass(frozen=True, slots=True)
class CompensationPolicy:
    """Extra rows fetched per active post-filter in a prefix search.

    Pages failing a filter are discarded after assembly, so the store is
    asked for ``limit`` plus these reserves.
    """

    definition: int = 42
    semantic_relation: int = 512
    source_language: int = 555
    translation: int = 55555

    def __post_init__(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ConfigError(
                    f"compensation.{f.name} must be a non-negative integer, "
                    f"got {value!r}"
                )

    def reserve_for(self, page_filter: PageFilter) -> int:
        reserve = 0
        if page_filter.require_definition:
            reserve += self.definition
        if page_filter.require_semantic_relation:
            reserve += self.semantic_relation
        if page_filter.source_languages:
            reserve += self.source_language
        if page_filter.translation_languages:
            reserve += self.translation
        return reserve

    def row_budget(self, limit: int, page_filter: PageFilter) -> int | None:
        """Rows to request from the store; None means no ceiling."""
        if limit < 0:
            return None
        return limit + self.reserve_for(page_filter)


@dataclass(frozen=True, slots=True)
class Settings:
    """Top-level configuration."""

    database: str = ":memory:"
    log_level: str = "WARNING"
    compensation: CompensationPolicy = field(default_factory=CompensationPolicy)


def load_settings(path: str | Path | None = None) -> Settings:
    """Load settings from ``path``, ``$WIKT_STORE_CONFIG`` or defaults."""
    if path is None:
        path = os.environ.get(CONFIG_ENV_VAR) or None
    if path is None:
        return Settings()

    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")
    logger.debug("Loading settings from %s", path)
    return parse_settings(_load_yaml_file(path))


def _load_yaml_file(path: Path) -> dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        mark = getattr(e, "problem_mark", None)
        where = f" (line {mark.line + 1})" if mark else ""
        raise ConfigError(f"Invalid YAML in {path}{where}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError("Config root must be a mapping (dictionary)")
    return data


def parse_settings(data: dict[str, Any]) -> Settings:
    known = {"database", "log_level", "compensation"}
    unknown = set(data) - known
    if unknown:
        raise ConfigError(f"Unknown config keys: {', '.join(sorted(unknown))}")

    kwargs: dict[str, Any] = {}
    if "database" in data:
        if not isinstance(data["database"], str):
            raise ConfigError("database must be a string path")
        kwargs["database"] = data["database"]
    if "log_level" in data:
        level = str(data["log_level"]).upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ConfigError(f"Unknown log level: {data['log_level']!r}")
        kwargs["log_level"] = level
    if "compensation" in data:
        comp = data["compensation"] or {}
        if not isinstance(comp, dict):
            raise ConfigError("compensation must be a mapping")
        allowed = {f.name for f in fields(CompensationPolicy)}
        bad = set(comp) - allowed
        if bad:
            raise ConfigError(
                f"Unknown compensation keys: {', '.join(sorted(bad))}"
            )
        kwargs["compensation"] = CompensationPolicy(**comp)
    return Settings(**kwargs)


def configure_logging(level: str | int = "WARNING") -> None:
    """Install a stderr handler; meant for the command line only."""
    logging.basicConfig(level=level, format=LOG_FORMAT)
