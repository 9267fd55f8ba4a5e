# src/dbsweep/config/loader.py
from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from dbsweep.config.models import SweepConfig
from dbsweep.errors import ConfigError


class ConfigLoader:
    """Load a SweepConfig from YAML (file or text)."""

    @staticmethod
    def from_path(path: str | Path) -> SweepConfig:
        p = Path(path)
        if not p.exists():
            raise FileNotFoundError(f"Configuration file not found: {p}")
        return ConfigLoader.from_text(p.read_text(encoding="utf-8"), source=str(p))

    @staticmethod
    def from_text(text: str, source: str = "<string>") -> SweepConfig:
        try:
            raw = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {source}: {e}") from e
        return ConfigLoader.from_dict(raw, source=source)

    @staticmethod
    def from_dict(raw: Any, source: str = "<dict>") -> SweepConfig:
        if not isinstance(raw, dict):
            raise ConfigError(f"Configuration in {source} must be a mapping, got {type(raw).__name__}")
        try:
            return SweepConfig.model_validate(raw)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration in {source}:\n{e}") from e

