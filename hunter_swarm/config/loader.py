"""Configuration loading helpers for hunter-swarm."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path

import yaml
from pydantic import ValidationError

from ..errors import ConfigurationError
from .models import SwarmConfig

CONFIG_EXTENSIONS = (".yaml", ".yml", ".json")
SWARM_CONFIG_FILENAME = "swarm_config.yaml"


def _read_file(path: Path) -> dict:
    text = path.read_text(encoding="utf-8")
    if path.suffix in (".yaml", ".yml"):
        data = yaml.safe_load(text) or {}
    else:
        data = json.loads(text)
    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration file must contain a mapping: {path}")
    return data


def _write_file(path: Path, payload: dict) -> None:
    with path.open("w", encoding="utf-8") as stream:
        if path.suffix in (".yaml", ".yml"):
            yaml.safe_dump(payload, stream, allow_unicode=True, sort_keys=False)
        else:
            json.dump(payload, stream, indent=2, ensure_ascii=False)


def parse_config(payload: dict) -> SwarmConfig:
    """Validate a raw mapping, converting schema errors to ``ConfigurationError``."""

    try:
        return SwarmConfig.model_validate(payload)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid swarm configuration: {exc}") from exc


@dataclass(slots=True)
class ConfigLocator:
    """Resolve important paths from project root."""

    project_root: Path | None = None
    data_dir: Path | None = None
    logs_dir: Path | None = None

    def __post_init__(self) -> None:
        env_root = os.environ.get("HUNTER_SWARM_HOME")
        if env_root:
            root = Path(env_root).expanduser().resolve()
        else:
            root = (self.project_root or Path.cwd()).resolve()
        self.project_root = root
        self.data_dir = (root / "data").resolve()
        self.logs_dir = (root / "logs").resolve()
        self.ensure_directories()

    def ensure_directories(self) -> None:
        for directory in (self.data_dir, self.logs_dir):
            directory.mkdir(parents=True, exist_ok=True)

    def config_path(self) -> Path:
        return self.data_dir / SWARM_CONFIG_FILENAME


class ConfigRepository:
    """Repository encapsulating config IO and schema validation."""

    def __init__(self, locator: ConfigLocator | None = None) -> None:
        self.locator = locator or ConfigLocator()
        self._cache: SwarmConfig | None = None

    def load(self, path: Path | None = None) -> SwarmConfig:
        """Load an explicit file, or the home config (created with defaults)."""

        if path is not None:
            if not path.exists():
                raise FileNotFoundError(f"Swarm configuration not found: {path}")
            if path.suffix not in CONFIG_EXTENSIONS:
                raise ConfigurationError(f"Unsupported configuration format: {path.suffix}")
            return parse_config(_read_file(path))
        if self._cache is not None:
            return self._cache
        default_path = self.locator.config_path()
        if default_path.exists():
            config = parse_config(_read_file(default_path))
        else:
            config = SwarmConfig()
            self.save(config)
        self._cache = config
        return config

    def save(self, config: SwarmConfig, path: Path | None = None) -> Path:
        target = path or self.locator.config_path()
        target.parent.mkdir(parents=True, exist_ok=True)
        _write_file(target, config.model_dump(mode="json"))
        if path is None:
            self._cache = config
        return target

    def database_path(self, config: SwarmConfig) -> Path:
        return config.resolved_database_path(self.locator.project_root)


__all__ = ["CONFIG_EXTENSIONS", "ConfigLocator", "ConfigRepository", "parse_config"]
