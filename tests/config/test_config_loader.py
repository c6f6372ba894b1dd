from __future__ import annotations

import json
from pathlib import Path

import pytest
import yaml

from hunter_swarm.config import ConfigLocator, ConfigRepository, FailurePolicy, parse_config
from hunter_swarm.errors import ConfigurationError


def test_locator_uses_home_variable(swarm_home: Path) -> None:
    locator = ConfigLocator()
    assert locator.project_root == swarm_home.resolve()
    assert locator.data_dir.is_dir()
    assert locator.logs_dir.is_dir()
    assert locator.config_path() == swarm_home.resolve() / "data" / "swarm_config.yaml"


def test_first_load_writes_defaults(swarm_home: Path) -> None:
    repository = ConfigRepository()
    config = repository.load()

    path = repository.locator.config_path()
    assert path.exists()
    stored = yaml.safe_load(path.read_text(encoding="utf-8"))
    assert stored["targets"]["priority"] == config.targets.priority
    assert repository.load() is config
    assert repository.database_path(config) == swarm_home.resolve() / "data" / "swarm.db"


def test_load_explicit_yaml_and_json(tmp_path: Path) -> None:
    yaml_path = tmp_path / "campaign.yaml"
    yaml_path.write_text(
        "targets:\n  general: 40\nsources:\n  directory:\n    failure_policy: skip\n",
        encoding="utf-8",
    )
    json_path = tmp_path / "campaign.json"
    json_path.write_text(json.dumps({"general_chunk_size": 7}), encoding="utf-8")

    repository = ConfigRepository()
    from_yaml = repository.load(yaml_path)
    assert from_yaml.targets.general == 40
    assert from_yaml.source("directory").failure_policy is FailurePolicy.SKIP
    assert repository.load(json_path).general_chunk_size == 7


def test_save_round_trips(tmp_path: Path) -> None:
    repository = ConfigRepository()
    config = parse_config({"concurrency": {"workers": 3}, "database": {"backend": "mongodb"}})
    target = repository.save(config, tmp_path / "out.yaml")

    reloaded = repository.load(target)
    assert reloaded.concurrency.workers == 3
    assert reloaded.database.backend == "mongodb"
    assert reloaded.database.path == Path("data/swarm.db")


def test_load_errors(tmp_path: Path) -> None:
    repository = ConfigRepository()
    with pytest.raises(FileNotFoundError):
        repository.load(tmp_path / "missing.yaml")

    unsupported = tmp_path / "campaign.toml"
    unsupported.write_text("x = 1", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        repository.load(unsupported)

    not_mapping = tmp_path / "list.yaml"
    not_mapping.write_text("- 1\n- 2\n", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        repository.load(not_mapping)

    invalid = tmp_path / "invalid.yaml"
    invalid.write_text("concurrency:\n  workers: 0\n", encoding="utf-8")
    with pytest.raises(ConfigurationError, match="Invalid swarm configuration"):
        repository.load(invalid)
