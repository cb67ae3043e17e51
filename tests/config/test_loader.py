from __future__ import annotations

import json
from pathlib import Path

import pytest
import yaml

from vacancy_harvester.config import ConfigLocator, ConfigRepository, GlobalConfig


def test_locator_honours_home_env(harvester_home: Path) -> None:
    locator = ConfigLocator()
    assert locator.project_root == harvester_home.resolve()
    assert locator.data_dir.is_dir()
    assert locator.logs_dir.is_dir()
    assert locator.global_config_path() == locator.data_dir / "global_config.yaml"


def test_first_load_writes_defaults(config_repository: ConfigRepository) -> None:
    config = config_repository.load_global_config()

    path = config_repository.locator.global_config_path()
    assert path.exists()
    stored = yaml.safe_load(path.read_text(encoding="utf-8"))
    assert stored["ingest"]["thread_pool_workers"] == config.ingest.thread_pool_workers
    assert config_repository.load_global_config() is config


def test_save_and_reload(config_repository: ConfigRepository) -> None:
    config = GlobalConfig.model_validate({"ingest": {"thread_pool_workers": 3}})
    config_repository.save_global_config(config)

    reloaded = config_repository.reload()

    assert reloaded is not config
    assert reloaded.ingest.thread_pool_workers == 3


def test_json_config_is_accepted(config_repository: ConfigRepository) -> None:
    path = config_repository.locator.data_dir / "global_config.json"
    path.write_text(json.dumps({"schedule": {"interval_seconds": 60}}), encoding="utf-8")

    config = config_repository.load_global_config()

    assert config.schedule.interval_seconds == 60


def test_non_mapping_config_rejected(config_repository: ConfigRepository) -> None:
    config_repository.locator.global_config_path().write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ValueError):
        config_repository.load_global_config()


def test_database_path_is_relative_to_home(config_repository: ConfigRepository, harvester_home: Path) -> None:
    assert config_repository.database_path() == (harvester_home / "data" / "vacancies.db").resolve()
