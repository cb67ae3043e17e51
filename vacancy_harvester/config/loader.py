"""Locate the harvester home directory and read/write ``global_config``."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

import yaml

from .models import GlobalConfig

HOME_ENV_VAR = "VACANCY_HARVESTER_HOME"
CONFIG_STEM = "global_config"
CONFIG_EXTENSIONS = (".yaml", ".yml", ".json")


def _load_yaml(text: str) -> Any:
    return yaml.safe_load(text) or {}


def _dump_yaml(payload: dict, stream) -> None:
    yaml.safe_dump(payload, stream, allow_unicode=True, sort_keys=False)


def _dump_json(payload: dict, stream) -> None:
    json.dump(payload, stream, ensure_ascii=False, indent=2)


_READERS: dict[str, Callable[[str], Any]] = {
    ".yaml": _load_yaml,
    ".yml": _load_yaml,
    ".json": json.loads,
}
_WRITERS = {".yaml": _dump_yaml, ".yml": _dump_yaml, ".json": _dump_json}


def read_mapping(path: Path) -> dict:
    """Parse a YAML or JSON file that must hold a top-level mapping."""

    reader = _READERS.get(path.suffix, json.loads)
    payload = reader(path.read_text(encoding="utf-8"))
    if not isinstance(payload, dict):
        raise ValueError(f"{path} does not contain a mapping at the top level")
    return payload


def write_mapping(path: Path, payload: dict) -> None:
    writer = _WRITERS.get(path.suffix, _dump_json)
    with path.open("w", encoding="utf-8") as stream:
        writer(payload, stream)


def _resolve_home(explicit: Path | None) -> Path:
    from_env = os.environ.get(HOME_ENV_VAR)
    if from_env:
        return Path(from_env).expanduser().resolve()
    if explicit is not None:
        return Path(explicit).resolve()
    return Path(__file__).resolve().parents[2]


@dataclass(slots=True)
class ConfigLocator:
    """Home directory layout: ``data/`` for config and the database, ``logs/``.

    ``VACANCY_HARVESTER_HOME`` overrides ``project_root`` when set.
    """

    project_root: Path | None = None
    data_dir: Path = field(init=False)
    logs_dir: Path = field(init=False)

    def __post_init__(self) -> None:
        home = _resolve_home(self.project_root)
        self.project_root = home
        self.data_dir = home / "data"
        self.logs_dir = home / "logs"
        for directory in (self.data_dir, self.logs_dir):
            directory.mkdir(parents=True, exist_ok=True)

    def global_config_path(self) -> Path:
        return self.data_dir / f"{CONFIG_STEM}{CONFIG_EXTENSIONS[0]}"

    def find_global_config(self) -> Path | None:
        """First existing config file, trying ``.yaml`` then ``.yml`` then ``.json``."""

        for suffix in CONFIG_EXTENSIONS:
            candidate = self.data_dir / f"{CONFIG_STEM}{suffix}"
            if candidate.is_file():
                return candidate
        return None


class ConfigRepository:
    """Cached access to the validated :class:`GlobalConfig`.

    A missing file is created with defaults on first load.
    """

    def __init__(self, locator: ConfigLocator | None = None) -> None:
        self.locator = locator or ConfigLocator()
        self._cached: GlobalConfig | None = None

    def load_global_config(self) -> GlobalConfig:
        if self._cached is None:
            source = self.locator.find_global_config()
            if source is None:
                self.save_global_config(GlobalConfig())
            else:
                self._cached = GlobalConfig.model_validate(read_mapping(source))
        return self._cached

    def save_global_config(self, config: GlobalConfig) -> None:
        write_mapping(self.locator.global_config_path(), config.model_dump(mode="json"))
        self._cached = config

    def reload(self) -> GlobalConfig:
        self._cached = None
        return self.load_global_config()

    def database_path(self) -> Path:
        storage = self.load_global_config().storage
        return storage.resolved_database_path(self.locator.project_root)


__all__ = [
    "CONFIG_EXTENSIONS",
    "HOME_ENV_VAR",
    "ConfigLocator",
    "ConfigRepository",
    "read_mapping",
    "write_mapping",
]
