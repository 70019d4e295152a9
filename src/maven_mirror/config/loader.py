from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path
from typing import Any, MutableMapping, Sequence

import yaml
from dotenv import load_dotenv

from maven_mirror.config.models import AppConfig, ConfigLoadRequest

logger = logging.getLogger(__name__)

DEFAULT_REPOSITORY_URL = "https://repo.maven.apache.org/maven2/"
EXAMPLE_CONFIG_PATH = Path("examples/config.yaml")


def default_config_data() -> dict[str, Any]:
    return {
        "mirror": {
            "url": DEFAULT_REPOSITORY_URL,
            "base_folder": str(Path.cwd() / "library"),
            "cache_folder": str(Path.cwd() / "cache"),
            "log_folder": str(Path.cwd() / "log"),
            "retry_count": 10,
            "parallel_count": 10,
            "cache_expire_days": 30,
        },
        "logging": {
            "level": "INFO",
            "console": True,
            "file": {"enabled": True, "path": "{log_folder}/maven-mirror.log", "rotation": {"backup_count": 30}},
        },
    }


def _ensure_default_config(target_path: Path) -> None:
    target_path.parent.mkdir(parents=True, exist_ok=True)
    if EXAMPLE_CONFIG_PATH.exists():
        shutil.copyfile(EXAMPLE_CONFIG_PATH, target_path)
        return
    target_path.write_text(yaml.safe_dump(default_config_data(), sort_keys=False), encoding="utf-8")
    logger.info("Wrote default configuration. path=%s", target_path)


def _read_yaml_config(path: Path) -> dict[str, Any]:
    if not path.exists():
        _ensure_default_config(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    raw = path.read_text(encoding="utf-8")
    data = yaml.safe_load(raw)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Top-level YAML must be a mapping, got: {type(data).__name__}")
    return data


def _load_dotenv_if_present(dotenv_path: Path) -> None:
    if not dotenv_path.exists():
        return
    load_dotenv(dotenv_path=dotenv_path, override=False)


def _env_var_name_to_segments(env_var_name: str, prefix: str) -> Sequence[str]:
    remainder = env_var_name[len(prefix) :]
    parts = [p for p in remainder.split("__") if p]
    if not parts:
        raise ValueError(f"Invalid environment variable override name: {env_var_name}")
    return [p.lower() for p in parts]


def _get_parent_mapping(config: MutableMapping[str, Any], path: Sequence[str]) -> MutableMapping[str, Any]:
    cur: MutableMapping[str, Any] = config
    for segment in path[:-1]:
        # Sections with defaults may be omitted from the YAML file.
        next_value = cur.setdefault(segment, {})
        if not isinstance(next_value, dict):
            dotted = ".".join(path)
            raise TypeError(f"Configuration key path does not point to a mapping: {dotted}")
        cur = next_value
    return cur


def _apply_env_overrides(config: MutableMapping[str, Any], env_prefix: str) -> None:
    for name, value in os.environ.items():
        if not name.startswith(env_prefix):
            continue

        segments = _env_var_name_to_segments(name, env_prefix)
        parent = _get_parent_mapping(config, segments)
        # Unknown keys are rejected by the extra="forbid" models.
        parent[segments[-1]] = value


class YamlConfigLoader:
    def load(self, request: ConfigLoadRequest = ConfigLoadRequest()) -> AppConfig:
        config = _read_yaml_config(Path(request.yaml_path))

        if request.dotenv_path is not None:
            _load_dotenv_if_present(Path(request.dotenv_path))

        _apply_env_overrides(config, request.env_prefix)
        return AppConfig.model_validate(config)
