from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml
from jsonschema import Draft202012Validator

from ..errors import ConfigError
from ..utils.paths import find_project_config

_RESOURCE_DIR = Path(__file__).resolve().parent.parent / "resource"
_DEFAULTS_PATH = _RESOURCE_DIR / "evalshell.defaults.v1.yaml"
_SCHEMA_PATH = _RESOURCE_DIR / "evalshell.config.v1.schema.json"

# env var -> dotted config key
_ENV_OVERRIDES = {
    "EVALSHELL_RUNTIME": "runtime",
    "EVALSHELL_PROJECT": "project",
    "EVALSHELL_DIAGRAM_HOST": "diagram.host",
    "EVALSHELL_DIAGRAM_PORT": "diagram.port",
    "EVALSHELL_LOG_FILE": "logging.diagnostic_log",
}
_INT_KEYS = {"diagram.port"}


def deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    merged: dict[str, Any] = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def _load_yaml(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as f:
        loaded = yaml.safe_load(f)
    return loaded if isinstance(loaded, dict) else {}


def _load_json(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as f:
        loaded = json.load(f)
    return loaded if isinstance(loaded, dict) else {}


def load_config_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    suffix = path.suffix.lower()
    try:
        if suffix in {".yaml", ".yml"}:
            return _load_yaml(path)
        if suffix == ".json":
            return _load_json(path)
    except (yaml.YAMLError, json.JSONDecodeError) as exc:
        raise ConfigError(f"cannot parse config file {path}: {exc}") from exc
    raise ConfigError(f"unsupported config extension: {path}")


@lru_cache(maxsize=1)
def _packaged_defaults() -> dict[str, Any]:
    loaded = _load_yaml(_DEFAULTS_PATH)
    defaults = loaded.get("defaults")
    return defaults if isinstance(defaults, dict) else {}


@lru_cache(maxsize=1)
def _schema() -> dict[str, Any]:
    return _load_json(_SCHEMA_PATH)


def set_dotted(config: Mapping[str, Any], dotted_key: str, value: Any) -> dict[str, Any]:
    head, _, rest = dotted_key.partition(".")
    updated = dict(config)
    if rest:
        child = updated.get(head)
        updated[head] = set_dotted(child if isinstance(child, Mapping) else {}, rest, value)
    else:
        updated[head] = value
    return updated


def _apply_env_overrides(config: dict[str, Any], environ: Mapping[str, str]) -> dict[str, Any]:
    for env_name, dotted_key in _ENV_OVERRIDES.items():
        raw = environ.get(env_name)
        if not raw:
            continue
        value: Any = raw
        if dotted_key in _INT_KEYS:
            try:
                value = int(raw)
            except ValueError as exc:
                raise ConfigError(f"{env_name} must be an integer, got {raw!r}") from exc
        config = set_dotted(config, dotted_key, value)
    return config


def _apply_cli_overrides(config: dict[str, Any], overrides: Mapping[str, Any]) -> dict[str, Any]:
    for dotted_key, value in overrides.items():
        if value is not None:
            config = set_dotted(config, dotted_key, value)
    return config


def validate_config(config: Mapping[str, Any]) -> None:
    validator = Draft202012Validator(_schema())
    errors = sorted(validator.iter_errors(config), key=lambda e: e.json_path)
    if errors:
        rendered = "\n".join(f"- {e.json_path or '$'}: {e.message}" for e in errors)
        raise ConfigError(f"invalid configuration:\n{rendered}")


def load_config(
    *,
    project_root: Path,
    config_path: Optional[str] = None,
    overrides: Optional[Mapping[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> dict[str, Any]:
    """Defaults, then the project file, then environment, then command-line flags."""
    config: dict[str, Any] = dict(_packaged_defaults())

    if config_path:
        config = deep_merge(config, load_config_file(Path(config_path).expanduser()))
    else:
        found = find_project_config(project_root)
        if found is not None:
            config = deep_merge(config, load_config_file(found))

    config = _apply_env_overrides(config, os.environ if environ is None else environ)
    config = _apply_cli_overrides(config, overrides or {})
    validate_config(config)
    return config


__all__ = ["deep_merge", "load_config", "load_config_file", "set_dotted", "validate_config"]
