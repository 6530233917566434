"""Load bandit task configs from JSON or YAML experiment files.

A task config may be the whole file, or one section of a larger experiment
file (for example the ``bandit`` block next to page and storage settings the
host application reads).
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from bandit_task.errors import ConfigError

SUPPORTED_CONFIG_SUFFIXES: tuple[str, ...] = (".json", ".yaml", ".yml")


def load_config_mapping(path: str | Path, *, section: str | None = None) -> dict[str, Any]:
    """Load one config mapping from a JSON/YAML file.

    Parameters
    ----------
    path : str | pathlib.Path
        Config file path. Supported suffixes are `.json`, `.yaml`, and `.yml`.
    section : str | None, optional
        Top-level key holding the task config. ``None`` uses the whole file.

    Returns
    -------
    dict[str, Any]
        Parsed config mapping.

    Raises
    ------
    ConfigError
        If the suffix is unsupported, the file cannot be parsed, or the
        selected root/section is not an object mapping.
    ImportError
        If YAML parsing is requested without PyYAML installed.
    """

    config_path = Path(path)
    suffix = config_path.suffix.lower()
    if suffix not in SUPPORTED_CONFIG_SUFFIXES:
        supported = ", ".join(SUPPORTED_CONFIG_SUFFIXES)
        raise ConfigError(f"unsupported config file extension {suffix!r}; expected one of {supported}")

    text = config_path.read_text(encoding="utf-8")
    if suffix == ".json":
        try:
            raw = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ConfigError(f"{config_path}: invalid JSON ({exc.msg} at line {exc.lineno})") from exc
    else:
        try:
            import yaml
        except ImportError as exc:  # pragma: no cover - exercised only without pyyaml
            raise ImportError(
                "YAML config loading requires PyYAML. Install with `pip install pyyaml`."
            ) from exc
        try:
            raw = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ConfigError(f"{config_path}: invalid YAML ({exc})") from exc

    if not isinstance(raw, dict):
        raise ConfigError(f"{config_path}: config root must be a JSON/YAML object")
    if section is None:
        return raw

    if section not in raw:
        raise ConfigError(f"{config_path}: missing config section {section!r}")
    selected = raw[section]
    if not isinstance(selected, dict):
        raise ConfigError(f"{config_path}: config section {section!r} must be an object")
    return selected


__all__ = ["SUPPORTED_CONFIG_SUFFIXES", "load_config_mapping"]
