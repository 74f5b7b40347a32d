"""Layered TOML configuration.

`config/default.toml` is required; `config/{FEEDLOOP_ENV}.toml` is laid
over it when present. Tables merge key by key, anything else (including
arrays such as quiet days) is replaced wholesale.
"""

import os
import tomllib
from pathlib import Path
from typing import Any

CONFIG_DIR_VAR = "FEEDLOOP_CONFIG_DIR"
ENVIRONMENT_VAR = "FEEDLOOP_ENV"
DEFAULT_ENVIRONMENT = "development"
DEFAULT_FILE = "default.toml"


def find_config_dir(start: Path | None = None) -> Path:
    """Locate the directory holding default.toml.

    FEEDLOOP_CONFIG_DIR wins when set and must exist. Otherwise the
    search walks up from start (the working directory by default) and
    falls back to a relative 'config' path.
    """
    override = os.environ.get(CONFIG_DIR_VAR)
    if override:
        path = Path(override)
        if not path.is_dir():
            raise FileNotFoundError(f"Config directory not found: {override}")
        return path

    origin = (start or Path.cwd()).resolve()
    for directory in (origin, *origin.parents):
        candidate = directory / "config"
        if (candidate / DEFAULT_FILE).is_file():
            return candidate
    return Path("config")


def get_environment() -> str:
    return os.environ.get(ENVIRONMENT_VAR) or DEFAULT_ENVIRONMENT


def read_toml(path: Path, *, required: bool = True) -> dict[str, Any]:
    """Parse one TOML file.

    A missing optional file reads as empty.

    Raises:
        FileNotFoundError: If a required file is missing
        tomllib.TOMLDecodeError: If the file is not valid TOML
    """
    if not path.is_file():
        if required:
            raise FileNotFoundError(
                f"Configuration file not found: {path}. "
                f"Create it or point {CONFIG_DIR_VAR} at a directory containing it."
            )
        return {}
    with path.open("rb") as f:
        return tomllib.load(f)


def deep_merge(base: dict[str, Any], *overrides: dict[str, Any]) -> dict[str, Any]:
    """Merge overrides into a copy of base, later overrides winning."""
    merged = dict(base)
    for override in overrides:
        for key, value in override.items():
            current = merged.get(key)
            if isinstance(current, dict) and isinstance(value, dict):
                merged[key] = deep_merge(current, value)
            else:
                merged[key] = value
    return merged


def load_config(
    environment: str | None = None,
    config_dir: Path | None = None,
) -> dict[str, Any]:
    """Read default.toml and the environment overlay into one dict."""
    directory = config_dir or find_config_dir()
    env = environment or get_environment()

    return deep_merge(
        read_toml(directory / DEFAULT_FILE),
        read_toml(directory / f"{env}.toml", required=False),
    )
