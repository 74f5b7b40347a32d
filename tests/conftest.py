"""Shared test fixtures for the feedloop test suite."""

import os
from collections.abc import Callable, Generator
from pathlib import Path

import pytest

from feedloop.config import get_settings


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Hide FEEDLOOP_* variables from the developer's shell."""
    for name in list(os.environ):
        if name.startswith("FEEDLOOP_"):
            monkeypatch.delenv(name)


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Generator[None, None, None]:
    """Forget cached settings around every test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def config_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Empty config directory that FEEDLOOP_CONFIG_DIR points at."""
    directory = tmp_path / "config"
    directory.mkdir()
    monkeypatch.setenv("FEEDLOOP_CONFIG_DIR", str(directory))
    return directory


@pytest.fixture
def write_config(config_dir: Path) -> Callable[..., None]:
    """Write TOML files into config_dir, one keyword per environment.

    Usage:
        write_config(default="app_name = 'test'", staging="debug = true")
    """

    def _write(**files: str) -> None:
        for environment, content in files.items():
            (config_dir / f"{environment}.toml").write_text(content)

    return _write


@pytest.fixture
def repository_config_dir() -> Path:
    """The config/ directory shipped with the repository."""
    return Path(__file__).resolve().parents[1] / "config"
