"""feedloop configuration.

    from feedloop.config import get_settings

    ttl = get_settings().storage.state.ttl_seconds

Values come from code defaults, then config/default.toml, then
config/{FEEDLOOP_ENV}.toml, then FEEDLOOP_* environment variables.
"""

from functools import lru_cache

from feedloop.config.loader import load_config
from feedloop.config.settings import Settings


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Process-wide settings, read once and cached."""
    return Settings.from_files(load_config())


def reload_settings() -> Settings:
    """Drop the cached settings and read the files again."""
    get_settings.cache_clear()
    return get_settings()


__all__ = ["Settings", "get_settings", "reload_settings"]
