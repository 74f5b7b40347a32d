"""Root settings model for feedloop configuration."""

from contextvars import ContextVar
from typing import Any

from pydantic import Field
from pydantic_settings import (
    BaseSettings,
    InitSettingsSource,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from feedloop.config.models.jobs import JobsConfig
from feedloop.config.models.observability import ObservabilityConfig
from feedloop.config.models.providers import ProvidersConfig
from feedloop.config.models.scheduling import SchedulingConfig
from feedloop.config.models.storage import StorageConfig

# Merged TOML values, visible only while Settings.from_files builds
_file_values: ContextVar[dict[str, Any]] = ContextVar("feedloop_file_values", default={})


class Settings(BaseSettings):
    """Everything the worker reads at startup.

    Sources, strongest first: constructor arguments, FEEDLOOP_* environment
    variables (``__`` separates nested keys), then TOML file values passed to
    `from_files`.
    """

    model_config = SettingsConfigDict(
        env_prefix="FEEDLOOP_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = Field(default="feedloop", description="Name attached to log lines")

    storage: StorageConfig = Field(default_factory=StorageConfig)
    providers: ProvidersConfig = Field(default_factory=ProvidersConfig)
    jobs: JobsConfig = Field(default_factory=JobsConfig)
    scheduling: SchedulingConfig = Field(default_factory=SchedulingConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)

    @classmethod
    def from_files(cls, values: dict[str, Any]) -> "Settings":
        """Build settings with values under environment overrides."""
        token = _file_values.set(values)
        try:
            return cls()
        finally:
            _file_values.reset(token)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            InitSettingsSource(settings_cls, init_kwargs=_file_values.get()),
        )
