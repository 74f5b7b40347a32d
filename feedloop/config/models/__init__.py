"""Nested configuration sections of `Settings`."""

from feedloop.config.models.jobs import HatchetConfig, JobsConfig
from feedloop.config.models.observability import LoggingConfig, MetricsConfig, ObservabilityConfig
from feedloop.config.models.providers import LLMConfig, LLMTierConfig, ProvidersConfig
from feedloop.config.models.scheduling import SchedulingConfig
from feedloop.config.models.storage import MutexConfig, StateStoreConfig, StorageConfig

__all__ = [
    "HatchetConfig",
    "JobsConfig",
    "LLMConfig",
    "LLMTierConfig",
    "LoggingConfig",
    "MetricsConfig",
    "MutexConfig",
    "ObservabilityConfig",
    "ProvidersConfig",
    "SchedulingConfig",
    "StateStoreConfig",
    "StorageConfig",
]
