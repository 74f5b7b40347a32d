"""Logging and metrics settings."""

from typing import Literal

from pydantic import BaseModel, Field

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LoggingConfig(BaseModel):
    level: LogLevel = "INFO"
    format: Literal["json", "console"] = "json"
    # Masks credentials, contact details and reviewer feedback text
    redact_pii: bool = True


class MetricsConfig(BaseModel):
    enabled: bool = True
    port: int = Field(default=9090, ge=1, le=65535, description="Prometheus scrape port")


class ObservabilityConfig(BaseModel):
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)
