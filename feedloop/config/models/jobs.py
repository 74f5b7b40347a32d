"""Hatchet worker settings."""

from pydantic import BaseModel, Field, SecretStr, field_validator


class HatchetConfig(BaseModel):
    """Connection and worker settings for the Hatchet engine.

    The api_key normally arrives through FEEDLOOP_JOBS__HATCHET__API_KEY
    rather than a TOML file.
    """

    enabled: bool = True
    server_url: str = "http://localhost:7077"
    api_key: SecretStr | None = None
    worker_name: str = "feedloop-worker"
    worker_concurrency: int = Field(default=10, ge=1, le=100, description="Job slots per worker")
    retry_max_attempts: int = Field(default=3, ge=1, le=10)
    cron_scheduling: str = Field(
        default="0 6 * * *",
        description="When the daily scheduling pass runs (UTC)",
    )

    @field_validator("cron_scheduling")
    @classmethod
    def _five_cron_fields(cls, value: str) -> str:
        if len(value.split()) != 5:
            raise ValueError(f"Expected a five-field cron expression, got {value!r}")
        return value


class JobsConfig(BaseModel):
    hatchet: HatchetConfig = Field(default_factory=HatchetConfig)
