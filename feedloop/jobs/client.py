"""Hatchet client construction."""

from hatchet_sdk import ClientConfig, Hatchet

from feedloop.config.models.jobs import HatchetConfig
from feedloop.observability.logging import get_logger

logger = get_logger(__name__)


def create_hatchet_client(config: HatchetConfig) -> Hatchet | None:
    """Connect to the Hatchet engine described by config.

    Returns None when Hatchet is switched off or the SDK rejects the
    configuration (typically a missing or malformed token).
    """
    if not config.enabled:
        logger.info("hatchet_disabled")
        return None

    options: dict[str, str] = {"server_url": config.server_url}
    if config.api_key is not None and config.api_key.get_secret_value():
        options["token"] = config.api_key.get_secret_value()

    try:
        client = Hatchet(config=ClientConfig(**options))
    except ValueError as e:
        logger.error("hatchet_client_init_failed", server_url=config.server_url, error=str(e))
        return None

    logger.info("hatchet_client_initialized", server_url=config.server_url)
    return client
