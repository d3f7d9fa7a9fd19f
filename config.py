"""Runtime configuration using pydantic-settings."""

import logging

from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Settings loaded from CARDIORISK_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="CARDIORISK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_title: str = "CardioRisk — 10-year cardiovascular risk"
    log_level: str = "INFO"

    # Strict: a missing or non-finite required value fails the calculation.
    # Lenient: it is replaced by 0, as the early calculators did.
    strict_inputs: bool = True

    default_model: str = "riskcalculator"


def configure_logging(config: Settings) -> None:
    """Set the root log level from settings and record the active settings."""
    logging.basicConfig(level=config.log_level.upper())
    logger.info(
        "Settings loaded: strict_inputs=%s default_model=%s log_level=%s",
        config.strict_inputs,
        config.default_model,
        config.log_level,
    )


settings = Settings()
