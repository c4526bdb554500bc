"""
Configuration Management

Settings for the PMML compiler, loaded from the environment with Pydantic
validation, plus the logging setup shared by command line tools and tests.
"""

import logging
import os
from functools import lru_cache
from logging import Handler
from logging.handlers import RotatingFileHandler
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
) -> None:
    """
    Logging setup for applications embedding the compiler.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path to a rotating log file (creates directory if needed)
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove all existing handlers to prevent duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)

        try:
            file_handler: Handler = RotatingFileHandler(
                log_file,
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding="utf-8",
            )
            file_handler.setLevel(level)
            file_handler.setFormatter(
                logging.Formatter(
                    "%(asctime)s [%(levelname)8s] %(name)s: %(message)s "
                    "[%(filename)s:%(lineno)d in %(funcName)s()]"
                )
            )
            root_logger.addHandler(file_handler)
        except OSError as e:
            root_logger.warning(f"Could not setup file logging to {log_file}: {e}")

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    root_logger.addHandler(console_handler)

    root_logger.info(f"Logging initialized. Level: {log_level}")


class Settings(BaseSettings):
    """
    Compiler settings with automatic environment variable loading.
    Every field can be overridden with a PIPELINE2PMML_ prefixed variable.
    """

    model_config = SettingsConfigDict(
        env_prefix="PIPELINE2PMML_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # === APPLICATION METADATA (written to the PMML header) ===
    APP_NAME: str = "pipeline2pmml"
    APP_VERSION: str = "0.1.0"
    PMML_VERSION: str = "4.3"

    # === FIELD NAME FALLBACKS ===
    DEFAULT_TARGET_FIELD: str = "y"
    ACTIVE_FIELD_PREFIX: str = "x"

    # === VERIFICATION TOLERANCES ===
    DEFAULT_PRECISION: float = 1e-13
    DEFAULT_ZERO_THRESHOLD: float = 1e-13

    LOG_LEVEL: str = "INFO"
    TESTING: bool = False

    @field_validator("DEFAULT_PRECISION", "DEFAULT_ZERO_THRESHOLD")
    @classmethod
    def validate_tolerance(cls, v: float) -> float:
        if v < 0:
            raise ValueError("Verification tolerances must be non-negative")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v.upper()

    @property
    def pmml_namespace(self) -> str:
        return "http://www.dmg.org/PMML-" + self.PMML_VERSION.replace(".", "_")

    def setup_logging(self) -> None:
        setup_logging(log_level=self.LOG_LEVEL)


class TestingSettings(Settings):
    """Testing environment settings."""
    TESTING: bool = True
    LOG_LEVEL: str = "DEBUG"


@lru_cache()
def get_settings() -> Settings:
    """
    Get compiler settings based on environment.
    Uses lru_cache to avoid recreating settings on every call.
    """
    env = os.getenv("PIPELINE2PMML_ENV", "production").lower()

    if env == "testing":
        return TestingSettings()
    return Settings()
