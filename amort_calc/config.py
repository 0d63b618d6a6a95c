"""
Configuration management for the application.

All settings come from environment variables and are read once at import.
"""

import logging
import os

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class Settings:
    """Application settings loaded from environment variables."""

    # Model used by the payment advisor
    MODEL_ID: str = os.getenv("MODEL_ID", "gpt-4.1")

    # OpenAI API key; the openai client also reads it from the environment
    OPENAI_API_KEY: str | None = os.getenv("OPENAI_API_KEY")

    # Saved scenarios (any SQLAlchemy URL)
    SCENARIO_DATABASE_URL: str = os.getenv("SCENARIO_DATABASE_URL", "sqlite:///scenarios.sqlite3")

    FLASK_SECRET_KEY: str = os.getenv("FLASK_SECRET_KEY", "dev-secret-key")

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "WARNING")

    # Rows per page of the schedule table
    SCHEDULE_PAGE_SIZE: int = int(os.getenv("SCHEDULE_PAGE_SIZE", "12"))


def configure_logging(level: str | int | None = None) -> None:
    """Configure root logging once for the CLI or the web app."""
    if level is None:
        level = Settings.LOG_LEVEL
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.WARNING
    logging.basicConfig(level=level, format=LOG_FORMAT)
