"""Runtime configuration: env-driven via pydantic-settings.

Reads from a .env file and DELEGRAPH_* environment variables.
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict
from rich.logging import RichHandler


class ProjectorConfig(BaseSettings):
    """Projector configuration with environment variable overrides.

    Examples
    --------
    Override via environment::

        export DELEGRAPH_LOG_LEVEL=DEBUG
        export DELEGRAPH_EVENT_LOG_PATH=/data/run-42.jsonl

    Or via .env file::

        DELEGRAPH_REFRESH_HZ=4
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="DELEGRAPH_",
        env_file_encoding="utf-8",
    )

    log_level: str = "INFO"

    # Default JSON-lines export read by the CLI
    event_log_path: Path = Path(".delegraph/events.jsonl")

    # Live rendering
    refresh_hz: float = 2.0
    replay_delay_seconds: float = 0.0


def configure_logging(level: str | None = None) -> None:
    """Route the root logger through Rich at *level* (default: config)."""
    logging.basicConfig(
        level=(level or config.log_level).upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
        force=True,
    )


# Module-level instance: import as `from delegraph.config import config`
config = ProjectorConfig()
