"""Runtime configuration, env-driven.

Centralized settings using pydantic-settings.  Reads from a .env file and
RUNWARDEN_* environment variables.
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from runwarden.models.snapshot import SnapshotLimits


class WardenConfig(BaseSettings):
    """runwarden configuration with environment variable overrides.

    Examples
    --------
    Override via environment::

        export RUNWARDEN_RUNS_ROOT=/work/.a5c/runs
        export RUNWARDEN_LOG_LEVEL=DEBUG
        export RUNWARDEN_MAX_ARTIFACTS=200

    Or via .env file::

        RUNWARDEN_TAIL_MAX_BYTES=65536
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="RUNWARDEN_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Runtime environment
    environment: str = "development"
    log_level: str = "INFO"
    debug: bool = False

    # Where the engine keeps its runs
    runs_root: Path = Path(".a5c/runs")

    # Snapshot caps
    max_journal_entries: int = 30
    max_artifacts: int = 500
    max_work_summaries: int = 50
    max_prompts: int = 50
    max_scanned_files: int = 5000

    # Text previews
    text_preview_max_bytes: int = 200_000
    tail_max_bytes: int = 200_000

    # Refresh loop
    batch_window_seconds: float = 0.25
    poll_interval_seconds: float = 0.5
    max_files_per_root: int = 5000

    @property
    def snapshot_limits(self) -> SnapshotLimits:
        return SnapshotLimits(
            max_journal_entries=self.max_journal_entries,
            max_artifacts=self.max_artifacts,
            max_work_summaries=self.max_work_summaries,
            max_prompts=self.max_prompts,
            max_scanned_files=self.max_scanned_files,
        )

    @property
    def effective_log_level(self) -> int:
        """Numeric logging level; ``debug`` forces DEBUG."""
        if self.debug:
            return logging.DEBUG
        level = logging.getLevelName(self.log_level.upper())
        return level if isinstance(level, int) else logging.INFO


def configure_logging(cfg: WardenConfig) -> None:
    """Apply the configured level to the root logger."""
    logging.basicConfig(
        level=cfg.effective_log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# Module-level singleton: import as `from runwarden.config import config`
config = WardenConfig()
