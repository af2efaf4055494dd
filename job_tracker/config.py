"""Settings read from the environment."""

import os
from pathlib import Path

DEFAULT_RECORDS_PATH = "~/.job_tracker.json"
DEFAULT_LOG_PATH = "~/.job_tracker.log"

# Seconds between redraws when no key arrives
REFRESH_INTERVAL = 0.25


def records_path() -> Path:
    """Where the records live, JOB_TRACKER_FILE first."""
    explicit = os.getenv("JOB_TRACKER_FILE", "").strip()
    return Path(explicit or DEFAULT_RECORDS_PATH).expanduser()


def log_path() -> Path:
    explicit = os.getenv("JOB_TRACKER_LOG_FILE", "").strip()
    return Path(explicit or DEFAULT_LOG_PATH).expanduser()


def log_level() -> str:
    return os.getenv("JOB_TRACKER_LOG_LEVEL", "INFO").strip().upper() or "INFO"
