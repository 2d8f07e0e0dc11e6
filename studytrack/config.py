"""
Runtime configuration for StudyTrack.

Paths come from the environment (optionally via a .env file):
- STUDYTRACK_DATA_DIR: root for progress.db and installed courses
- STUDYTRACK_LOG_LEVEL: logging level name (default INFO)
"""

import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


DEFAULT_DATA_DIR = Path(os.getenv("STUDYTRACK_DATA_DIR", str(Path.home() / ".studytrack")))
DEFAULT_PROGRESS_DB = DEFAULT_DATA_DIR / "progress.db"
DEFAULT_COURSES_DIR = DEFAULT_DATA_DIR / "courses"

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


def configure_logging(level: Optional[str] = None):
    """Configure root logging for the app and scripts."""
    level_name = (level or os.getenv("STUDYTRACK_LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format=LOG_FORMAT,
    )
