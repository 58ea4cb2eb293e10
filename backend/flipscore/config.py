"""Runtime configuration: all values come from environment variables.

Rules
-----
- NO hardcoded deployment settings; everything has an env override
- Scoring constants are NOT configurable here; see ``constants.py``
"""

from __future__ import annotations

import logging
import os
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

LOG_LEVEL = os.getenv("FLIPSCORE_LOG_LEVEL", "INFO").upper()
DEBUG = os.getenv("DEBUG", "false").lower() == "true"

# 1 = score contractors sequentially; >1 = thread pool of that size
MAX_WORKERS = max(1, int(os.getenv("FLIPSCORE_MAX_WORKERS", "1")))

# Share of a cohort reported as top performers (at least one contractor)
TOP_PERFORMER_FRACTION = float(os.getenv("FLIPSCORE_TOP_PERFORMER_FRACTION", "0.1"))

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging for scripts and workers embedding the engine."""
    logging.basicConfig(
        level=logging.DEBUG if DEBUG else (level or LOG_LEVEL),
        format=_LOG_FORMAT,
    )
