"""FLAGCORE FILE PURPOSE
Purpose: `flagcore` logger with strict debug gating.
Hot path: yes (flag checks log through here; default is quiet).
Feature flags: FLAGS_DEBUG, FLAGS_LOG_LEVEL.
Failure mode: never crash due to logging; unknown FLAGS_LOG_LEVEL => debug gating.

Event tokens: FEATURE_CHECK, FEATURE_UNKNOWN, FEATURE_REGISTERED,
FEATURE_ACTIVATED, FEATURE_DEACTIVATED, FEATURES_LOADED, FEATURE_INVALID,
FEATURES_DISCOVERED.
"""

from __future__ import annotations

import logging
import os

from flagcore.config import is_debug

LOGGER_NAME = "flagcore"


def log_level() -> int:
    raw = (os.getenv("FLAGS_LOG_LEVEL") or "").strip().upper()
    level = logging.getLevelName(raw) if raw else None
    if isinstance(level, int):
        return level
    return logging.INFO if is_debug() else logging.WARNING


def _configure() -> logging.Logger:
    flag_logger = logging.getLogger(LOGGER_NAME)
    if flag_logger.handlers:
        return flag_logger

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    flag_logger.addHandler(handler)
    flag_logger.setLevel(log_level())
    return flag_logger


logger = _configure()
