"""FLAGCORE FILE PURPOSE
Purpose: environment configuration helpers (safe defaults).
Hot path: yes (read-only env lookups; lightweight).
Feature flags: FLAGS_DEBUG, FLAGS_NULL_SCOPE_KEY, FLAGS_LEGACY_DEACTIVATE_FALLBACK, FLAGS_FEATURE_*.
Failure mode: safe defaults when unset.
"""

from __future__ import annotations

import os

DEFAULT_NULL_SCOPE_KEY = "__null_scope"


def env_flag(name: str, default: str = "0") -> bool:
    v = (os.getenv(name) or default).strip().lower()
    return v in ("1", "true", "yes", "on")


def is_debug() -> bool:
    return env_flag("FLAGS_DEBUG", "0")


def null_scope_key() -> str:
    v = (os.getenv("FLAGS_NULL_SCOPE_KEY") or "").strip()
    return v or DEFAULT_NULL_SCOPE_KEY


def legacy_deactivate_fallback() -> bool:
    return env_flag("FLAGS_LEGACY_DEACTIVATE_FALLBACK", "0")
