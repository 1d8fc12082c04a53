"""FLAGCORE FILE PURPOSE
Purpose: exception types raised by the engine.
Hot path: no.
Feature flags: none.
Failure mode: unknown features are never errors; these cover programmer mistakes only.
"""

from __future__ import annotations


class FlagError(Exception):
    pass


class ScopeKeyError(FlagError, ValueError):
    """A scope value cannot be reduced to a stable key."""


class FeatureSpecError(FlagError, TypeError):
    """A bulk-load spec has an unsupported shape."""
