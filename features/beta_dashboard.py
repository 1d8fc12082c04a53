"""FLAGCORE FILE PURPOSE
Purpose: beta dashboard, on for staff scopes only.
Hot path: yes (checked per dashboard request).
Feature flags: FLAGS_FEATURE_BETA_DASHBOARD.
Failure mode: disabled by default; scopes without `is_staff` resolve inactive.
"""

from __future__ import annotations

from typing import Any


def resolve(scope: Any) -> bool:
    if scope is None:
        return False
    return bool(getattr(scope, "is_staff", False))


FEATURE = {
    "key": "beta-dashboard",
    "resolver": resolve,
    "enabled_env": "FLAGS_FEATURE_BETA_DASHBOARD",
}
