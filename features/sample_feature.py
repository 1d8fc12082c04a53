"""FLAGCORE FILE PURPOSE
Purpose: minimal always-on sample feature for discovery regression coverage.
Hot path: no.
Feature flags: none (registered whenever discovered).
Failure mode: never inactive unless deactivated per scope.
"""

from __future__ import annotations

from typing import Any


def resolve(scope: Any) -> bool:
    # deterministic; no network / DB
    return True


FEATURE = {
    "key": "sample",
    "resolver": resolve,
}
