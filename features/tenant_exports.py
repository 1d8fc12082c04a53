"""FLAGCORE FILE PURPOSE
Purpose: bulk CSV exports, limited to an allow-list of tenants.
Hot path: no.
Feature flags: FLAGS_FEATURE_TENANT_EXPORTS, FLAGS_TENANT_EXPORTS_ALLOW (comma-separated tenant ids).
Failure mode: empty allow-list => inactive for every tenant.
"""

from __future__ import annotations

import os
from typing import Any


def _allowed() -> set[str]:
    raw = os.getenv("FLAGS_TENANT_EXPORTS_ALLOW") or ""
    return {t.strip() for t in raw.split(",") if t.strip()}


def resolve(scope: Any) -> bool:
    tenant_id = getattr(scope, "tenant_id", None)
    if tenant_id is None:
        return False
    return str(tenant_id) in _allowed()


FEATURE = {
    "key": "tenant-exports",
    "resolver": resolve,
    "enabled_env": "FLAGS_FEATURE_TENANT_EXPORTS",
}
