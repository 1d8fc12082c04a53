"""FLAGCORE FILE PURPOSE
Purpose: FastAPI helpers that hide routes whose feature is inactive for the caller's scope.
Hot path: yes (one flag check per gated request).
Feature flags: whatever feature the route is gated on.
Failure mode: inactive or unknown feature => 404 (route looks absent, as when a router is not mounted).
"""

from __future__ import annotations

from typing import Any, Callable

from fastapi import APIRouter, FastAPI, Header, HTTPException

from flagcore.engine import FeatureEngine

DEFAULT_SCOPE_HEADER = "X-Feature-Scope"


def require_feature(
    engine: FeatureEngine,
    feature: str,
    scope_header: str = DEFAULT_SCOPE_HEADER,
) -> Callable[..., None]:
    """Build a dependency for ``dependencies=[Depends(...)]``.

    The request scope is the raw header value, or None when the header is absent.
    """

    def _dependency(scope: str | None = Header(default=None, alias=scope_header)) -> None:
        if not engine.is_active(feature, scope):
            raise HTTPException(status_code=404, detail="Not Found")

    return _dependency


def include_router_if_active(
    app: FastAPI,
    router: APIRouter,
    engine: FeatureEngine,
    feature: str,
    scope: Any = None,
) -> bool:
    if not engine.is_active(feature, scope):
        return False
    app.include_router(router)
    return True
