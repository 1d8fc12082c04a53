"""FLAGCORE FILE PURPOSE
Purpose: discover one-file resolver modules (default package `features/`) and register them.
Hot path: no (startup only).
Feature flags: FLAGS_FEATURE_*.
Failure mode: invalid feature module => skipped (debug logs only when FLAGS_DEBUG=1).
"""

from __future__ import annotations

import importlib
import pkgutil
import re
from dataclasses import dataclass, field
from typing import Any, Callable

from flagcore.config import env_flag, is_debug
from flagcore.engine import FeatureEngine
from flagcore.logging import logger

_ENV_RE = re.compile(r"^FLAGS_FEATURE_[A-Z0-9_]+$")


@dataclass(frozen=True)
class FeatureModule:
    key: str
    module: str
    resolver: Callable[[Any], Any]
    enabled_env: str | None = None


@dataclass
class DiscoveryReport:
    discovered: dict[str, FeatureModule] = field(default_factory=dict)
    registered: dict[str, FeatureModule] = field(default_factory=dict)


def _validate(feature: Any) -> dict[str, Any] | None:
    if not isinstance(feature, dict):
        return None
    if not {"key", "resolver"}.issubset(feature.keys()):
        return None
    if not isinstance(feature.get("key"), str) or not feature["key"]:
        return None
    if not callable(feature.get("resolver")):
        return None
    env = feature.get("enabled_env")
    if env is not None and (not isinstance(env, str) or not _ENV_RE.match(env)):
        return None
    return feature


def load_features(engine: FeatureEngine, package: str = "features") -> DiscoveryReport:
    pkg = importlib.import_module(package)
    report = DiscoveryReport()

    for mod in pkgutil.iter_modules(pkg.__path__):
        if mod.ispkg or mod.name.startswith("_"):
            continue
        name = f"{package}.{mod.name}"
        m = importlib.import_module(name)
        d = _validate(getattr(m, "FEATURE", None))
        if d is None:
            if is_debug():
                logger.warning("FEATURE_INVALID module=%s", name)
            continue

        spec = FeatureModule(
            key=d["key"],
            module=name,
            resolver=d["resolver"],
            enabled_env=d.get("enabled_env"),
        )
        report.discovered[spec.key] = spec

        if spec.enabled_env is None or env_flag(spec.enabled_env, "0"):
            engine.register(spec.key, spec.resolver)
            report.registered[spec.key] = spec

    if is_debug():
        logger.info("FEATURES_DISCOVERED keys=%s", sorted(report.discovered.keys()))
        logger.info("FEATURES_REGISTERED keys=%s", sorted(report.registered.keys()))
    return report
