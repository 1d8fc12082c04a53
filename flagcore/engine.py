"""FLAGCORE FILE PURPOSE
Purpose: feature engine (flag checks, layered activation, eager-load cache).
Hot path: yes (is_active on every gated request).
Feature flags: FLAGS_NULL_SCOPE_KEY, FLAGS_LEGACY_DEACTIVATE_FALLBACK, FLAGS_DEBUG.
Failure mode: unknown feature => event + inactive; resolver exceptions propagate.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable
from typing import Any

from flagcore.cache import FeatureSpec, ResolutionCache, expand_spec
from flagcore.config import is_debug, legacy_deactivate_fallback, null_scope_key
from flagcore.events import CheckingKnownFeature, CheckingUnknownFeature, EventDispatcher, LoggingDispatcher
from flagcore.logging import logger
from flagcore.registry import Resolver, ResolverRegistry, ScopeRule
from flagcore.scope import resolve_key


def _safe_debug(msg: str, *args: Any) -> None:
    if is_debug():
        logger.info(msg, *args)


class FeatureEngine:
    """Resolves features per scope from a registry of resolver chains.

    One instance owns its registry, its cache and a single lock guarding
    both. Resolvers run outside the lock on an immutable chain snapshot, so
    they may call back into the engine.
    """

    def __init__(
        self,
        events: EventDispatcher | None = None,
        *,
        null_key: str | None = None,
        legacy_deactivate: bool | None = None,
    ) -> None:
        self.events: EventDispatcher = events if events is not None else LoggingDispatcher()
        self.null_key = null_key if null_key is not None else null_scope_key()
        legacy = legacy_deactivate if legacy_deactivate is not None else legacy_deactivate_fallback()
        self._lock = threading.RLock()
        self._registry = ResolverRegistry(self.resolve_key, legacy_deactivate_fallback=legacy)
        self._cache = ResolutionCache()

    def is_active(self, feature: str, scope: Any = None) -> bool:
        with self._lock:
            chain = self._registry.chain(feature)

        if chain is None:
            self.events.dispatch(CheckingUnknownFeature(feature=feature, scope=scope))
            return False

        self.events.dispatch(CheckingKnownFeature(feature=feature, scope=scope))
        return self._registry.evaluate_chain(chain, scope)

    def is_inactive(self, feature: str, scope: Any = None) -> bool:
        return not self.is_active(feature, scope)

    def all_are_active(self, features: Iterable[str], scope: Any = None) -> bool:
        return all(self.is_active(f, scope) for f in features)

    def some_are_active(self, features: Iterable[str], scope: Any = None) -> bool:
        return any(self.is_active(f, scope) for f in features)

    def register(self, feature: str, resolver: Resolver) -> None:
        with self._lock:
            self._registry.register(feature, resolver)
        _safe_debug("FEATURE_REGISTERED feature=%s", feature)

    def activate(self, feature: str, scope: Any = None) -> None:
        with self._lock:
            self._registry.activate(feature, scope)
        if is_debug():
            logger.info("FEATURE_ACTIVATED feature=%s scope_key=%s", feature, self.resolve_key(scope))

    def deactivate(self, feature: str, scope: Any = None) -> None:
        with self._lock:
            self._registry.deactivate(feature, scope)
        if is_debug():
            logger.info("FEATURE_DEACTIVATED feature=%s scope_key=%s", feature, self.resolve_key(scope))

    def missing_resolver(self, feature: str) -> bool:
        with self._lock:
            return self._registry.missing_resolver(feature)

    def defined_features(self) -> list[str]:
        with self._lock:
            return self._registry.defined()

    def rules(self, feature: str) -> tuple[ScopeRule, ...]:
        with self._lock:
            return self._registry.rules(feature)

    def resolve_key(self, scope: Any) -> str:
        return resolve_key(scope, self.null_key)

    @property
    def cache(self) -> ResolutionCache:
        return self._cache

    def load(self, spec: FeatureSpec) -> None:
        """Resolve every (feature, scope) in ``spec`` and overwrite its cache entry."""
        self._load(spec, overwrite=True)

    def load_missing(self, spec: FeatureSpec) -> None:
        """Like ``load`` but only fills keys that are not cached yet."""
        self._load(spec, overwrite=False)

    def _load(self, spec: FeatureSpec, *, overwrite: bool) -> None:
        entries = expand_spec(spec, self.resolve_key)
        written = 0
        for entry in entries:
            with self._lock:
                chain = self._registry.chain(entry.name)
                if chain is None:
                    continue
                if not overwrite and entry.key in self._cache:
                    continue

            value = self._registry.evaluate_chain(chain, entry.scope)

            with self._lock:
                if overwrite:
                    self._cache.put(entry.key, value)
                    written += 1
                elif self._cache.put_missing(entry.key, value):
                    written += 1

        _safe_debug("FEATURES_LOADED mode=%s entries=%d written=%d", "load" if overwrite else "load_missing", len(entries), written)

    def flush_cache(self) -> None:
        with self._lock:
            self._cache.flush()
