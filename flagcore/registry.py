"""FLAGCORE FILE PURPOSE
Purpose: resolver registry (feature name -> resolver chain of scope rules + default resolver).
Hot path: yes (every flag check evaluates a chain).
Feature flags: FLAGS_LEGACY_DEACTIVATE_FALLBACK (via engine).
Failure mode: unregistered features resolve inactive; resolver exceptions propagate.

Not synchronized on its own; FeatureEngine owns the lock.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Callable

Resolver = Callable[[Any], Any]
KeyFn = Callable[[Any], str]


def _always_false(scope: Any) -> bool:
    return False


@dataclass(frozen=True)
class ScopeRule:
    match_key: str
    scope: Any
    outcome: bool


@dataclass(frozen=True)
class ResolverChain:
    default: Resolver
    rules: tuple[ScopeRule, ...] = ()

    def with_rule(self, rule: ScopeRule) -> ResolverChain:
        return replace(self, rules=self.rules + (rule,))

    def evaluate(self, scope: Any, key_fn: KeyFn, legacy_deactivate_fallback: bool = False) -> Any:
        """Return the raw result for ``scope``, newest rule first.

        With ``legacy_deactivate_fallback`` a non-matching deactivation rule
        hands its own scope (not the queried one) to the rest of the chain.
        """
        current = scope
        key: str | None = None
        for rule in reversed(self.rules):
            if key is None:
                key = key_fn(current)
            if rule.match_key == key:
                return rule.outcome
            if legacy_deactivate_fallback and rule.outcome is False:
                current = rule.scope
                key = rule.match_key
        return self.default(current)


def is_active_result(result: Any) -> bool:
    # only the explicit False sentinel is inactive; None, 0, "" are active
    return result is not False


class ResolverRegistry:
    def __init__(self, key_fn: KeyFn, *, legacy_deactivate_fallback: bool = False) -> None:
        self._key_fn = key_fn
        self._legacy = legacy_deactivate_fallback
        self._chains: dict[str, ResolverChain] = {}

    def register(self, feature: str, resolver: Resolver) -> None:
        if not callable(resolver):
            raise TypeError(f"resolver for {feature!r} must be callable")
        self._chains[feature] = ResolverChain(default=resolver)

    def activate(self, feature: str, scope: Any) -> None:
        self._push(feature, scope, True)

    def deactivate(self, feature: str, scope: Any) -> None:
        self._push(feature, scope, False)

    def _push(self, feature: str, scope: Any, outcome: bool) -> None:
        existing = self._chains.get(feature) or ResolverChain(default=_always_false)
        rule = ScopeRule(match_key=self._key_fn(scope), scope=scope, outcome=outcome)
        self._chains[feature] = existing.with_rule(rule)

    def missing_resolver(self, feature: str) -> bool:
        return feature not in self._chains

    def chain(self, feature: str) -> ResolverChain | None:
        return self._chains.get(feature)

    def rules(self, feature: str) -> tuple[ScopeRule, ...]:
        chain = self._chains.get(feature)
        return chain.rules if chain is not None else ()

    def defined(self) -> list[str]:
        return list(self._chains)

    def evaluate_chain(self, chain: ResolverChain, scope: Any) -> bool:
        return is_active_result(chain.evaluate(scope, self._key_fn, self._legacy))

    def resolve_feature_state(self, feature: str, scope: Any) -> bool:
        chain = self._chains.get(feature)
        if chain is None:
            return False
        return self.evaluate_chain(chain, scope)
