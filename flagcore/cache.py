"""FLAGCORE FILE PURPOSE
Purpose: resolution cache ((feature, scope key) -> bool) and bulk-load spec expansion.
Hot path: low (bulk warm-up; single checks bypass the cache).
Feature flags: none.
Failure mode: malformed specs raise FeatureSpecError before anything is resolved.

Not synchronized on its own; FeatureEngine owns the lock.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, Callable, Iterator, NamedTuple

from flagcore.errors import FeatureSpecError

FeatureSpec = Any  # str | Sequence[str] | Mapping[str, Any]


class ResolvedFeature(NamedTuple):
    name: str
    scope: Any
    key: str


def _scopes_for(value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple, set, frozenset)):
        return list(value)
    return [value]


def normalize_spec(spec: FeatureSpec) -> list[tuple[str, list[Any]]]:
    """Flatten a load spec into ``(feature, scopes)`` pairs.

    Accepts a single feature name, an iterable of names (each unscoped), or a
    mapping of name to one scope or a list of scopes. ``None`` as a mapping
    value means unscoped; pass ``[None]`` to address the null scope key.
    """
    if isinstance(spec, str):
        return [(spec, [])]

    if isinstance(spec, Mapping):
        out: list[tuple[str, list[Any]]] = []
        for name, value in spec.items():
            if not isinstance(name, str):
                raise FeatureSpecError(f"feature name must be str, got {type(name).__name__}")
            out.append((name, _scopes_for(value)))
        return out

    if isinstance(spec, Iterable):
        out = []
        for name in spec:
            if not isinstance(name, str):
                raise FeatureSpecError(f"feature name must be str, got {type(name).__name__}")
            out.append((name, []))
        return out

    raise FeatureSpecError(f"unsupported feature spec: {type(spec).__name__}")


def expand(features: Iterable[str], scopes: list[Any], key_fn: Callable[[Any], str]) -> Iterator[ResolvedFeature]:
    if not scopes:
        for name in features:
            yield ResolvedFeature(name=name, scope=None, key=name)
        return

    for name in features:
        for scope in scopes:
            yield ResolvedFeature(name=name, scope=scope, key=f"{name}:{key_fn(scope)}")


def expand_spec(spec: FeatureSpec, key_fn: Callable[[Any], str]) -> list[ResolvedFeature]:
    out: list[ResolvedFeature] = []
    for name, scopes in normalize_spec(spec):
        out.extend(expand([name], scopes, key_fn))
    return out


class ResolutionCache:
    def __init__(self) -> None:
        self._entries: dict[str, bool] = {}

    def get(self, key: str, default: bool | None = None) -> bool | None:
        return self._entries.get(key, default)

    def put(self, key: str, value: bool) -> None:
        self._entries[key] = value

    def put_missing(self, key: str, value: bool) -> bool:
        if key in self._entries:
            return False
        self._entries[key] = value
        return True

    def keys(self) -> list[str]:
        return list(self._entries)

    def snapshot(self) -> dict[str, bool]:
        return dict(self._entries)

    def flush(self) -> None:
        self._entries.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
