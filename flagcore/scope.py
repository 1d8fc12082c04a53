"""FLAGCORE FILE PURPOSE
Purpose: derive canonical string keys from scope values (cache keys and rule matching).
Hot path: yes (every activate/deactivate match and every bulk-load entry).
Feature flags: FLAGS_NULL_SCOPE_KEY (via caller-supplied null key).
Failure mode: malformed scopes raise ScopeKeyError; never a silent fallback key.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, Union, runtime_checkable

from flagcore.config import DEFAULT_NULL_SCOPE_KEY
from flagcore.errors import ScopeKeyError

ENTITY_PREFIX = "entity"


@runtime_checkable
class FeatureScopeable(Protocol):
    def to_feature_scope_identifier(self) -> Any: ...


@runtime_checkable
class EntityScopeable(Protocol):
    def entity_type(self) -> str: ...

    def primary_key(self) -> Any: ...


@dataclass(frozen=True)
class NoScope:
    pass


@dataclass(frozen=True)
class IdentifiableScope:
    identifier: str


@dataclass(frozen=True)
class EntityScope:
    type_tag: str
    key: str


@dataclass(frozen=True)
class OpaqueScope:
    repr: str


ScopeVariant = Union[NoScope, IdentifiableScope, EntityScope, OpaqueScope]


def classify_scope(scope: Any) -> ScopeVariant:
    """Map a raw scope value onto its variant.

    Capabilities are checked in order: None, scope identifier, entity
    reference, then plain string conversion.
    """
    if scope is None:
        return NoScope()

    if isinstance(scope, FeatureScopeable):
        identifier = scope.to_feature_scope_identifier()
        if identifier is None:
            raise ScopeKeyError(f"{type(scope).__name__} returned no feature scope identifier")
        return IdentifiableScope(str(identifier))

    if isinstance(scope, EntityScopeable):
        type_tag = scope.entity_type()
        pk = scope.primary_key()
        if not type_tag:
            raise ScopeKeyError(f"{type(scope).__name__} has no entity type")
        if pk is None:
            raise ScopeKeyError(f"{type(scope).__name__} has no primary key (unsaved entity?)")
        return EntityScope(str(type_tag), str(pk))

    return OpaqueScope(str(scope))


def variant_key(variant: ScopeVariant, null_key: str = DEFAULT_NULL_SCOPE_KEY) -> str:
    if isinstance(variant, NoScope):
        return null_key
    if isinstance(variant, IdentifiableScope):
        return variant.identifier
    if isinstance(variant, EntityScope):
        return f"{ENTITY_PREFIX}:{variant.type_tag}:{variant.key}"
    if isinstance(variant, OpaqueScope):
        return variant.repr
    raise ScopeKeyError(f"unsupported scope variant: {type(variant).__name__}")


def resolve_key(scope: Any, null_key: str = DEFAULT_NULL_SCOPE_KEY) -> str:
    return variant_key(classify_scope(scope), null_key)
