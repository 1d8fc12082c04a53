from __future__ import annotations

import threading

import pytest

from flagcore.engine import FeatureEngine
from flagcore.events import CheckingKnownFeature, CheckingUnknownFeature, FeatureCheckEvent, ListenerDispatcher


class Recorder:
    def __init__(self) -> None:
        self.events: list[FeatureCheckEvent] = []

    def dispatch(self, event: FeatureCheckEvent) -> None:
        self.events.append(event)


def _engine(**kwargs) -> tuple[FeatureEngine, Recorder]:
    rec = Recorder()
    return FeatureEngine(rec, **kwargs), rec


def test_unknown_feature_is_inactive_and_reported_once_per_call() -> None:
    engine, rec = _engine()
    assert engine.is_active("nope", "alice") is False
    assert engine.is_active("nope", None) is False
    assert rec.events == [
        CheckingUnknownFeature(feature="nope", scope="alice"),
        CheckingUnknownFeature(feature="nope", scope=None),
    ]


def test_known_feature_reports_known_event() -> None:
    engine, rec = _engine()
    engine.register("beta", lambda s: True)
    assert engine.is_active("beta", "alice") is True
    assert rec.events == [CheckingKnownFeature(feature="beta", scope="alice")]


@pytest.mark.parametrize("raw,expected", [(True, True), (False, False), (None, True), (0, True), ("", True)])
def test_result_mirrors_resolver_sentinel(raw, expected) -> None:
    engine, _ = _engine()
    engine.register("beta", lambda s: raw)
    assert engine.is_active("beta", "alice") is expected
    assert engine.is_inactive("beta", "alice") is (not expected)


def test_activate_leaves_other_scopes_unchanged() -> None:
    engine, _ = _engine()
    engine.register("beta", lambda s: s == "bob")
    engine.activate("beta", "alice")
    assert engine.is_active("beta", "alice") is True
    assert engine.is_active("beta", "bob") is True
    assert engine.is_active("beta", "carol") is False


def test_deactivate_leaves_other_scopes_unchanged() -> None:
    engine, _ = _engine()
    engine.register("beta", lambda s: True)
    engine.deactivate("beta", "alice")
    assert engine.is_active("beta", "alice") is False
    assert engine.is_active("beta", "bob") is True


def test_double_activate_is_observably_idempotent() -> None:
    once, _ = _engine()
    twice, _ = _engine()
    for e in (once, twice):
        e.register("beta", lambda s: False)
        e.activate("beta", "alice")
    twice.activate("beta", "alice")

    for scope in ("alice", "bob", None):
        assert once.is_active("beta", scope) == twice.is_active("beta", scope)
    assert len(twice.rules("beta")) == 2


def test_layered_scenario() -> None:
    engine, _ = _engine()
    engine.register("beta", lambda s: True)
    assert engine.is_active("beta", None) is True

    engine.deactivate("beta", None)
    assert engine.is_active("beta", None) is False

    engine.activate("beta", "alice")
    assert engine.is_active("beta", "alice") is True
    assert engine.is_active("beta", None) is False


def test_null_key_is_configurable(monkeypatch) -> None:
    monkeypatch.setenv("FLAGS_NULL_SCOPE_KEY", "__env_null")
    assert FeatureEngine().resolve_key(None) == "__env_null"
    assert FeatureEngine(null_key="__explicit").resolve_key(None) == "__explicit"


def test_legacy_deactivate_from_env(monkeypatch) -> None:
    monkeypatch.setenv("FLAGS_LEGACY_DEACTIVATE_FALLBACK", "1")
    engine = FeatureEngine(Recorder())
    engine.register("beta", lambda s: s == "carol")
    engine.deactivate("beta", "bob")
    assert engine.is_active("beta", "carol") is False

    modern = FeatureEngine(Recorder(), legacy_deactivate=False)
    modern.register("beta", lambda s: s == "carol")
    modern.deactivate("beta", "bob")
    assert modern.is_active("beta", "carol") is True


def test_load_overwrites_existing_entries() -> None:
    engine, _ = _engine()
    engine.register("beta", lambda s: s == "alice")
    engine.cache.put("beta:alice", False)
    engine.cache.put("beta:bob", True)

    engine.load({"beta": ["alice", "bob"]})

    assert engine.cache.snapshot() == {"beta:alice": True, "beta:bob": False}


def test_load_missing_never_changes_existing_entries() -> None:
    engine, _ = _engine()
    engine.register("beta", lambda s: s == "alice")
    engine.cache.put("beta:alice", False)

    engine.load_missing({"beta": ["alice", "bob"]})

    assert engine.cache.get("beta:alice") is False
    assert engine.cache.get("beta:bob") is False
    assert len(engine.cache) == 2


def test_load_missing_does_not_call_resolver_for_cached_keys() -> None:
    calls: list[object] = []
    engine, _ = _engine()
    engine.register("beta", lambda s: calls.append(s) or True)
    engine.cache.put("beta:alice", False)

    engine.load_missing({"beta": ["alice", "bob"]})

    assert calls == ["bob"]


def test_load_skips_unregistered_features() -> None:
    engine, rec = _engine()
    engine.register("beta", lambda s: True)
    engine.load(["beta", "ghost"])
    engine.load_missing({"ghost": ["alice"]})
    assert engine.cache.snapshot() == {"beta": True}
    assert rec.events == []


def test_load_single_name_and_scalar_scope() -> None:
    engine, _ = _engine()
    engine.register("beta", lambda s: True)
    engine.deactivate("beta", "alice")
    engine.load("beta")
    engine.load({"beta": "alice"})
    assert engine.cache.snapshot() == {"beta": True, "beta:alice": False}


def test_load_null_scope_uses_null_key() -> None:
    engine, _ = _engine(null_key="__none")
    engine.register("beta", lambda s: s is None)
    engine.load({"beta": [None]})
    assert engine.cache.snapshot() == {"beta:__none": True}


def test_resolver_errors_propagate_from_checks_and_loads() -> None:
    def boom(scope: object) -> bool:
        raise RuntimeError("resolver down")

    engine, _ = _engine()
    engine.register("beta", boom)
    with pytest.raises(RuntimeError):
        engine.is_active("beta", "alice")
    with pytest.raises(RuntimeError):
        engine.load({"beta": ["alice"]})
    with pytest.raises(RuntimeError):
        engine.load_missing("beta")
    assert len(engine.cache) == 0


def test_flush_cache() -> None:
    engine, _ = _engine()
    engine.register("beta", lambda s: True)
    engine.load("beta")
    engine.flush_cache()
    assert len(engine.cache) == 0


def test_all_and_some_are_active() -> None:
    engine, _ = _engine()
    engine.register("a", lambda s: True)
    engine.register("b", lambda s: False)
    assert engine.all_are_active(["a"], "alice") is True
    assert engine.all_are_active(["a", "b"], "alice") is False
    assert engine.some_are_active(["b", "a"], "alice") is True
    assert engine.some_are_active(["b", "ghost"], "alice") is False


def test_introspection() -> None:
    engine, _ = _engine()
    assert engine.missing_resolver("beta") is True
    engine.deactivate("beta", "alice")
    assert engine.missing_resolver("beta") is False
    assert engine.defined_features() == ["beta"]
    assert [r.outcome for r in engine.rules("beta")] == [False]


def test_resolver_may_call_back_into_engine() -> None:
    engine, _ = _engine()
    engine.register("base", lambda s: s == "alice")
    engine.register("derived", lambda s: engine.is_active("base", s))
    assert engine.is_active("derived", "alice") is True
    engine.load({"derived": ["alice", "bob"]})
    assert engine.cache.snapshot() == {"derived:alice": True, "derived:bob": False}


def test_instances_do_not_share_state() -> None:
    a, _ = _engine()
    b, _ = _engine()
    a.register("beta", lambda s: True)
    assert b.missing_resolver("beta") is True


def test_concurrent_activation_keeps_every_rule() -> None:
    engine, _ = _engine()

    def worker(i: int) -> None:
        for j in range(50):
            engine.activate("beta", f"user-{i}-{j}")

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(engine.rules("beta")) == 400
    assert engine.is_active("beta", "user-3-49") is True


class Draft:
    def entity_type(self) -> str:
        return "users"

    def primary_key(self) -> None:
        return None


class Account:
    def __init__(self, pk: int) -> None:
        self.pk = pk

    def entity_type(self) -> str:
        return "users"

    def primary_key(self) -> int:
        return self.pk


class CountingTeam:
    def __init__(self, slug: str) -> None:
        self.slug = slug
        self.calls = 0

    def to_feature_scope_identifier(self) -> str:
        self.calls += 1
        return self.slug


def test_plain_check_does_not_derive_scope_key() -> None:
    engine, _ = _engine()
    engine.register("beta", lambda s: True)
    assert engine.is_active("beta", Draft()) is True

    team = CountingTeam("acme")
    assert engine.is_active("beta", team) is True
    assert team.calls == 0


def test_key_derived_once_when_rules_exist() -> None:
    engine, _ = _engine()
    engine.register("beta", lambda s: True)
    engine.deactivate("beta", "other")
    engine.activate("beta", "another")

    team = CountingTeam("acme")
    assert engine.is_active("beta", team) is True
    assert team.calls == 1


def test_activate_derives_key_once_without_debug(monkeypatch) -> None:
    monkeypatch.setenv("FLAGS_DEBUG", "0")
    engine, _ = _engine()
    team = CountingTeam("acme")
    engine.activate("beta", team)
    engine.deactivate("gamma", team)
    assert team.calls == 2


def test_load_entity_and_identifiable_scopes() -> None:
    engine, _ = _engine()
    engine.register("beta", lambda s: getattr(s, "pk", None) == 7)
    engine.activate("beta", CountingTeam("acme"))

    engine.load({"beta": [Account(7), Account(8)]})
    engine.load_missing({"beta": [CountingTeam("acme"), Account(7)]})

    assert engine.cache.snapshot() == {
        "beta:entity:users:7": True,
        "beta:entity:users:8": False,
        "beta:acme": True,
    }


def test_concurrent_listen_during_checks() -> None:
    events = ListenerDispatcher()
    engine = FeatureEngine(events)
    engine.register("beta", lambda s: True)
    errors: list[BaseException] = []
    stop = threading.Event()

    def checker() -> None:
        try:
            while not stop.is_set():
                engine.is_active("beta", "alice")
        except BaseException as exc:  # noqa: BLE001
            errors.append(exc)

    def listener() -> None:
        for i in range(300):
            event_type = type(f"Checked{i}", (CheckingKnownFeature,), {})
            events.listen(event_type, lambda e: None)

    threads = [threading.Thread(target=checker) for _ in range(4)]
    for t in threads:
        t.start()
    adder = threading.Thread(target=listener)
    adder.start()
    adder.join()
    stop.set()
    for t in threads:
        t.join()

    assert errors == []
