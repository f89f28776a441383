"""Unit tests for the pattern cache and its fallback behavior."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from aso_engine.core.exceptions import DuplicatePatternError, PatternStoreUnavailableError
from aso_engine.repositories.pattern_repository import InMemoryPatternStore, PatternQuery
from aso_engine.schemas.pattern import IntentPattern
from aso_engine.services.cache import ExpiringCache
from aso_engine.services.patterns.cache import PatternCache, fallback_pattern_set
from aso_engine.services.patterns.fallback import FALLBACK_PATTERNS
from aso_engine.services.token_classifier import classify_token


class _CountingStore(InMemoryPatternStore):
    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.queries: list[PatternQuery] = []

    async def fetch_patterns(self, query: PatternQuery) -> list[dict[str, Any]]:
        self.queries.append(query)
        return await super().fetch_patterns(query)


class _BrokenStore:
    async def fetch_patterns(self, query: PatternQuery) -> list[dict[str, Any]]:
        raise PatternStoreUnavailableError("connection refused")


class _HangingStore:
    async def fetch_patterns(self, query: PatternQuery) -> list[dict[str, Any]]:
        await asyncio.sleep(1)
        return []


class _RawStore:
    def __init__(self, records: list[dict[str, Any]]) -> None:
        self.records = records

    async def fetch_patterns(self, query: PatternQuery) -> list[dict[str, Any]]:
        return list(self.records)


class _FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def _pattern(pattern: str, intent_type: str = "informational", **overrides: Any) -> IntentPattern:
    payload: dict[str, Any] = {"id": f"p-{pattern}-{overrides.get('scope', 'base')}", "pattern": pattern,
                               "intent_type": intent_type}
    payload.update(overrides)
    return IntentPattern.model_validate(payload)


@pytest.mark.asyncio
async def test_scope_chain_filters_patterns() -> None:
    store = InMemoryPatternStore(
        [
            _pattern("learn"),
            _pattern("invest", scope="vertical", scope_key="finance"),
            _pattern("earn", scope="vertical", scope_key="rewards"),
            _pattern("colour", scope="market", scope_key="uk"),
            _pattern("acme", "navigational", scope="client", scope_key="acme"),
            _pattern("other", "navigational", scope="client", scope_key="other"),
            _pattern("myapp", "navigational", scope="app", scope_key="app-1"),
            _pattern("retired", is_active=False),
        ]
    )
    cache = PatternCache(store)

    pattern_set = await cache.get_patterns("finance", "uk", "acme", "app-1")

    assert {p.pattern for p in pattern_set.patterns} == {"learn", "invest", "colour", "acme", "myapp"}
    assert pattern_set.fallback_mode is False


@pytest.mark.asyncio
async def test_patterns_ordered_by_priority_then_specificity() -> None:
    store = InMemoryPatternStore(
        [
            _pattern("base-low", priority=10),
            _pattern("base-high", priority=150),
            _pattern("tie-base", priority=100),
            _pattern("tie-app", priority=100, scope="app", scope_key="app-1"),
            _pattern("tie-vertical", priority=100, scope="vertical", scope_key="finance"),
        ]
    )
    cache = PatternCache(store)

    pattern_set = await cache.get_patterns("finance", "us", None, "app-1")

    assert [p.pattern for p in pattern_set.patterns] == [
        "base-high",
        "tie-app",
        "tie-vertical",
        "tie-base",
        "base-low",
    ]


@pytest.mark.asyncio
async def test_empty_store_uses_fallback_patterns() -> None:
    cache = PatternCache(InMemoryPatternStore())

    pattern_set = await cache.get_patterns("base", "us")

    assert pattern_set.fallback_mode is True
    assert len(pattern_set) == len(FALLBACK_PATTERNS) == 14
    match = classify_token("download", pattern_set)
    assert match is not None
    assert match.intent_type == "transactional"


def test_fallback_set_spans_all_intent_types() -> None:
    assert {p.intent_type for p in FALLBACK_PATTERNS} == {
        "informational",
        "commercial",
        "transactional",
        "navigational",
    }


def test_every_fallback_pattern_matches_its_own_token() -> None:
    fallback = fallback_pattern_set()

    for pattern in FALLBACK_PATTERNS:
        assert " " not in pattern.pattern
        match = classify_token(pattern.pattern, fallback)
        assert match is not None
        assert match.intent_type == pattern.intent_type


@pytest.mark.asyncio
async def test_store_error_falls_back_without_caching() -> None:
    cache = PatternCache(_BrokenStore())

    pattern_set = await cache.get_patterns("base", "us")

    assert pattern_set.fallback_mode is True
    assert any("unavailable" in message for message in pattern_set.diagnostics)
    assert len(cache.cache) == 0


@pytest.mark.asyncio
async def test_store_timeout_falls_back() -> None:
    cache = PatternCache(_HangingStore(), timeout_seconds=0.01)

    pattern_set = await cache.get_patterns("base", "us")

    assert pattern_set.fallback_mode is True
    assert "Pattern store query timed out" in pattern_set.diagnostics


@pytest.mark.asyncio
async def test_malformed_patterns_are_skipped_with_diagnostics() -> None:
    store = _RawStore(
        [
            {"id": "ok", "pattern": "learn", "intent_type": "informational"},
            {"id": "bad-regex", "pattern": "([a-z", "intent_type": "commercial", "is_regex": True},
            {"id": "empty-match", "pattern": "x*", "intent_type": "commercial", "is_regex": True},
            {"id": "bad-weight", "pattern": "free", "intent_type": "transactional", "weight": 9.0},
            {"id": "bad-scope", "pattern": "acme", "intent_type": "navigational", "scope": "client"},
        ]
    )
    cache = PatternCache(store)

    pattern_set = await cache.get_patterns("base", "us")

    assert [p.id for p in pattern_set.patterns] == ["ok"]
    assert pattern_set.fallback_mode is False
    assert len(pattern_set.diagnostics) == 4


@pytest.mark.asyncio
async def test_only_malformed_patterns_trigger_fallback() -> None:
    cache = PatternCache(
        _RawStore([{"id": "bad", "pattern": "(", "intent_type": "commercial", "is_regex": True}])
    )

    pattern_set = await cache.get_patterns("base", "us")

    assert pattern_set.fallback_mode is True
    assert any("invalid regular expression" in message for message in pattern_set.diagnostics)


@pytest.mark.asyncio
async def test_cache_hits_until_expiry_and_invalidate() -> None:
    store = _CountingStore([_pattern("learn")])
    clock = _FakeClock()
    cache = PatternCache(store, cache=ExpiringCache(300, clock=clock))

    first = await cache.get_patterns("base", "us")
    second = await cache.get_patterns("base", "us")
    assert first is second
    assert len(store.queries) == 1

    clock.now = 299.0
    await cache.get_patterns("base", "us")
    assert len(store.queries) == 1

    clock.now = 300.0
    await cache.get_patterns("base", "us")
    assert len(store.queries) == 2

    assert cache.invalidate("base", "us") is True
    await cache.get_patterns("base", "us")
    assert len(store.queries) == 3


def test_in_memory_store_rejects_duplicate_patterns() -> None:
    store = InMemoryPatternStore([_pattern("learn")])

    with pytest.raises(DuplicatePatternError):
        store.add(_pattern("learn", weight=2.0))

    store.add(_pattern("learn", scope="vertical", scope_key="finance"))
    assert len(store) == 2


def test_pattern_scope_key_rules() -> None:
    with pytest.raises(ValueError):
        IntentPattern(id="x", pattern="learn", intent_type="informational", scope="vertical")
    with pytest.raises(ValueError):
        IntentPattern(id="x", pattern="learn", intent_type="informational", scope_key="finance")


@pytest.mark.asyncio
async def test_invalidate_scope_evicts_every_key_in_that_scope() -> None:
    cache = PatternCache(InMemoryPatternStore([_pattern("learn")]))
    keys = [
        ("finance", "us", "acme", None),
        ("finance", "uk", None, "app-1"),
        ("rewards", "uk", "acme", "app-1"),
        ("rewards", "us", None, None),
    ]
    for key in keys:
        await cache.get_patterns(*key)
    assert len(cache.cache) == 4

    assert cache.invalidate_scope("vertical", "finance") == 2
    assert cache.invalidate_scope("client", "acme") == 1
    assert cache.invalidate_scope("app", "app-1") == 0
    assert len(cache.cache) == 1
    assert cache.cache.get(("rewards", "us", None, None)) is not None

    await cache.get_patterns("finance", "uk", None, "app-1")
    assert cache.invalidate_scope("app", "app-1") == 1
    assert cache.invalidate_scope("market", "us") == 1
    assert len(cache.cache) == 0


@pytest.mark.asyncio
async def test_invalidate_base_scope_clears_everything() -> None:
    cache = PatternCache(InMemoryPatternStore([_pattern("learn")]))
    await cache.get_patterns("finance", "us")
    await cache.get_patterns("rewards", "uk", "acme")

    assert cache.invalidate_scope("base") == 2
    assert len(cache.cache) == 0
