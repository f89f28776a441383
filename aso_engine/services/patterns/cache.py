"""TTL cache of resolved intent patterns with built-in fallback."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Hashable, Iterable, Mapping
from dataclasses import dataclass, field
from functools import cached_property
from typing import Any

from pydantic import ValidationError

from aso_engine.config import settings
from aso_engine.core.exceptions import MalformedPatternError
from aso_engine.repositories.pattern_repository import PatternQuery, PatternStore
from aso_engine.schemas.pattern import IntentPattern, PatternScope
from aso_engine.services.cache import ExpiringCache
from aso_engine.services.patterns.fallback import FALLBACK_PATTERNS
from aso_engine.services.patterns.matcher import CompiledPattern, compile_pattern, order_patterns

logger = logging.getLogger(__name__)

PatternCacheKey = tuple[str, str, str | None, str | None]


@dataclass(frozen=True)
class PatternSet:
    """Immutable, evaluation-ordered patterns for one resolution key."""

    patterns: tuple[IntentPattern, ...]
    fallback_mode: bool = False
    diagnostics: tuple[str, ...] = field(default_factory=tuple)

    @cached_property
    def compiled(self) -> list[CompiledPattern]:
        return [compile_pattern(pattern) for pattern in self.patterns]

    def __len__(self) -> int:
        return len(self.patterns)

    def extended(self, extra: Iterable[IntentPattern]) -> PatternSet:
        """Add patterns (e.g. from the resolved ruleset), skipping duplicates and malformed ones."""
        seen = {pattern.identity for pattern in self.patterns}
        added: list[IntentPattern] = []
        diagnostics = list(self.diagnostics)
        for pattern in extra:
            if not pattern.is_active or pattern.identity in seen:
                continue
            try:
                compile_pattern(pattern)
            except MalformedPatternError as exc:
                diagnostics.append(exc.message)
                continue
            seen.add(pattern.identity)
            added.append(pattern)
        if not added and len(diagnostics) == len(self.diagnostics):
            return self
        return PatternSet(
            patterns=tuple(order_patterns([*self.patterns, *added])),
            fallback_mode=self.fallback_mode,
            diagnostics=tuple(diagnostics),
        )


def fallback_pattern_set(diagnostics: Iterable[str] = ()) -> PatternSet:
    return PatternSet(
        patterns=tuple(order_patterns(list(FALLBACK_PATTERNS))),
        fallback_mode=True,
        diagnostics=tuple(diagnostics),
    )


class PatternCache:
    """Per-(vertical, market, client, app) pattern cache.

    Entries expire after the TTL; misses query the store once with a time
    bound. Empty stores fall back to the built-in set and are cached; store
    failures fall back too but are not cached.
    """

    def __init__(
        self,
        store: PatternStore | None = None,
        *,
        cache: ExpiringCache[PatternSet] | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        self.store = store
        self.cache = cache if cache is not None else ExpiringCache(settings.pattern_cache_ttl_seconds)
        self.timeout_seconds = timeout_seconds or settings.pattern_store_timeout_seconds

    @staticmethod
    def cache_key(
        vertical: str,
        market: str,
        client_id: str | None = None,
        app_id: str | None = None,
    ) -> PatternCacheKey:
        return (vertical, market, client_id, app_id)

    async def get_patterns(
        self,
        vertical: str,
        market: str,
        client_id: str | None = None,
        app_id: str | None = None,
    ) -> PatternSet:
        key = self.cache_key(vertical, market, client_id, app_id)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        query = PatternQuery(vertical=vertical, market=market, client_id=client_id, app_id=app_id)
        pattern_set, cacheable = await self._load(query)
        if cacheable:
            self.cache.set(key, pattern_set)
        return pattern_set

    def invalidate(
        self,
        vertical: str,
        market: str,
        client_id: str | None = None,
        app_id: str | None = None,
    ) -> bool:
        return self.cache.invalidate(self.cache_key(vertical, market, client_id, app_id))

    def invalidate_scope(self, scope: PatternScope, scope_key: str | None = None) -> int:
        """Evict every cached key whose scope chain includes the edited scope."""
        if scope == "base":
            count = len(self.cache)
            self.cache.clear()
            return count

        position = {"vertical": 0, "market": 1, "client": 2, "app": 3}[scope]

        def _in_scope(key: Hashable) -> bool:
            return isinstance(key, tuple) and key[position] == scope_key

        return self.cache.invalidate_where(_in_scope)

    def clear(self) -> None:
        self.cache.clear()

    async def _load(self, query: PatternQuery) -> tuple[PatternSet, bool]:
        if self.store is None:
            return fallback_pattern_set(["No pattern store configured"]), True

        try:
            records = await asyncio.wait_for(
                self.store.fetch_patterns(query),
                timeout=self.timeout_seconds,
            )
        except TimeoutError:
            logger.warning(
                "Pattern store query timed out, using fallback patterns",
                extra={"timeout_seconds": self.timeout_seconds, "vertical": query.vertical},
            )
            return fallback_pattern_set(["Pattern store query timed out"]), False
        except Exception as exc:
            logger.warning(
                "Pattern store unavailable, using fallback patterns",
                extra={"error": str(exc), "vertical": query.vertical, "market": query.market},
            )
            return fallback_pattern_set([f"Pattern store unavailable: {exc}"]), False

        patterns, diagnostics = _validate_records(records, query)
        if not patterns:
            logger.warning(
                "Pattern store returned no usable patterns, using fallback patterns",
                extra={"record_count": len(records), "skipped": len(diagnostics)},
            )
            return fallback_pattern_set([*diagnostics, "Pattern store returned no usable patterns"]), True

        logger.debug(
            "Loaded intent patterns",
            extra={"pattern_count": len(patterns), "skipped": len(diagnostics)},
        )
        return PatternSet(patterns=tuple(order_patterns(patterns)), diagnostics=tuple(diagnostics)), True


def _validate_records(
    records: Iterable[Mapping[str, Any]],
    query: PatternQuery,
) -> tuple[list[IntentPattern], list[str]]:
    patterns: list[IntentPattern] = []
    diagnostics: list[str] = []
    seen: set[tuple[str, str, str | None]] = set()

    for record in records:
        try:
            pattern = IntentPattern.model_validate(record)
        except ValidationError as exc:
            diagnostics.append(
                f"Skipped pattern {record.get('id', '?')}: {exc.error_count()} validation error(s)"
            )
            continue
        if not pattern.is_active or not query.matches(pattern.scope, pattern.scope_key):
            continue
        if pattern.identity in seen:
            diagnostics.append(f"Skipped duplicate pattern {pattern.pattern!r} in scope {pattern.scope}")
            continue
        try:
            compile_pattern(pattern)
        except MalformedPatternError as exc:
            diagnostics.append(exc.message)
            continue
        seen.add(pattern.identity)
        patterns.append(pattern)

    return patterns, diagnostics
