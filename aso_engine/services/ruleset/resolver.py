"""Ruleset resolution: base -> vertical -> market -> client."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Hashable
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError

from aso_engine.config import settings
from aso_engine.repositories.ruleset_repository import RulesetLayerStore
from aso_engine.schemas.ruleset import AppContext, MergedRuleSet, RuleSetLayer, RulesetLayerName
from aso_engine.services.cache import ExpiringCache
from aso_engine.services.ruleset.leak_detection import detect_leaks
from aso_engine.services.ruleset.merge import merge_layers
from aso_engine.services.ruleset.profiles import code_layer_payload

logger = logging.getLogger(__name__)

_STORE_META_FIELDS = ("id", "scope", "scope_key", "created_at", "updated_at")


@dataclass
class LayerLoad:
    """Layers contributed by one inheritance tier, code profile first."""

    layers: list[RuleSetLayer] = field(default_factory=list)
    sources: list[str] = field(default_factory=list)
    unavailable: bool = False

    @property
    def source(self) -> str:
        return "+".join(self.sources) if self.sources else "empty"

    @property
    def has_overrides(self) -> bool:
        return any(not layer.is_empty() for layer in self.layers)


LayerLoader = Callable[[AppContext], Awaitable[LayerLoad]]


class RulesetResolver:
    """Resolves and caches the effective ruleset for an app context."""

    def __init__(
        self,
        store: RulesetLayerStore | None = None,
        *,
        cache: ExpiringCache[MergedRuleSet] | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        self.store = store
        self.cache = cache if cache is not None else ExpiringCache(settings.ruleset_cache_ttl_seconds)
        self.timeout_seconds = timeout_seconds or settings.ruleset_store_timeout_seconds
        self.layer_loaders: list[tuple[RulesetLayerName, LayerLoader]] = [
            ("base", self._layer_loader("base", lambda context: None)),
            (
                "vertical",
                self._layer_loader(
                    "vertical",
                    lambda context: context.vertical if context.vertical != "base" else None,
                ),
            ),
            ("market", self._layer_loader("market", lambda context: context.market or None)),
            ("client", self._layer_loader("client", lambda context: context.client_id)),
        ]

    async def resolve(self, context: AppContext, category: str | None = None) -> MergedRuleSet:
        """Return the merged ruleset for a context with leak warnings attached."""
        key = context.cache_key()
        ruleset = self.cache.get(key)
        if ruleset is None:
            ruleset = await self._resolve_uncached(context)
            # Degraded results are not cached so a recovered store is picked up on the next call.
            if not ruleset.unavailable_layers:
                self.cache.set(key, ruleset)
        else:
            logger.debug("Ruleset cache hit", extra={"cache_key": list(key)})

        return ruleset.model_copy(update={"leak_warnings": detect_leaks(ruleset, category)})

    def invalidate(self, context: AppContext | None = None) -> None:
        """Evict one context, or everything when no context is given."""
        if context is None:
            self.cache.clear()
            return
        self.cache.invalidate(context.cache_key())

    def invalidate_layer(self, scope: RulesetLayerName, scope_key: str | None = None) -> int:
        """Evict every cached ruleset that inherits from the given layer."""
        if scope == "base":
            count = len(self.cache)
            self.cache.clear()
            return count

        position = {"vertical": 0, "market": 1, "client": 2}[scope]

        def _uses_layer(key: Hashable) -> bool:
            return isinstance(key, tuple) and key[position] == scope_key

        return self.cache.invalidate_where(_uses_layer)

    async def _resolve_uncached(self, context: AppContext) -> MergedRuleSet:
        layers: list[RuleSetLayer] = []
        contributing: list[RulesetLayerName] = []
        unavailable: list[RulesetLayerName] = []
        sources: dict[str, str] = {}

        for name, loader in self.layer_loaders:
            load = await loader(context)
            sources[name] = load.source
            if load.unavailable:
                unavailable.append(name)
            if load.has_overrides:
                contributing.append(name)
            layers.extend(load.layers)

        merged = merge_layers(layers)
        ruleset = MergedRuleSet.model_validate(
            {
                **merged,
                "vertical": context.vertical,
                "market": context.market,
                "client_id": context.client_id,
                "app_id": context.app_id,
                "contributing_layers": contributing,
                "layer_sources": sources,
                "unavailable_layers": unavailable,
            }
        )
        logger.info(
            "Ruleset resolved",
            extra={
                "vertical": context.vertical,
                "market": context.market,
                "client_id": context.client_id,
                "contributing_layers": contributing,
                "unavailable_layers": unavailable,
            },
        )
        return ruleset

    def _layer_loader(
        self,
        scope: RulesetLayerName,
        key_for: Callable[[AppContext], str | None],
    ) -> LayerLoader:
        async def _load(context: AppContext) -> LayerLoad:
            scope_key = key_for(context)
            if scope != "base" and scope_key is None:
                return LayerLoad()
            return await self._load_layer(scope, scope_key)

        return _load

    async def _load_layer(self, scope: RulesetLayerName, scope_key: str | None) -> LayerLoad:
        load = LayerLoad()

        code_payload = code_layer_payload(scope, scope_key)
        if code_payload is not None:
            load.layers.append(RuleSetLayer.model_validate(code_payload))
            load.sources.append("code")

        if self.store is None:
            return load

        try:
            store_payload = await asyncio.wait_for(
                self.store.load_layer(scope, scope_key),
                timeout=self.timeout_seconds,
            )
        except TimeoutError:
            logger.warning(
                "Ruleset layer load timed out, using empty layer",
                extra={"scope": scope, "scope_key": scope_key, "timeout_seconds": self.timeout_seconds},
            )
            load.unavailable = True
            return load
        except Exception as exc:
            logger.warning(
                "Ruleset layer store unavailable, using empty layer",
                extra={"scope": scope, "scope_key": scope_key, "error": str(exc)},
            )
            load.unavailable = True
            return load

        if not store_payload:
            return load

        try:
            store_layer = RuleSetLayer.model_validate(
                {**_strip_meta(store_payload), "scope": scope, "scope_key": scope_key}
            )
        except ValidationError as exc:
            logger.warning(
                "Invalid ruleset layer payload ignored",
                extra={"scope": scope, "scope_key": scope_key, "error_count": exc.error_count()},
            )
            load.unavailable = True
            return load

        load.layers.append(store_layer)
        load.sources.append("store")
        return load


def _strip_meta(payload: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in payload.items() if key not in _STORE_META_FIELDS}
