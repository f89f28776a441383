"""Ruleset layer, merged ruleset and app context schemas."""

import math
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from aso_engine.schemas.pattern import IntentPattern

RulesetLayerName = Literal["base", "vertical", "market", "client"]
LeakType = Literal["pattern_leak", "recommendation_leak", "vertical_mismatch"]
LeakSeverity = Literal["low", "medium", "high"]

LAYER_ORDER: tuple[RulesetLayerName, ...] = ("base", "vertical", "market", "client")

MIN_TOKEN_RELEVANCE = 0
MAX_TOKEN_RELEVANCE = 3
MIN_MULTIPLIER = 0.5
MAX_MULTIPLIER = 2.0


def clamp_relevance(value: float) -> int:
    return int(max(MIN_TOKEN_RELEVANCE, min(MAX_TOKEN_RELEVANCE, math.floor(value))))


def clamp_multiplier(value: float) -> float:
    return float(max(MIN_MULTIPLIER, min(MAX_MULTIPLIER, value)))


class AppContext(BaseModel):
    """Resolution key for one audited app."""

    model_config = ConfigDict(frozen=True)

    vertical: str = "base"
    market: str = "us"
    client_id: str | None = None
    app_id: str | None = None

    @field_validator("vertical", "market")
    @classmethod
    def _normalize_code(cls, value: str) -> str:
        return value.strip().lower()

    def cache_key(self) -> tuple[str, str, str | None, str | None]:
        return (self.vertical, self.market, self.client_id, self.app_id)


class AppMetadata(BaseModel):
    """Listing metadata supplied by the metadata-fetch collaborator."""

    title: str = ""
    subtitle: str = ""
    description: str | None = None
    category: str | None = None
    locale: str | None = None
    tenant_id: str | None = None
    app_id: str | None = None


class HookPatternOverride(BaseModel):
    """Keywords that signal one hook category, with a scoring multiplier."""

    keywords: list[str] = Field(default_factory=list)
    weight: float = 1.0

    @field_validator("keywords")
    @classmethod
    def _normalize_keywords(cls, value: list[str]) -> list[str]:
        return _dedupe_lower(value)

    @field_validator("weight")
    @classmethod
    def _clamp_weight(cls, value: float) -> float:
        return clamp_multiplier(value)


class LeakWarning(BaseModel):
    """Non-fatal diagnostic about vocabulary that does not fit the vertical."""

    type: LeakType
    severity: LeakSeverity
    message: str
    details: dict[str, Any] = Field(default_factory=dict)


class RuleSetPayload(BaseModel):
    """Override fields shared by a single layer and the merged ruleset."""

    token_relevance: dict[str, int] = Field(default_factory=dict)
    intent_patterns: list[IntentPattern] = Field(default_factory=list)
    hook_patterns: dict[str, HookPatternOverride] = Field(default_factory=dict)
    stopwords: list[str] = Field(default_factory=list)
    kpi_weights: dict[str, float] = Field(default_factory=dict)
    formula_overrides: dict[str, float] = Field(default_factory=dict)
    recommendation_templates: dict[str, str] = Field(default_factory=dict)
    discovery_thresholds: dict[str, float] = Field(default_factory=dict)

    @field_validator("token_relevance", mode="before")
    @classmethod
    def _clamp_relevance(cls, value: Any) -> Any:
        if not isinstance(value, dict):
            return value
        return {
            str(token).strip().lower(): clamp_relevance(float(score))
            for token, score in value.items()
            if str(token).strip()
        }

    @field_validator("stopwords")
    @classmethod
    def _normalize_stopwords(cls, value: list[str]) -> list[str]:
        return _dedupe_lower(value)

    @field_validator("formula_overrides")
    @classmethod
    def _clamp_formula_overrides(cls, value: dict[str, float]) -> dict[str, float]:
        return {key: clamp_multiplier(multiplier) for key, multiplier in value.items()}

    def override_fields(self) -> list[str]:
        """Names of the payload fields that carry any override."""
        return [name for name in RuleSetPayload.model_fields if getattr(self, name)]

    def is_empty(self) -> bool:
        return not self.override_fields()


class RuleSetLayer(RuleSetPayload):
    """One inheritance layer as loaded from code profiles and the ruleset store."""

    scope: RulesetLayerName = "base"
    scope_key: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _scope_embedded_patterns(cls, data: Any) -> Any:
        # Patterns stored inside a layer inherit the layer's scope.
        if not isinstance(data, dict) or not isinstance(data.get("intent_patterns"), list):
            return data
        scope = data.get("scope", "base")
        scope_key = data.get("scope_key") if scope != "base" else None
        scoped: list[Any] = []
        for raw in data["intent_patterns"]:
            if isinstance(raw, dict):
                raw = dict(raw)
                raw.setdefault("scope", scope)
                raw.setdefault("scope_key", scope_key)
                raw.setdefault("id", f"ruleset:{scope}:{scope_key or '-'}:{raw.get('pattern')}")
            scoped.append(raw)
        return {**data, "intent_patterns": scoped}


class MergedRuleSet(RuleSetPayload):
    """Effective ruleset for one (vertical, market, client, app) combination."""

    vertical: str = "base"
    market: str = "us"
    client_id: str | None = None
    app_id: str | None = None
    contributing_layers: list[RulesetLayerName] = Field(default_factory=list)
    layer_sources: dict[str, str] = Field(default_factory=dict)
    unavailable_layers: list[RulesetLayerName] = Field(default_factory=list)
    leak_warnings: list[LeakWarning] = Field(default_factory=list)

    @property
    def active_intent_patterns(self) -> list[IntentPattern]:
        return [pattern for pattern in self.intent_patterns if pattern.is_active]


def _dedupe_lower(values: list[str]) -> list[str]:
    seen: set[str] = set()
    result: list[str] = []
    for value in values:
        normalized = value.strip().lower()
        if normalized and normalized not in seen:
            seen.add(normalized)
            result.append(normalized)
    return result
