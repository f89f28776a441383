"""Coverage and audit result schemas."""

from typing import Any

from pydantic import BaseModel, Field

from aso_engine.schemas.combo import Combo, ComboIntentClass, Token
from aso_engine.schemas.pattern import IntentType
from aso_engine.schemas.ruleset import LeakWarning


class TokenMatch(BaseModel):
    """Result of classifying one token."""

    token: str
    intent_type: IntentType
    pattern_id: str
    matched_pattern: str
    weight: float
    priority: int


class CoverageResult(BaseModel):
    """Intent coverage for one field."""

    score: int = Field(default=0, ge=0, le=100)
    total_tokens: int = 0
    classified_tokens: int = 0
    distribution: dict[str, int] = Field(default_factory=dict)
    distribution_percentage: dict[str, int] = Field(default_factory=dict)
    weighted_scores: dict[str, float] = Field(default_factory=dict)
    dominant_intent: IntentType | None = None
    classified: list[TokenMatch] = Field(default_factory=list)
    unclassified: list[str] = Field(default_factory=list)


class CombinedCoverage(BaseModel):
    """Title and subtitle coverage combined with fixed field weights."""

    score: int = Field(default=0, ge=0, le=100)
    title_score: int = 0
    subtitle_score: int = 0
    title_weight: float = 0.6
    subtitle_weight: float = 0.4
    distribution_percentage: dict[str, int] = Field(default_factory=dict)
    weighted_scores: dict[str, float] = Field(default_factory=dict)
    dominant_intent: IntentType | None = None


class ComboCoverage(BaseModel):
    """Classified combos split into valuable and low-value partitions."""

    valuable: list[Combo] = Field(default_factory=list)
    low_value: list[Combo] = Field(default_factory=list)
    intent_class_counts: dict[ComboIntentClass, int] = Field(default_factory=dict)
    total: int = 0


class AuditDiagnostics(BaseModel):
    """Everything a caller needs to judge how trustworthy a result is."""

    fallback_mode: bool = False
    vertical: str = "base"
    market: str = "us"
    contributing_layers: list[str] = Field(default_factory=list)
    unavailable_layers: list[str] = Field(default_factory=list)
    leak_warnings: list[LeakWarning] = Field(default_factory=list)
    leak_summary: dict[str, Any] = Field(default_factory=dict)
    pattern_diagnostics: list[str] = Field(default_factory=list)
    input_warnings: list[str] = Field(default_factory=list)
    step_errors: list[str] = Field(default_factory=list)
    patterns_used: int = 0


class AuditResult(BaseModel):
    """Structured result of one metadata audit."""

    title_tokens: list[Token] = Field(default_factory=list)
    subtitle_tokens: list[Token] = Field(default_factory=list)
    title: CoverageResult = Field(default_factory=CoverageResult)
    subtitle: CoverageResult = Field(default_factory=CoverageResult)
    combined: CombinedCoverage = Field(default_factory=CombinedCoverage)
    combos: ComboCoverage = Field(default_factory=ComboCoverage)
    diagnostics: AuditDiagnostics = Field(default_factory=AuditDiagnostics)

    @property
    def fallback_mode(self) -> bool:
        return self.diagnostics.fallback_mode
