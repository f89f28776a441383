"""Pydantic schemas for patterns, rulesets, combos and audit results."""

from aso_engine.schemas.audit import (
    AuditDiagnostics,
    AuditResult,
    CombinedCoverage,
    ComboCoverage,
    CoverageResult,
    TokenMatch,
)
from aso_engine.schemas.combo import Combo, ComboGenerationResult, Token
from aso_engine.schemas.pattern import IntentPattern
from aso_engine.schemas.ruleset import (
    AppContext,
    AppMetadata,
    LeakWarning,
    MergedRuleSet,
    RuleSetLayer,
)

__all__ = [
    "AppContext",
    "AppMetadata",
    "AuditDiagnostics",
    "AuditResult",
    "Combo",
    "ComboCoverage",
    "ComboGenerationResult",
    "CombinedCoverage",
    "CoverageResult",
    "IntentPattern",
    "LeakWarning",
    "MergedRuleSet",
    "RuleSetLayer",
    "Token",
    "TokenMatch",
]
