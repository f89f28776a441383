"""ASO rule resolution and metadata classification engine."""

from aso_engine.core.logging import setup_logging
from aso_engine.schemas.audit import AuditResult
from aso_engine.schemas.ruleset import AppContext, AppMetadata
from aso_engine.services.audit_orchestrator import AuditOrchestrator
from aso_engine.services.patterns.cache import PatternCache
from aso_engine.services.ruleset.resolver import RulesetResolver

__all__ = [
    "AppContext",
    "AppMetadata",
    "AuditOrchestrator",
    "AuditResult",
    "PatternCache",
    "RulesetResolver",
    "setup_logging",
]
