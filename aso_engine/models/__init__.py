"""SQLAlchemy models for the read-only configuration store."""

from aso_engine.models.base import Base
from aso_engine.models.pattern import IntentPatternRecord
from aso_engine.models.ruleset import RulesetOverrideRecord

__all__ = [
    "Base",
    "IntentPatternRecord",
    "RulesetOverrideRecord",
]
