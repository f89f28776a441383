"""Read-only repositories for patterns and ruleset layers."""

from aso_engine.repositories.pattern_repository import (
    InMemoryPatternStore,
    PatternQuery,
    PatternStore,
    SqlPatternRepository,
)
from aso_engine.repositories.ruleset_repository import (
    InMemoryRulesetStore,
    RulesetLayerStore,
    SqlRulesetRepository,
)

__all__ = [
    "InMemoryPatternStore",
    "InMemoryRulesetStore",
    "PatternQuery",
    "PatternStore",
    "RulesetLayerStore",
    "SqlPatternRepository",
    "SqlRulesetRepository",
]
