"""Intent pattern cache, matcher and built-in fallback set."""

from aso_engine.services.patterns.cache import PatternCache, PatternSet
from aso_engine.services.patterns.fallback import FALLBACK_PATTERNS

__all__ = ["FALLBACK_PATTERNS", "PatternCache", "PatternSet"]
