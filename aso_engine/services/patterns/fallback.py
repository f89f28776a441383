"""Built-in intent patterns used when the pattern store has nothing usable."""

from aso_engine.schemas.pattern import IntentPattern


def _fallback(
    pattern: str,
    intent_type: str,
    weight: float,
    priority: int,
) -> IntentPattern:
    return IntentPattern(
        id=f"fallback:{pattern}",
        pattern=pattern,
        intent_type=intent_type,
        weight=weight,
        priority=priority,
    )


FALLBACK_PATTERNS: tuple[IntentPattern, ...] = (
    # Informational
    _fallback("learn", "informational", 1.2, 100),
    _fallback("course", "informational", 1.3, 110),
    _fallback("guide", "informational", 1.1, 90),
    _fallback("tutorial", "informational", 1.1, 90),
    _fallback("tips", "informational", 1.0, 85),
    # Commercial
    _fallback("best", "commercial", 1.5, 120),
    _fallback("top", "commercial", 1.4, 115),
    _fallback("compare", "commercial", 1.3, 110),
    _fallback("reviews", "commercial", 1.2, 100),
    # Transactional
    _fallback("download", "transactional", 2.0, 150),
    _fallback("free", "transactional", 1.8, 140),
    _fallback("get", "transactional", 1.5, 130),
    # Navigational
    _fallback("app", "navigational", 1.0, 50),
    _fallback("official", "navigational", 1.2, 60),
)
