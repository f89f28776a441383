"""Token intent classification and coverage metrics."""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence

from aso_engine.config import settings
from aso_engine.schemas.audit import CombinedCoverage, CoverageResult, TokenMatch
from aso_engine.schemas.combo import Token
from aso_engine.schemas.pattern import INTENT_TYPES, IntentPattern, IntentType
from aso_engine.services.patterns.cache import PatternSet
from aso_engine.services.patterns.matcher import CompiledPattern, compile_patterns

PatternInput = PatternSet | Sequence[IntentPattern] | Sequence[CompiledPattern]


def round_half_up(value: float) -> int:
    """Round .5 away from zero for non-negative values (not banker's rounding)."""
    return int(math.floor(value + 0.5))


def compiled_patterns(patterns: PatternInput) -> Sequence[CompiledPattern]:
    """Evaluation-ordered compiled patterns from a pattern set or a plain list."""
    if isinstance(patterns, PatternSet):
        return patterns.compiled
    if patterns and isinstance(patterns[0], CompiledPattern):
        return patterns  # type: ignore[return-value]
    compiled, _ = compile_patterns(list(patterns))  # type: ignore[arg-type]
    return compiled


def classify_token(token: Token | str, patterns: PatternInput) -> TokenMatch | None:
    """Return the first matching pattern in evaluation order, or None."""
    text = token.raw if isinstance(token, Token) else token
    for compiled in compiled_patterns(patterns):
        if compiled.matches(text):
            pattern = compiled.pattern
            return TokenMatch(
                token=text.lower(),
                intent_type=pattern.intent_type,
                pattern_id=pattern.id,
                matched_pattern=pattern.pattern,
                weight=pattern.weight,
                priority=pattern.priority,
            )
    return None


def dominant_intent(weighted_scores: dict[str, float]) -> IntentType | None:
    """Intent with the highest weighted sum; ties go to the earlier intent type."""
    best: IntentType | None = None
    best_score = 0.0
    for intent in INTENT_TYPES:
        score = weighted_scores.get(intent, 0.0)
        if score > best_score:
            best, best_score = intent, score
    return best


def classify_tokens(
    tokens: Iterable[Token | str],
    patterns: PatternInput,
    stopwords: Iterable[str] = (),
) -> CoverageResult:
    """Coverage of one field: share of non-stopword tokens matched by any pattern."""
    compiled = compiled_patterns(patterns)
    excluded = set(stopwords)

    counted = [
        token
        for token in tokens
        if (token.text if isinstance(token, Token) else token.lower()) not in excluded
    ]
    total = len(counted)
    if total == 0:
        return CoverageResult(
            distribution={intent: 0 for intent in INTENT_TYPES},
            distribution_percentage={**{intent: 0 for intent in INTENT_TYPES}, "unclassified": 0},
            weighted_scores={intent: 0.0 for intent in INTENT_TYPES},
        )

    distribution = {intent: 0 for intent in INTENT_TYPES}
    weighted = {intent: 0.0 for intent in INTENT_TYPES}
    classified: list[TokenMatch] = []
    unclassified: list[str] = []

    for token in counted:
        match = classify_token(token, compiled)
        if match is None:
            unclassified.append(token.text if isinstance(token, Token) else token.lower())
            continue
        classified.append(match)
        distribution[match.intent_type] += 1
        weighted[match.intent_type] += match.weight

    percentages = {intent: round_half_up(count / total * 100) for intent, count in distribution.items()}
    percentages["unclassified"] = round_half_up(len(unclassified) / total * 100)
    weighted = {intent: round(score, 4) for intent, score in weighted.items()}

    return CoverageResult(
        score=round_half_up(len(classified) / total * 100),
        total_tokens=total,
        classified_tokens=len(classified),
        distribution=distribution,
        distribution_percentage=percentages,
        weighted_scores=weighted,
        dominant_intent=dominant_intent(weighted),
        classified=classified,
        unclassified=unclassified,
    )


def combine_coverage(
    title: CoverageResult,
    subtitle: CoverageResult,
    *,
    title_weight: float | None = None,
    subtitle_weight: float | None = None,
) -> CombinedCoverage:
    """Weighted title/subtitle coverage; each field score is already rounded."""
    title_weight = settings.title_coverage_weight if title_weight is None else title_weight
    subtitle_weight = settings.subtitle_coverage_weight if subtitle_weight is None else subtitle_weight

    keys = [*INTENT_TYPES, "unclassified"]
    percentages = {
        key: round_half_up(
            title.distribution_percentage.get(key, 0) * title_weight
            + subtitle.distribution_percentage.get(key, 0) * subtitle_weight
        )
        for key in keys
    }
    weighted = {
        intent: round(
            title.weighted_scores.get(intent, 0.0) * title_weight
            + subtitle.weighted_scores.get(intent, 0.0) * subtitle_weight,
            4,
        )
        for intent in INTENT_TYPES
    }

    return CombinedCoverage(
        score=round_half_up(title.score * title_weight + subtitle.score * subtitle_weight),
        title_score=title.score,
        subtitle_score=subtitle.score,
        title_weight=title_weight,
        subtitle_weight=subtitle_weight,
        distribution_percentage=percentages,
        weighted_scores=weighted,
        dominant_intent=dominant_intent(weighted),
    )


def annotate_tokens(tokens: Iterable[Token], patterns: PatternInput) -> list[Token]:
    """Copies of the tokens carrying the id of the pattern each one matched."""
    compiled = compiled_patterns(patterns)
    annotated: list[Token] = []
    for token in tokens:
        match = classify_token(token, compiled)
        annotated.append(
            token.model_copy(update={"matched_pattern_id": match.pattern_id if match else None})
        )
    return annotated
