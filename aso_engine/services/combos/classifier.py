"""Combo intent class and value tier assignment."""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable
from typing import get_args

from aso_engine.schemas.audit import ComboCoverage
from aso_engine.schemas.combo import Combo, ComboGenerationResult, ComboIntentClass, ValueTier
from aso_engine.schemas.pattern import IntentType
from aso_engine.services.token_classifier import PatternInput, classify_tokens, compiled_patterns

logger = logging.getLogger(__name__)

COMBO_CLASS_BY_INTENT: dict[IntentType | None, ComboIntentClass] = {
    "informational": "learning",
    "commercial": "outcome",
    "transactional": "outcome",
    "navigational": "brand",
    None: "noise",
}

HEURISTIC_LEARNING_KEYWORDS = frozenset(
    {"learn", "learning", "study", "lesson", "lessons", "course", "courses", "guide",
     "tutorial", "practice", "how", "tips", "class", "teach"}
)
HEURISTIC_OUTCOME_KEYWORDS = frozenset(
    {"fluent", "fast", "easy", "quick", "save", "earn", "win", "lose", "improve", "master",
     "results", "download", "get", "free", "best", "top"}
)


def map_intent_to_combo_class(intent: IntentType | None) -> ComboIntentClass:
    """Total mapping from token-level intent to combo class; no intent maps to noise."""
    return COMBO_CLASS_BY_INTENT[intent]


def _normalize(text: str) -> str:
    return " ".join(text.lower().split())


class ComboClassifier:
    """Assigns intent classes and value tiers to generated combos.

    Precedence: low-value or caller-flagged noise, then brand tokens, then the
    dominant pattern intent of the combo's tokens, then a keyword heuristic
    when no patterns are loaded at all.
    """

    def __init__(
        self,
        patterns: PatternInput | None = None,
        *,
        brand_tokens: Iterable[str] = (),
        noise_combos: Iterable[str] = (),
        stopwords: Iterable[str] = (),
    ) -> None:
        self.compiled = compiled_patterns(patterns) if patterns else []
        self.brand_tokens = {
            word for token in brand_tokens for word in _normalize(token).split() if word
        }
        self.noise_combos = {_normalize(text) for text in noise_combos}
        self.stopwords = frozenset(stopwords)

    @property
    def patterns_loaded(self) -> bool:
        return bool(self.compiled)

    def is_branded(self, combo: Combo) -> bool:
        return any(token in self.brand_tokens for token in combo.tokens)

    def is_flagged_noise(self, combo: Combo) -> bool:
        return combo.is_low_value or _normalize(combo.text) in self.noise_combos

    def classify(self, combo: Combo) -> ComboIntentClass:
        if self.is_flagged_noise(combo):
            return "noise"
        if self.is_branded(combo):
            return "brand"
        if self.patterns_loaded:
            coverage = classify_tokens(combo.tokens, self.compiled, self.stopwords)
            return map_intent_to_combo_class(coverage.dominant_intent)
        return self._heuristic(combo)

    def value_tier(self, combo: Combo) -> ValueTier:
        if self.is_flagged_noise(combo):
            return "low_value"
        if self.is_branded(combo):
            return "branded"
        return "generic"

    def apply(self, result: ComboGenerationResult) -> ComboCoverage:
        """Classify every combo and count intent classes across both partitions."""
        valuable = [self._classified(combo) for combo in result.valuable]
        low_value = [self._classified(combo) for combo in result.low_value]

        # Caller-flagged noise moves out of the valuable partition.
        flagged = [combo for combo in valuable if combo.value_tier == "low_value"]
        if flagged:
            valuable = [combo for combo in valuable if combo.value_tier != "low_value"]
            low_value = [
                *low_value,
                *(
                    combo.model_copy(update={"is_low_value": True, "low_value_reason": "flagged_noise"})
                    for combo in flagged
                ),
            ]

        counts = Counter(combo.intent_class for combo in [*valuable, *low_value])
        return ComboCoverage(
            valuable=valuable,
            low_value=low_value,
            intent_class_counts={
                intent_class: counts.get(intent_class, 0)
                for intent_class in get_args(ComboIntentClass)
            },
            total=len(valuable) + len(low_value),
        )

    def _classified(self, combo: Combo) -> Combo:
        return combo.model_copy(
            update={"intent_class": self.classify(combo), "value_tier": self.value_tier(combo)}
        )

    def _heuristic(self, combo: Combo) -> ComboIntentClass:
        tokens = set(combo.tokens)
        if tokens & HEURISTIC_LEARNING_KEYWORDS:
            return "learning"
        if tokens & HEURISTIC_OUTCOME_KEYWORDS:
            return "outcome"
        return "noise"
