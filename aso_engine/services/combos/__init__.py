"""Keyword combo generation and classification."""

from aso_engine.services.combos.classifier import ComboClassifier, map_intent_to_combo_class
from aso_engine.services.combos.generator import ComboGenerator, dedupe_combos, generate

__all__ = [
    "ComboClassifier",
    "ComboGenerator",
    "dedupe_combos",
    "generate",
    "map_intent_to_combo_class",
]
