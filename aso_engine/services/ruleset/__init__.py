"""Ruleset resolution, merging, profiles and leak detection."""

from aso_engine.services.ruleset.leak_detection import detect_leaks, summarize_leaks
from aso_engine.services.ruleset.merge import deep_merge, merge_layers
from aso_engine.services.ruleset.profiles import detect_market, detect_vertical
from aso_engine.services.ruleset.resolver import RulesetResolver

__all__ = [
    "RulesetResolver",
    "deep_merge",
    "detect_leaks",
    "detect_market",
    "detect_vertical",
    "merge_layers",
    "summarize_leaks",
]
