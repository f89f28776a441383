"""Vertical leak detection for merged rulesets.

Flags vocabulary that belongs to another vertical. Warnings only; nothing
here raises or blocks resolution.
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from collections.abc import Iterable
from typing import Any, get_args

from aso_engine.schemas.ruleset import LeakSeverity, LeakType, LeakWarning, MergedRuleSet
from aso_engine.services.ruleset.profiles import (
    EXPECTED_VERTICALS_BY_CATEGORY,
    VERTICAL_PROFILES,
    VerticalProfile,
    expected_verticals,
)

logger = logging.getLogger(__name__)

_WORD_RE = re.compile(r"[a-z0-9]+")


def _vocabulary_hits(texts: Iterable[str], terms: frozenset[str]) -> list[str]:
    hits: list[str] = []
    for text in texts:
        if set(_WORD_RE.findall(text.lower())) & terms:
            hits.append(text)
    return hits


def _pattern_leaks(ruleset: MergedRuleSet, profile: VerticalProfile) -> list[LeakWarning]:
    warnings: list[LeakWarning] = []
    details_base = {"source_vertical": profile.id, "vertical": ruleset.vertical}

    pattern_hits = _vocabulary_hits(
        (pattern.pattern for pattern in ruleset.intent_patterns),
        profile.signature_terms,
    )
    if pattern_hits:
        warnings.append(
            LeakWarning(
                type="pattern_leak",
                severity="medium",
                message=f"{profile.label} intent patterns detected in '{ruleset.vertical}' ruleset",
                details={**details_base, "patterns": pattern_hits},
            )
        )

    hook_hits = _vocabulary_hits(
        (keyword for hook in ruleset.hook_patterns.values() for keyword in hook.keywords),
        profile.signature_terms,
    )
    if hook_hits:
        warnings.append(
            LeakWarning(
                type="pattern_leak",
                severity="medium",
                message=f"{profile.label} hook keywords detected in '{ruleset.vertical}' ruleset",
                details={**details_base, "keywords": hook_hits},
            )
        )

    token_hits = sorted(
        token
        for token, relevance in ruleset.token_relevance.items()
        if relevance == 3 and token in profile.signature_terms
    )
    if token_hits:
        warnings.append(
            LeakWarning(
                type="pattern_leak",
                severity="low",
                message=f"{profile.label} token relevance detected in '{ruleset.vertical}' ruleset",
                details={**details_base, "tokens": token_hits},
            )
        )
    return warnings


def _recommendation_leaks(ruleset: MergedRuleSet, profile: VerticalProfile) -> list[LeakWarning]:
    warnings: list[LeakWarning] = []
    for template_id, template in ruleset.recommendation_templates.items():
        lowered = template.lower()
        examples = [example for example in profile.template_examples if example in lowered]
        if examples:
            warnings.append(
                LeakWarning(
                    type="recommendation_leak",
                    severity="high",
                    message=(
                        f"Hard-coded {profile.label} examples in '{ruleset.vertical}' recommendations"
                    ),
                    details={
                        "recommendation_id": template_id,
                        "source_vertical": profile.id,
                        "examples": examples,
                    },
                )
            )
    return warnings


def detect_vertical_mismatch(ruleset: MergedRuleSet, category: str | None) -> LeakWarning | None:
    """Warn when the resolved vertical is unusual for the store category."""
    if not category:
        return None
    expected = EXPECTED_VERTICALS_BY_CATEGORY.get(category.strip(), ("base",))
    if ruleset.vertical in expected:
        return None
    return LeakWarning(
        type="vertical_mismatch",
        severity="medium",
        message=f"Rule set vertical '{ruleset.vertical}' may not match app category '{category}'",
        details={
            "vertical": ruleset.vertical,
            "category": category,
            "expected_verticals": list(expected),
        },
    )


def detect_leaks(ruleset: MergedRuleSet, category: str | None = None) -> list[LeakWarning]:
    """Scan a merged ruleset for vocabulary of verticals it should not carry."""
    allowed = {ruleset.vertical, "base", *expected_verticals(category)}
    warnings: list[LeakWarning] = []
    for vertical_id, profile in VERTICAL_PROFILES.items():
        if vertical_id in allowed:
            continue
        warnings.extend(_pattern_leaks(ruleset, profile))
        warnings.extend(_recommendation_leaks(ruleset, profile))

    mismatch = detect_vertical_mismatch(ruleset, category)
    if mismatch is not None:
        warnings.append(mismatch)

    if warnings:
        logger.info(
            "Ruleset leak warnings detected",
            extra={
                "vertical": ruleset.vertical,
                "market": ruleset.market,
                "category": category,
                "warning_count": len(warnings),
            },
        )
    return warnings


def summarize_leaks(warnings: Iterable[LeakWarning]) -> dict[str, Any]:
    """Counts of leak warnings by severity and type."""
    items = list(warnings)
    severities = Counter(warning.severity for warning in items)
    types = Counter(warning.type for warning in items)
    return {
        "total_warnings": len(items),
        "by_severity": {severity: severities.get(severity, 0) for severity in get_args(LeakSeverity)},
        "by_type": {leak_type: types.get(leak_type, 0) for leak_type in get_args(LeakType)},
    }
