"""Built-in vertical and market profiles plus context detection."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

from aso_engine.config import settings

DEFAULT_DISCOVERY_THRESHOLDS = {"excellent": 5.0, "good": 3.0, "moderate": 1.0}

_WORD_RE = re.compile(r"[a-z0-9]+")


@dataclass(frozen=True)
class VerticalProfile:
    """Code-defined defaults for one app vertical."""

    id: str
    label: str
    categories: tuple[str, ...]
    signature_terms: frozenset[str]
    template_examples: tuple[str, ...] = ()
    token_relevance: dict[str, int] = field(default_factory=dict)
    hook_patterns: dict[str, dict[str, Any]] = field(default_factory=dict)
    recommendation_templates: dict[str, str] = field(default_factory=dict)
    discovery_thresholds: dict[str, float] = field(default_factory=dict)

    def layer_payload(self) -> dict[str, Any]:
        return {
            "scope": "vertical",
            "scope_key": self.id,
            "token_relevance": dict(self.token_relevance),
            "hook_patterns": {key: dict(value) for key, value in self.hook_patterns.items()},
            "recommendation_templates": dict(self.recommendation_templates),
            "discovery_thresholds": dict(self.discovery_thresholds),
        }


@dataclass(frozen=True)
class MarketProfile:
    """Code-defined defaults for one storefront market."""

    id: str
    label: str
    regions: tuple[str, ...]
    stopwords: tuple[str, ...] = ()
    token_relevance: dict[str, int] = field(default_factory=dict)

    def layer_payload(self) -> dict[str, Any]:
        return {
            "scope": "market",
            "scope_key": self.id,
            "stopwords": list(self.stopwords),
            "token_relevance": dict(self.token_relevance),
        }


VERTICAL_PROFILES: dict[str, VerticalProfile] = {
    profile.id: profile
    for profile in (
        VerticalProfile(
            id="language_learning",
            label="Language Learning",
            categories=("Education",),
            signature_terms=frozenset(
                {
                    "learn", "study", "lesson", "lessons", "course", "courses", "fluency",
                    "fluent", "grammar", "vocabulary", "pronunciation", "language", "languages",
                }
            ),
            template_examples=("learn spanish", "language lessons", "fluency"),
            token_relevance={
                "learn": 3, "speak": 3, "fluent": 3, "fluency": 3,
                "lessons": 2, "course": 2, "grammar": 2, "vocabulary": 2,
            },
            hook_patterns={
                "learning_educational": {"keywords": ["learn", "master", "practice", "lessons"], "weight": 1.2},
                "outcome_benefit": {"keywords": ["speak fluently", "become fluent", "expand vocabulary"]},
                "time_to_result": {"keywords": ["in 30 days", "daily practice", "quick progress"]},
            },
            recommendation_templates={
                "missing_learning_hook": (
                    "Your title lacks educational hooks such as 'learn', 'practice' or 'speak "
                    "fluently'. Adding one or two learning terms improves educational intent."
                ),
                "missing_language_term": (
                    "Consider adding language names (e.g. 'Spanish', 'French') so users searching "
                    "for a specific language find the app."
                ),
            },
            discovery_thresholds={"excellent": 6.0},
        ),
        VerticalProfile(
            id="rewards",
            label="Rewards",
            categories=("Entertainment", "Lifestyle"),
            signature_terms=frozenset(
                {"earn", "earning", "cashback", "redeem", "redemption", "payout", "rewards", "giftcard"}
            ),
            template_examples=("earn cash", "gift cards", "get paid"),
            token_relevance={"earn": 3, "rewards": 3, "cashback": 3, "cash": 2, "gift": 2, "cards": 2},
            hook_patterns={
                "outcome_benefit": {"keywords": ["earn cash", "get paid", "gift cards", "cashback"], "weight": 1.3},
                "trust_safety": {"keywords": ["real money", "guaranteed payout"]},
            },
            recommendation_templates={
                "missing_earning_term": (
                    "Add at least one earning term (e.g. 'earn', 'cash out', 'rewards'). It is core "
                    "to visibility in this vertical."
                ),
            },
        ),
        VerticalProfile(
            id="finance",
            label="Finance",
            categories=("Finance", "Business"),
            signature_terms=frozenset(
                {"invest", "investing", "trading", "stocks", "portfolio", "budget", "banking", "crypto"}
            ),
            template_examples=("grow wealth", "fdic insured", "build portfolio"),
            token_relevance={"invest": 3, "budget": 3, "banking": 3, "stocks": 2, "savings": 2, "money": 2},
            hook_patterns={
                "trust_safety": {"keywords": ["secure", "fdic insured", "bank-grade security"], "weight": 1.5},
                "outcome_benefit": {"keywords": ["grow wealth", "save money", "build portfolio"]},
            },
            recommendation_templates={
                "missing_trust_term": (
                    "Finance apps need trust signals ('secure', 'FDIC insured'). Add at least one "
                    "to improve user confidence."
                ),
            },
        ),
        VerticalProfile(
            id="dating",
            label="Dating",
            categories=("Lifestyle", "Social Networking"),
            signature_terms=frozenset({"dating", "singles", "romance", "date", "soulmate"}),
            template_examples=("meet singles", "find love"),
            token_relevance={"dating": 3, "singles": 3, "meet": 2, "love": 2, "chat": 2},
            hook_patterns={
                "outcome_benefit": {"keywords": ["find love", "meet singles", "real connections"], "weight": 1.2},
            },
            recommendation_templates={
                "missing_social_term": (
                    "Add a connection term such as 'meet', 'match' or 'chat' so the listing reads "
                    "as a social app."
                ),
            },
        ),
        VerticalProfile(
            id="productivity",
            label="Productivity",
            categories=("Productivity", "Business"),
            signature_terms=frozenset({"tasks", "todo", "planner", "notes", "organize", "reminders"}),
            template_examples=("get organized", "to-do list"),
            token_relevance={"tasks": 3, "planner": 3, "notes": 2, "calendar": 2, "organize": 2},
            hook_patterns={
                "ease_of_use": {"keywords": ["simple", "one tap", "get organized"], "weight": 1.1},
            },
        ),
        VerticalProfile(
            id="health",
            label="Health & Fitness",
            categories=("Health & Fitness", "Lifestyle"),
            signature_terms=frozenset({"workout", "fitness", "meditation", "calories", "sleep", "yoga"}),
            template_examples=("lose weight", "home workout"),
            token_relevance={"workout": 3, "fitness": 3, "meditation": 3, "yoga": 2, "sleep": 2},
            hook_patterns={
                "outcome_benefit": {"keywords": ["lose weight", "get fit", "sleep better"], "weight": 1.2},
            },
        ),
        VerticalProfile(
            id="entertainment",
            label="Entertainment",
            categories=("Entertainment",),
            signature_terms=frozenset({"streaming", "movies", "shows", "episodes", "watch"}),
            template_examples=("watch movies", "stream shows"),
            token_relevance={"movies": 3, "streaming": 3, "shows": 2, "watch": 2},
            hook_patterns={
                "outcome_benefit": {"keywords": ["unlimited movies", "watch anywhere"]},
            },
        ),
    )
}

MARKET_PROFILES: dict[str, MarketProfile] = {
    profile.id: profile
    for profile in (
        MarketProfile(id="us", label="United States", regions=("US",)),
        MarketProfile(
            id="uk",
            label="United Kingdom",
            regions=("GB", "UK"),
            token_relevance={"colour": 1, "organise": 2},
        ),
        MarketProfile(id="ca", label="Canada", regions=("CA",)),
        MarketProfile(id="au", label="Australia", regions=("AU", "NZ")),
        MarketProfile(
            id="de",
            label="Germany",
            regions=("DE", "AT", "CH"),
            stopwords=(
                "der", "die", "das", "und", "oder", "mit", "für", "von", "zu",
                "den", "dem", "ein", "eine", "im", "in", "auf",
            ),
        ),
    )
}

# Store categories and the verticals a ruleset may reasonably carry for them.
EXPECTED_VERTICALS_BY_CATEGORY: dict[str, tuple[str, ...]] = {
    "Education": ("language_learning", "base"),
    "Finance": ("finance", "base"),
    "Business": ("finance", "productivity", "base"),
    "Entertainment": ("entertainment", "rewards", "base"),
    "Lifestyle": ("rewards", "health", "dating", "base"),
    "Health & Fitness": ("health", "base"),
    "Productivity": ("productivity", "base"),
    "Social Networking": ("dating", "base"),
}


def base_layer_payload() -> dict[str, Any]:
    return {
        "scope": "base",
        "discovery_thresholds": dict(DEFAULT_DISCOVERY_THRESHOLDS),
    }


def code_layer_payload(scope: str, scope_key: str | None) -> dict[str, Any] | None:
    """Built-in payload for a layer, or None when the code has no profile for it."""
    if scope == "base":
        return base_layer_payload()
    if scope == "vertical" and scope_key in VERTICAL_PROFILES:
        return VERTICAL_PROFILES[scope_key].layer_payload()
    if scope == "market" and scope_key in MARKET_PROFILES:
        return MARKET_PROFILES[scope_key].layer_payload()
    return None


def expected_verticals(category: str | None) -> tuple[str, ...]:
    if not category:
        return ()
    return EXPECTED_VERTICALS_BY_CATEGORY.get(category.strip(), ("base",))


def _words(text: str) -> set[str]:
    return set(_WORD_RE.findall(text.lower()))


def detect_vertical(
    category: str | None = None,
    title: str = "",
    subtitle: str = "",
) -> str:
    """Map store category and listing text to a vertical id.

    A category with one expected vertical decides directly. Otherwise the
    candidate vertical whose signature terms appear most often in the text
    wins, falling back to the configured default.
    """
    candidates = [vertical for vertical in expected_verticals(category) if vertical != "base"]
    if len(candidates) == 1:
        return candidates[0]

    words = _words(f"{title} {subtitle}")
    pool = candidates or list(VERTICAL_PROFILES)
    best_vertical = settings.default_vertical
    best_hits = 0
    for vertical_id in pool:
        hits = len(words & VERTICAL_PROFILES[vertical_id].signature_terms)
        if hits > best_hits:
            best_vertical, best_hits = vertical_id, hits
    return best_vertical


def detect_market(locale: str | None) -> str:
    """Map a storefront locale ("en-GB", "de_DE", "de", "gb") to a market id."""
    if not locale:
        return settings.default_market

    parts = [part for part in re.split(r"[-_]", locale.strip()) if part]
    if not parts:
        return settings.default_market

    # A bare code ("de", "gb") is read as a region.
    region = parts[-1].upper()
    for profile in MARKET_PROFILES.values():
        if region in profile.regions:
            return profile.id
    return settings.default_market
