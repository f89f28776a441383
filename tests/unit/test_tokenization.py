"""Unit tests for ASO tokenization and relevance scoring."""

from aso_engine.schemas.ruleset import MergedRuleSet
from aso_engine.services.relevance import TokenRelevanceScorer
from aso_engine.services.tokenization import (
    DEFAULT_STOPWORDS,
    build_stopwords,
    tokenize,
    tokenize_for_aso,
)


def test_separators_and_punctuation_split_tokens() -> None:
    assert tokenize_for_aso("Learn Spanish Free - Language Lessons") == [
        "learn",
        "spanish",
        "free",
        "language",
        "lessons",
    ]
    assert tokenize_for_aso("Budget & Bills | Money·Tracker") == [
        "budget",
        "bills",
        "money",
        "tracker",
    ]


def test_apostrophes_are_dropped() -> None:
    assert tokenize_for_aso("Don't miss Rosetta’s lessons") == ["dont", "miss", "rosettas", "lessons"]


def test_empty_text_has_no_tokens() -> None:
    assert tokenize_for_aso("") == []
    assert tokenize_for_aso(None) == []
    assert tokenize(" - | ") == []


def test_tokenize_keeps_raw_casing_and_positions() -> None:
    tokens = tokenize("Speak AI English", source="subtitle", relevance_fn=TokenRelevanceScorer())

    assert [token.text for token in tokens] == ["speak", "ai", "english"]
    assert [token.raw for token in tokens] == ["Speak", "AI", "English"]
    assert [token.position for token in tokens] == [0, 1, 2]
    assert {token.source for token in tokens} == {"subtitle"}
    assert [token.relevance for token in tokens] == [3, 1, 3]


def test_build_stopwords_adds_normalized_words() -> None:
    stopwords = build_stopwords([" App ", "", "der"])

    assert DEFAULT_STOPWORDS <= stopwords
    assert {"app", "der"} <= stopwords
    assert "" not in stopwords


def test_relevance_heuristics() -> None:
    scorer = TokenRelevanceScorer()

    assert scorer("Spanish") == 3
    assert scorer("learn") == 3
    assert scorer("lessons") == 2
    assert scorer("free") == 0
    assert scorer("2024") == 0
    assert scorer("acme") == 1


def test_relevance_overrides_win_and_are_clamped() -> None:
    ruleset = MergedRuleSet(token_relevance={"Free": 3, "acme": 7})
    scorer = TokenRelevanceScorer.from_ruleset(ruleset)

    assert scorer("free") == 3
    assert scorer("acme") == 3
    assert TokenRelevanceScorer.from_ruleset(None)("acme") == 1
