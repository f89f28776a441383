"""Unit tests for keyword combo generation."""

from __future__ import annotations

from aso_engine.schemas.combo import Combo
from aso_engine.services.combos.generator import ComboGenerator, dedupe_combos, generate, low_value_reason
from aso_engine.services.relevance import TokenRelevanceScorer
from aso_engine.services.tokenization import DEFAULT_STOPWORDS, tokenize_for_aso

SCORER = TokenRelevanceScorer()


def _texts(combos: list[Combo]) -> list[str]:
    return [combo.text for combo in combos]


def test_stopword_bridged_combo_wins_over_sequential_window() -> None:
    result = ComboGenerator().generate(["learn", "the", "language"], [], SCORER, {"the"})

    assert _texts(result.valuable) == ["learn the language"]
    combo = result.valuable[0]
    assert combo.generation_type == "stopword_bridged"
    assert combo.relevance_score == 5
    assert "learn language" not in _texts(result.all_combos)


def test_bridge_requires_meaningful_ends() -> None:
    generator = ComboGenerator(bridge_min_relevance=1)
    result = generator.generate(["free", "for", "kids"], [], SCORER, {"for"})

    # "free" scores 0, so no bridged combo is emitted.
    assert all(combo.generation_type != "stopword_bridged" for combo in result.all_combos)


def test_time_bound_combo_is_low_value() -> None:
    result = ComboGenerator().generate(["30", "day", "trial"], [], SCORER, DEFAULT_STOPWORDS)

    assert "30 day trial" not in _texts(result.valuable)
    low_value = {combo.text: combo for combo in result.low_value}
    assert low_value["30 day trial"].is_low_value is True
    assert low_value["30 day trial"].low_value_reason == "leading_digit"
    assert low_value["day trial"].low_value_reason == "time_bound"


def test_low_value_reasons() -> None:
    assert low_value_reason(["123", "456"]) == "pure_digits"
    assert low_value_reason(["3d", "chess"]) == "leading_digit"
    assert low_value_reason(["limited", "offer"]) == "time_bound"
    assert low_value_reason(["new", "features"]) == "version_marker"
    assert low_value_reason(["best", "free"]) == "superlative_filler"
    assert low_value_reason(["best", "of", "top"], frozenset({"of"})) == "superlative_filler"
    assert low_value_reason(["best", "budget"]) is None
    assert low_value_reason(["learn", "spanish"]) is None


def test_cross_element_pairs_skip_existing_bigrams() -> None:
    result = ComboGenerator().generate(
        tokenize_for_aso("Learn Spanish"),
        tokenize_for_aso("Spanish lessons"),
        SCORER,
        DEFAULT_STOPWORDS,
    )

    cross = [combo for combo in result.valuable if combo.generation_type == "cross_element"]
    assert _texts(cross) == ["learn lessons"]
    assert cross[0].source == "title+subtitle"
    assert cross[0].relevance_score == 5


def test_cross_element_respects_relevance_gate() -> None:
    result = ComboGenerator(cross_element_min_relevance=2).generate(
        ["acme", "spanish"],
        ["widget", "grammar"],
        SCORER,
        DEFAULT_STOPWORDS,
    )

    cross = {combo.text for combo in result.valuable if combo.generation_type == "cross_element"}
    assert cross == {"spanish grammar"}


def test_semantic_pair_scores_three() -> None:
    result = ComboGenerator().generate(["money", "save", "tips"], [], SCORER, DEFAULT_STOPWORDS)

    by_text = {combo.text: combo for combo in result.valuable}
    assert by_text["money save"].generation_type == "semantic_pair"
    assert by_text["money save"].relevance_score == 3
    assert by_text["save tips"].generation_type == "sequential"


def test_dedupe_prefers_score_then_generation_type() -> None:
    combos = [
        Combo(text="save money", tokens=["save", "money"], generation_type="sequential",
              relevance_score=3, source="title"),
        Combo(text="save money", tokens=["save", "money"], generation_type="semantic_pair",
              relevance_score=3, source="title"),
        Combo(text="save  Money", tokens=["save", "money"], generation_type="cross_element",
              relevance_score=2, source="title+subtitle"),
        Combo(text="track cash", tokens=["track", "cash"], generation_type="sequential",
              relevance_score=4, source="subtitle"),
        Combo(text="track cash", tokens=["track", "cash"], generation_type="semantic_pair",
              relevance_score=3, source="subtitle"),
    ]

    deduped = {combo.text: combo for combo in dedupe_combos(combos)}

    assert len(deduped) == 2
    assert deduped["save money"].generation_type == "semantic_pair"
    assert deduped["track cash"].generation_type == "sequential"


def test_generation_is_idempotent() -> None:
    title = tokenize_for_aso("Learn Spanish Free - Language Lessons")
    subtitle = tokenize_for_aso("Speak like a native in 30 days")

    first = generate(title, subtitle, SCORER, DEFAULT_STOPWORDS)
    second = generate(title, subtitle, SCORER, DEFAULT_STOPWORDS)

    assert first == second
    texts = _texts(first.valuable)
    assert len(texts) == len(set(texts))
    assert dedupe_combos([*first.valuable, *second.valuable]) == first.valuable


def test_valuable_combos_sorted_by_relevance() -> None:
    result = generate(
        tokenize_for_aso("Learn Spanish Free - Language Lessons"),
        tokenize_for_aso("Grammar and vocabulary practice"),
        SCORER,
        DEFAULT_STOPWORDS,
    )

    scores = [combo.relevance_score for combo in result.valuable]
    assert scores == sorted(scores, reverse=True)
    assert all(2 <= len(combo.tokens) <= 4 for combo in result.all_combos)


def test_length_bounds_and_cap() -> None:
    tokens = tokenize_for_aso("learn spanish grammar vocabulary pronunciation fluency")

    pairs_only = ComboGenerator().generate(tokens, [], SCORER, DEFAULT_STOPWORDS, min_len=2, max_len=2)
    capped = ComboGenerator(max_combos=3).generate(tokens, [], SCORER, DEFAULT_STOPWORDS)

    assert {len(combo.tokens) for combo in pairs_only.valuable} == {2}
    assert len(capped.valuable) == 3


def test_empty_input_yields_nothing() -> None:
    result = generate([], [], SCORER, DEFAULT_STOPWORDS)

    assert result.valuable == []
    assert result.low_value == []
