"""Unit tests for ruleset layer merging."""

from aso_engine.schemas.ruleset import MergedRuleSet, RuleSetLayer
from aso_engine.services.ruleset.merge import deep_merge, merge_layers


def _layer(scope: str, scope_key: str | None = None, **payload) -> RuleSetLayer:
    return RuleSetLayer.model_validate({"scope": scope, "scope_key": scope_key, **payload})


def test_scalar_values_follow_layer_precedence() -> None:
    layers = [
        _layer("base", kpi_weights={"a": 1.0, "b": 1.0, "c": 1.0, "d": 1.0}),
        _layer("vertical", "finance", kpi_weights={"b": 2.0, "c": 2.0, "d": 2.0}),
        _layer("market", "uk", kpi_weights={"c": 3.0, "d": 3.0}),
        _layer("client", "acme", kpi_weights={"d": 4.0}),
    ]

    merged = merge_layers(layers)

    assert merged["kpi_weights"] == {"a": 1.0, "b": 2.0, "c": 3.0, "d": 4.0}


def test_stopwords_are_unioned_without_duplicates() -> None:
    layers = [
        _layer("base", stopwords=["the", "a"]),
        _layer("vertical", "finance", stopwords=["app", "The"]),
        _layer("market", "de", stopwords=["der", "a"]),
        _layer("client", "acme", stopwords=["acme"]),
    ]

    merged = merge_layers(layers)

    assert merged["stopwords"] == ["the", "a", "app", "der", "acme"]


def test_intent_patterns_are_additive_and_later_duplicate_wins() -> None:
    base = _layer(
        "base",
        intent_patterns=[{"pattern": "learn", "intent_type": "informational", "weight": 1.0}],
    )
    client = _layer(
        "client",
        "acme",
        intent_patterns=[{"pattern": "download", "intent_type": "transactional"}],
    )
    base_again = _layer(
        "base",
        intent_patterns=[{"pattern": "learn", "intent_type": "informational", "weight": 2.5}],
    )

    merged = merge_layers([base, client, base_again])

    patterns = {(item["pattern"], item["scope"]): item for item in merged["intent_patterns"]}
    assert set(patterns) == {("learn", "base"), ("download", "client")}
    assert patterns[("learn", "base")]["weight"] == 2.5
    assert patterns[("download", "client")]["scope_key"] == "acme"


def test_hook_keywords_accumulate_while_weight_is_overridden() -> None:
    layers = [
        _layer("base", hook_patterns={"trust": {"keywords": ["secure"], "weight": 1.0}}),
        _layer("vertical", "finance", hook_patterns={"trust": {"keywords": ["insured"], "weight": 1.5}}),
    ]

    merged = merge_layers(layers)

    assert merged["hook_patterns"]["trust"]["keywords"] == ["secure", "insured"]
    assert merged["hook_patterns"]["trust"]["weight"] == 1.5


def test_hook_weight_survives_layer_that_only_adds_keywords() -> None:
    layers = [
        _layer("vertical", "language_learning", hook_patterns={"learning": {"keywords": ["learn"], "weight": 1.2}}),
        _layer("client", "acme", hook_patterns={"learning": {"keywords": ["immersion"]}}),
    ]

    merged = merge_layers(layers)

    assert merged["hook_patterns"]["learning"] == {"keywords": ["learn", "immersion"], "weight": 1.2}


def test_hook_weight_defaults_when_no_layer_sets_it() -> None:
    merged = MergedRuleSet.model_validate(
        merge_layers([_layer("base", hook_patterns={"trust": {"keywords": ["secure"]}})])
    )

    assert merged.hook_patterns["trust"].weight == 1.0


def test_empty_layers_do_not_erase_earlier_values() -> None:
    merged = merge_layers(
        [
            _layer("base", recommendation_templates={"intro": "Base text"}),
            _layer("vertical", "finance"),
            _layer("client", "acme"),
        ]
    )

    assert merged == {"recommendation_templates": {"intro": "Base text"}}


def test_deep_merge_does_not_mutate_inputs() -> None:
    base = {"nested": {"keep": 1, "replace": 1}, "stopwords": ["a"]}
    override = {"nested": {"replace": 2}, "stopwords": ["b"]}

    merged = deep_merge(base, override)

    assert merged == {"nested": {"keep": 1, "replace": 2}, "stopwords": ["a", "b"]}
    assert base == {"nested": {"keep": 1, "replace": 1}, "stopwords": ["a"]}


def test_layer_normalization_clamps_relevance_and_multipliers() -> None:
    layer = _layer(
        "client",
        "acme",
        token_relevance={"Spanish": 7, "noise": -2, "mid": 2.9},
        formula_overrides={"title": 5.0, "subtitle": 0.1},
        hook_patterns={"trust": {"keywords": ["Secure"], "weight": 9}},
    )

    assert layer.token_relevance == {"spanish": 3, "noise": 0, "mid": 2}
    assert layer.formula_overrides == {"title": 2.0, "subtitle": 0.5}
    assert layer.hook_patterns["trust"].weight == 2.0
    assert layer.hook_patterns["trust"].keywords == ["secure"]
