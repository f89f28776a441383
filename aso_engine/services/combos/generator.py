"""Candidate keyword combo generation from title and subtitle tokens.

Four strategies feed one pool: contiguous windows, stopword-bridged
triples, title x subtitle pairs and lexicon-driven semantic pairs. The
pool is split into valuable and low-value combos, deduplicated by text
and sorted by relevance.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field

from aso_engine.config import settings
from aso_engine.schemas.combo import (
    GENERATION_TYPE_PRIORITY,
    Combo,
    ComboGenerationResult,
    GenerationType,
    TextSource,
    Token,
)

logger = logging.getLogger(__name__)

RelevanceFn = Callable[[str], int]

SEMANTIC_ACTION_VERBS: frozenset[str] = frozenset(
    {
        "learn", "speak", "study", "master", "practice", "improve", "read", "write", "listen",
        "teach", "train", "translate", "track", "save", "earn", "invest", "plan", "manage",
        "organize", "meditate", "watch", "stream", "meet", "find", "build", "edit",
    }
)
SEMANTIC_DOMAIN_NOUNS: frozenset[str] = frozenset(
    {
        "language", "languages", "spanish", "english", "french", "german", "italian",
        "japanese", "chinese", "korean", "portuguese", "grammar", "vocabulary", "words",
        "lessons", "skills", "money", "budget", "expenses", "cash", "rewards", "stocks",
        "habits", "tasks", "notes", "workouts", "sleep", "weight", "photos", "videos",
        "movies", "music", "friends", "people",
    }
)

TIME_BOUND_MARKERS = frozenset({"day", "days", "week", "weeks", "month", "months", "year", "years",
                                "trial", "limited", "offer", "sale", "deal", "deals"})
VERSION_MARKERS = frozenset({"new", "latest", "updated", "update", "version", "v2", "beta"})
SUPERLATIVE_FILLER = frozenset({"best", "top", "great", "good", "free", "premium", "pro", "plus",
                                "lite", "ultimate", "amazing"})

SEMANTIC_PAIR_SCORE = 3


def low_value_reason(tokens: Sequence[str], stopwords: frozenset[str] = frozenset()) -> str | None:
    """Why a combo is low-value, or None when it is worth keeping."""
    if all(token.isdigit() for token in tokens):
        return "pure_digits"
    if tokens[0][:1].isdigit():
        return "leading_digit"
    if any(token in TIME_BOUND_MARKERS for token in tokens):
        return "time_bound"
    if any(token in VERSION_MARKERS for token in tokens):
        return "version_marker"
    meaningful = [token for token in tokens if token not in stopwords]
    if meaningful and all(token in SUPERLATIVE_FILLER for token in meaningful):
        return "superlative_filler"
    return None


@dataclass
class _Field:
    tokens: list[str]
    source: TextSource
    bigrams: set[str] = field(init=False)

    def __post_init__(self) -> None:
        self.bigrams = {f"{a} {b}" for a, b in zip(self.tokens, self.tokens[1:])}


def _texts(tokens: Iterable[Token | str]) -> list[str]:
    return [token.text if isinstance(token, Token) else token.lower() for token in tokens]


class ComboGenerator:
    """Generates, partitions and deduplicates keyword combos."""

    def __init__(
        self,
        *,
        bridge_min_relevance: int | None = None,
        cross_element_min_relevance: int | None = None,
        max_combos: int | None = None,
        action_verbs: frozenset[str] = SEMANTIC_ACTION_VERBS,
        domain_nouns: frozenset[str] = SEMANTIC_DOMAIN_NOUNS,
    ) -> None:
        self.bridge_min_relevance = (
            settings.bridge_min_relevance if bridge_min_relevance is None else bridge_min_relevance
        )
        self.cross_element_min_relevance = (
            settings.cross_element_min_relevance
            if cross_element_min_relevance is None
            else cross_element_min_relevance
        )
        self.max_combos = settings.max_combos if max_combos is None else max_combos
        self.action_verbs = action_verbs
        self.domain_nouns = domain_nouns

    def generate(
        self,
        title_tokens: Sequence[Token | str],
        subtitle_tokens: Sequence[Token | str],
        relevance_fn: RelevanceFn,
        stopwords: Iterable[str],
        min_len: int = 2,
        max_len: int = 4,
    ) -> ComboGenerationResult:
        stopword_set = frozenset(word.lower() for word in stopwords)
        fields = [
            _Field(_texts(title_tokens), "title"),
            _Field(_texts(subtitle_tokens), "subtitle"),
        ]

        candidates: list[Combo] = []
        for text_field in fields:
            candidates.extend(
                self._sequential(text_field, relevance_fn, stopword_set, min_len, max_len)
            )
            if min_len <= 3 <= max_len:
                candidates.extend(self._stopword_bridged(text_field, relevance_fn, stopword_set))
            if min_len <= 2 <= max_len:
                candidates.extend(self._semantic_pairs(text_field))
        if min_len <= 2 <= max_len:
            candidates.extend(self._cross_element(fields[0], fields[1], relevance_fn, stopword_set))

        valuable: list[Combo] = []
        low_value: list[Combo] = []
        for combo in candidates:
            reason = low_value_reason(combo.tokens, stopword_set)
            if reason is None:
                valuable.append(combo)
            else:
                low_value.append(
                    combo.model_copy(update={"is_low_value": True, "low_value_reason": reason})
                )

        result = ComboGenerationResult(
            valuable=self._finalize(valuable),
            low_value=self._finalize(low_value),
        )
        logger.debug(
            "Generated keyword combos",
            extra={
                "candidates": len(candidates),
                "valuable": len(result.valuable),
                "low_value": len(result.low_value),
            },
        )
        return result

    def _sequential(
        self,
        text_field: _Field,
        relevance_fn: RelevanceFn,
        stopwords: frozenset[str],
        min_len: int,
        max_len: int,
    ) -> list[Combo]:
        combos: list[Combo] = []
        tokens = text_field.tokens
        for start in range(len(tokens)):
            for length in range(min_len, max_len + 1):
                window = tokens[start:start + length]
                if len(window) < length:
                    break
                if window[0] in stopwords or window[-1] in stopwords:
                    continue
                score = self._score(window, relevance_fn, stopwords)
                combos.append(self._combo(window, "sequential", score, text_field.source))
        return combos

    def _stopword_bridged(
        self,
        text_field: _Field,
        relevance_fn: RelevanceFn,
        stopwords: frozenset[str],
    ) -> list[Combo]:
        combos: list[Combo] = []
        tokens = text_field.tokens
        for index in range(len(tokens) - 2):
            left, bridge, right = tokens[index:index + 3]
            if bridge not in stopwords or left in stopwords or right in stopwords:
                continue
            left_score, right_score = relevance_fn(left), relevance_fn(right)
            if left_score < self.bridge_min_relevance or right_score < self.bridge_min_relevance:
                continue
            combos.append(
                self._combo(
                    [left, bridge, right],
                    "stopword_bridged",
                    left_score + right_score,
                    text_field.source,
                )
            )
        return combos

    def _cross_element(
        self,
        title: _Field,
        subtitle: _Field,
        relevance_fn: RelevanceFn,
        stopwords: frozenset[str],
    ) -> list[Combo]:
        def _strong(tokens: list[str]) -> list[tuple[str, int]]:
            scored = [
                (token, relevance_fn(token))
                for token in dict.fromkeys(tokens)
                if token not in stopwords
            ]
            return [
                (token, score)
                for token, score in scored
                if score >= self.cross_element_min_relevance
            ]

        combos: list[Combo] = []
        subtitle_strong = _strong(subtitle.tokens)
        for title_token, title_score in _strong(title.tokens):
            for subtitle_token, subtitle_score in subtitle_strong:
                if title_token == subtitle_token:
                    continue
                text = f"{title_token} {subtitle_token}"
                if text in title.bigrams or text in subtitle.bigrams:
                    continue
                combos.append(
                    self._combo(
                        [title_token, subtitle_token],
                        "cross_element",
                        title_score + subtitle_score,
                        "title+subtitle",
                    )
                )
        return combos

    def _semantic_pairs(self, text_field: _Field) -> list[Combo]:
        combos: list[Combo] = []
        for first, second in zip(text_field.tokens, text_field.tokens[1:]):
            verb_noun = first in self.action_verbs and second in self.domain_nouns
            noun_verb = first in self.domain_nouns and second in self.action_verbs
            if verb_noun or noun_verb:
                combos.append(
                    self._combo([first, second], "semantic_pair", SEMANTIC_PAIR_SCORE, text_field.source)
                )
        return combos

    def _finalize(self, combos: list[Combo]) -> list[Combo]:
        deduped = dedupe_combos(combos)
        deduped.sort(
            key=lambda combo: (
                -combo.relevance_score,
                -GENERATION_TYPE_PRIORITY[combo.generation_type],
                combo.text,
            )
        )
        return deduped[: self.max_combos]

    @staticmethod
    def _score(window: Sequence[str], relevance_fn: RelevanceFn, stopwords: frozenset[str]) -> int:
        return sum(relevance_fn(token) for token in window if token not in stopwords)

    @staticmethod
    def _combo(
        tokens: Sequence[str],
        generation_type: GenerationType,
        score: float,
        source: TextSource,
    ) -> Combo:
        return Combo(
            text=" ".join(tokens),
            tokens=list(tokens),
            generation_type=generation_type,
            relevance_score=score,
            source=source,
        )


def dedupe_combos(combos: Iterable[Combo]) -> list[Combo]:
    """Keep one combo per normalized text: highest score, then generation-type priority."""
    best: dict[str, Combo] = {}
    for combo in combos:
        key = " ".join(combo.text.lower().split())
        current = best.get(key)
        if current is None or (
            combo.relevance_score,
            GENERATION_TYPE_PRIORITY[combo.generation_type],
        ) > (
            current.relevance_score,
            GENERATION_TYPE_PRIORITY[current.generation_type],
        ):
            best[key] = combo
    return list(best.values())


def generate(
    title_tokens: Sequence[Token | str],
    subtitle_tokens: Sequence[Token | str],
    relevance_fn: RelevanceFn,
    stopwords: Iterable[str],
    min_len: int | None = None,
    max_len: int | None = None,
) -> ComboGenerationResult:
    """Generate combos with the configured defaults."""
    return ComboGenerator().generate(
        title_tokens,
        subtitle_tokens,
        relevance_fn,
        stopwords,
        min_len=settings.combo_min_length if min_len is None else min_len,
        max_len=settings.combo_max_length if max_len is None else max_len,
    )
