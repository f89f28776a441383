"""ASO-aware tokenization of listing text."""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable

from aso_engine.schemas.combo import TextSource, Token

DEFAULT_STOPWORDS: frozenset[str] = frozenset(
    {
        "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with",
        "by", "from", "as", "is", "was", "are", "be", "been", "have", "has", "had", "do",
        "does", "did", "will", "would", "should", "could", "may", "might", "can", "must",
        "shall",
    }
)

_APOSTROPHE_RE = re.compile(r"['‘’`]")
# Visual separators ("|", dashes, "&", "·") and punctuation all split tokens.
_SEPARATOR_RE = re.compile(r"[\W_]+")


def _split(text: str | None) -> list[str]:
    if not text:
        return []
    return [part for part in _SEPARATOR_RE.split(_APOSTROPHE_RE.sub("", text)) if part]


def tokenize_for_aso(text: str | None) -> list[str]:
    """Lower-cased word tokens; apostrophes are dropped ("don't" -> "dont")."""
    return [part.lower() for part in _split(text)]


def tokenize(
    text: str | None,
    source: TextSource = "title",
    relevance_fn: Callable[[str], int] | None = None,
) -> list[Token]:
    """Tokenize one field, keeping the original casing for case-sensitive patterns."""
    tokens: list[Token] = []
    for position, raw in enumerate(_split(text)):
        lowered = raw.lower()
        tokens.append(
            Token(
                text=lowered,
                raw=raw,
                position=position,
                source=source,
                relevance=relevance_fn(lowered) if relevance_fn is not None else 1,
            )
        )
    return tokens


def build_stopwords(additions: Iterable[str] = ()) -> frozenset[str]:
    """Default stopwords plus ruleset additions."""
    return DEFAULT_STOPWORDS | {word.strip().lower() for word in additions if word.strip()}
