"""Token relevance scoring on a 0-3 scale, independent of intent."""

from __future__ import annotations

import re
from collections.abc import Mapping

from aso_engine.schemas.ruleset import MergedRuleSet, clamp_relevance

LOW_VALUE_TOKEN_RE = re.compile(
    r"^(best|top|great|good|new|latest|free|premium|pro|plus|lite|\d+|one|two|three)$"
)
LANGUAGE_RE = re.compile(
    r"^(english|spanish|french|german|italian|chinese|japanese|korean|portuguese|russian"
    r"|arabic|hindi|mandarin)$"
)
CORE_VERB_RE = re.compile(
    r"^(learn|speak|study|master|practice|improve|understand|read|write|listen|teach)$"
)
DOMAIN_NOUN_RE = re.compile(
    r"^(lesson|lessons|course|courses|class|classes|grammar|vocabulary|pronunciation"
    r"|conversation|fluency|language|languages|learning|app|application|tutorial|training"
    r"|education|skill|skills|method|techniques|guide)$"
)


class TokenRelevanceScorer:
    """Scores tokens, preferring ruleset overrides over the built-in heuristics."""

    def __init__(self, overrides: Mapping[str, int] | None = None) -> None:
        self.overrides = {
            token.lower(): clamp_relevance(score) for token, score in (overrides or {}).items()
        }

    @classmethod
    def from_ruleset(cls, ruleset: MergedRuleSet | None) -> TokenRelevanceScorer:
        return cls(ruleset.token_relevance if ruleset is not None else None)

    def __call__(self, token: str) -> int:
        return self.score(token)

    def score(self, token: str) -> int:
        lowered = token.lower()
        if lowered in self.overrides:
            return self.overrides[lowered]
        if LOW_VALUE_TOKEN_RE.match(lowered):
            return 0
        if LANGUAGE_RE.match(lowered) or CORE_VERB_RE.match(lowered):
            return 3
        if DOMAIN_NOUN_RE.match(lowered):
            return 2
        return 1
