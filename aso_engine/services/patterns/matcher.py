"""Compiled matching for intent patterns."""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache

from aso_engine.core.exceptions import MalformedPatternError
from aso_engine.schemas.pattern import IntentPattern


@lru_cache(maxsize=2048)
def _compile(expression: str, flags: int) -> re.Pattern[str]:
    return re.compile(expression, flags)


@dataclass(frozen=True)
class CompiledPattern:
    """An intent pattern with its matcher prepared."""

    pattern: IntentPattern
    regex: re.Pattern[str] | None

    def matches(self, text: str) -> bool:
        """Match raw text, normalizing case unless the pattern is case-sensitive."""
        candidate = text if self.pattern.case_sensitive else text.lower()
        if self.regex is not None:
            return self.regex.search(candidate) is not None
        needle = self.pattern.pattern if self.pattern.case_sensitive else self.pattern.pattern.lower()
        return needle in candidate


def compile_pattern(pattern: IntentPattern) -> CompiledPattern:
    """Prepare a pattern for matching.

    Word-bounded literals compile to an escaped ``\\b...\\b`` expression; plain
    literals fall back to substring checks.
    """
    flags = 0 if pattern.case_sensitive else re.IGNORECASE
    if pattern.is_regex:
        try:
            regex = _compile(pattern.pattern, flags)
        except re.error as exc:
            raise MalformedPatternError(pattern.pattern, f"invalid regular expression: {exc}") from exc
        if regex.search("") is not None:
            raise MalformedPatternError(pattern.pattern, "regular expression matches the empty string")
        return CompiledPattern(pattern=pattern, regex=regex)

    if pattern.word_boundary:
        expression = rf"\b{re.escape(pattern.pattern)}\b"
        return CompiledPattern(pattern=pattern, regex=_compile(expression, flags))
    return CompiledPattern(pattern=pattern, regex=None)


def order_patterns(patterns: list[IntentPattern]) -> list[IntentPattern]:
    """Evaluation order: priority descending, then the more specific scope."""
    return sorted(patterns, key=lambda pattern: (-pattern.priority, -pattern.specificity))


def compile_patterns(
    patterns: list[IntentPattern],
) -> tuple[list[CompiledPattern], list[str]]:
    """Compile patterns in evaluation order, skipping malformed ones.

    Returns the compiled patterns and one diagnostic per skipped pattern.
    """
    compiled: list[CompiledPattern] = []
    diagnostics: list[str] = []
    for pattern in order_patterns(patterns):
        try:
            compiled.append(compile_pattern(pattern))
        except MalformedPatternError as exc:
            diagnostics.append(exc.message)
    return compiled, diagnostics
