"""Custom exception classes for the engine.

None of these escape an audit evaluation: the orchestrator degrades every
one of them into a smaller, flagged result.
"""

from typing import Any


class AsoEngineError(Exception):
    """Base exception for all engine errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


# Configuration store errors
class StoreUnavailableError(AsoEngineError):
    """A backing configuration store could not be queried."""

    def __init__(self, store_name: str, message: str) -> None:
        super().__init__(
            f"{store_name} unavailable: {message}",
            {"store": store_name},
        )


class PatternStoreUnavailableError(StoreUnavailableError):
    """The pattern store could not be queried."""

    def __init__(self, message: str) -> None:
        super().__init__("pattern_store", message)


class RulesetStoreUnavailableError(StoreUnavailableError):
    """A ruleset layer could not be loaded."""

    def __init__(self, layer: str, message: str) -> None:
        super().__init__(f"ruleset_store[{layer}]", message)
        self.layer = layer


class DuplicatePatternError(AsoEngineError):
    """A pattern with the same (pattern, scope, scope_key) already exists."""

    def __init__(self, pattern: str, scope: str, scope_key: str | None) -> None:
        super().__init__(
            f"Duplicate pattern {pattern!r} in scope {scope}:{scope_key or '-'}",
            {"pattern": pattern, "scope": scope, "scope_key": scope_key},
        )


# Data errors
class MalformedPatternError(AsoEngineError):
    """A stored pattern cannot be evaluated."""

    def __init__(self, pattern: str, reason: str) -> None:
        super().__init__(
            f"Malformed pattern {pattern!r}: {reason}",
            {"pattern": pattern, "reason": reason},
        )
        self.pattern = pattern
        self.reason = reason


class InvalidInputError(AsoEngineError):
    """Listing text cannot be audited."""

    def __init__(self, field: str, reason: str) -> None:
        super().__init__(f"Invalid {field}: {reason}", {"field": field, "reason": reason})
        self.field = field
        self.reason = reason
