"""Intent pattern records managed by the admin configuration surface."""

from __future__ import annotations

from typing import Any

from sqlalchemy import Boolean, Float, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from aso_engine.models.base import Base, StringIdMixin, TimestampMixin


class IntentPatternRecord(Base, StringIdMixin, TimestampMixin):
    """Stored token intent pattern, tagged with its inheritance scope."""

    __tablename__ = "aso_intent_patterns"
    __table_args__ = (
        UniqueConstraint("pattern", "scope", "scope_key", name="uq_aso_intent_patterns_scope"),
    )

    pattern: Mapped[str] = mapped_column(String(255), nullable=False)
    intent_type: Mapped[str] = mapped_column(String(32), nullable=False)
    weight: Mapped[float] = mapped_column(Float, default=1.0, nullable=False)
    priority: Mapped[int] = mapped_column(Integer, default=50, nullable=False, index=True)

    # Scope
    scope: Mapped[str] = mapped_column(String(32), default="base", nullable=False, index=True)
    scope_key: Mapped[str | None] = mapped_column(String(128), nullable=True, index=True)

    # Matching flags
    is_regex: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    case_sensitive: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    word_boundary: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)

    example: Mapped[str | None] = mapped_column(Text, nullable=True)

    def to_payload(self) -> dict[str, Any]:
        """Return the record as a plain dict for schema validation."""
        return {
            "id": self.id,
            "pattern": self.pattern,
            "intent_type": self.intent_type,
            "weight": self.weight,
            "priority": self.priority,
            "scope": self.scope,
            "scope_key": self.scope_key,
            "is_regex": self.is_regex,
            "case_sensitive": self.case_sensitive,
            "word_boundary": self.word_boundary,
            "is_active": self.is_active,
            "example": self.example,
        }

    def __repr__(self) -> str:
        return f"<IntentPatternRecord {self.pattern} ({self.scope}:{self.scope_key or '-'})>"
