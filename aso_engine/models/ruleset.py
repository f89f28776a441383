"""Ruleset override records, one row per (scope, scope_key) layer."""

from __future__ import annotations

from typing import Any

from sqlalchemy import String, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from aso_engine.models.base import Base, StringIdMixin, TimestampMixin

RULESET_PAYLOAD_FIELDS = (
    "token_relevance",
    "intent_patterns",
    "hook_patterns",
    "stopwords",
    "kpi_weights",
    "formula_overrides",
    "recommendation_templates",
    "discovery_thresholds",
)


class RulesetOverrideRecord(Base, StringIdMixin, TimestampMixin):
    """Override payload for one ruleset layer (base, vertical, market or client)."""

    __tablename__ = "aso_ruleset_overrides"
    __table_args__ = (
        UniqueConstraint("scope", "scope_key", name="uq_aso_ruleset_overrides_scope"),
    )

    scope: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    scope_key: Mapped[str | None] = mapped_column(String(128), nullable=True, index=True)

    token_relevance: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
    intent_patterns: Mapped[list[dict[str, Any]] | None] = mapped_column(JSONB, nullable=True)
    hook_patterns: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
    stopwords: Mapped[list[str] | None] = mapped_column(JSONB, nullable=True)
    kpi_weights: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
    formula_overrides: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
    recommendation_templates: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
    discovery_thresholds: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)

    def to_payload(self) -> dict[str, Any]:
        """Return the non-empty override fields as a layer payload."""
        payload: dict[str, Any] = {"scope": self.scope, "scope_key": self.scope_key}
        for field_name in RULESET_PAYLOAD_FIELDS:
            value = getattr(self, field_name)
            if value:
                payload[field_name] = value
        return payload

    def __repr__(self) -> str:
        return f"<RulesetOverrideRecord {self.scope}:{self.scope_key or '-'}>"
