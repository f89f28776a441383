"""Read access to stored intent patterns."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Protocol

from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from aso_engine.core.db_kernel import DbKernelError, db_read
from aso_engine.core.exceptions import DuplicatePatternError, PatternStoreUnavailableError
from aso_engine.models.pattern import IntentPatternRecord
from aso_engine.schemas.pattern import IntentPattern


@dataclass(frozen=True)
class PatternQuery:
    """Scope filter for one pattern lookup."""

    vertical: str | None = None
    market: str | None = None
    client_id: str | None = None
    app_id: str | None = None

    def scope_chain(self) -> list[tuple[str, str | None]]:
        """Scopes whose patterns apply to this request, least specific first."""
        chain: list[tuple[str, str | None]] = [("base", None)]
        if self.vertical and self.vertical != "base":
            chain.append(("vertical", self.vertical))
        if self.market:
            chain.append(("market", self.market))
        if self.client_id:
            chain.append(("client", self.client_id))
        if self.app_id:
            chain.append(("app", self.app_id))
        return chain

    def matches(self, scope: str, scope_key: str | None) -> bool:
        if scope == "base":
            return True
        return (scope, scope_key) in self.scope_chain()


class PatternStore(Protocol):
    """Read-only source of raw pattern payloads."""

    async def fetch_patterns(self, query: PatternQuery) -> list[dict[str, Any]]:
        ...


class InMemoryPatternStore:
    """Pattern store held in process memory, used for embedding and tests."""

    def __init__(self, patterns: Iterable[IntentPattern | Mapping[str, Any]] = ()) -> None:
        self._patterns: list[dict[str, Any]] = []
        self._identities: set[tuple[str, str, str | None]] = set()
        for pattern in patterns:
            self.add(pattern)

    def add(self, pattern: IntentPattern | Mapping[str, Any]) -> None:
        """Add a pattern, rejecting a duplicate (pattern, scope, scope_key)."""
        payload = pattern.model_dump() if isinstance(pattern, IntentPattern) else dict(pattern)
        identity = (
            str(payload.get("pattern", "")),
            str(payload.get("scope", "base")),
            payload.get("scope_key"),
        )
        if identity in self._identities:
            raise DuplicatePatternError(*identity)
        self._identities.add(identity)
        self._patterns.append(payload)

    def __len__(self) -> int:
        return len(self._patterns)

    async def fetch_patterns(self, query: PatternQuery) -> list[dict[str, Any]]:
        return [
            dict(payload)
            for payload in self._patterns
            if payload.get("is_active", True)
            and query.matches(str(payload.get("scope", "base")), payload.get("scope_key"))
        ]


class SqlPatternRepository:
    """Reads active patterns for a scope chain via short-lived sessions."""

    async def fetch_patterns(self, query: PatternQuery) -> list[dict[str, Any]]:
        conditions = []
        for scope, scope_key in query.scope_chain():
            if scope_key is None:
                conditions.append(IntentPatternRecord.scope == scope)
            else:
                conditions.append(
                    and_(
                        IntentPatternRecord.scope == scope,
                        IntentPatternRecord.scope_key == scope_key,
                    )
                )

        async def _fetch(session: AsyncSession) -> list[dict[str, Any]]:
            stmt = (
                select(IntentPatternRecord)
                .where(IntentPatternRecord.is_active.is_(True))
                .where(or_(*conditions))
                .order_by(IntentPatternRecord.priority.desc())
            )
            result = await session.execute(stmt)
            return [record.to_payload() for record in result.scalars().all()]

        try:
            return await db_read(_fetch, operation_name="fetch_intent_patterns")
        except DbKernelError as exc:
            raise PatternStoreUnavailableError(str(exc)) from exc
