"""Read access to stored ruleset layer overrides."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from aso_engine.core.db_kernel import DbKernelError, db_read
from aso_engine.core.exceptions import RulesetStoreUnavailableError
from aso_engine.models.ruleset import RulesetOverrideRecord


class RulesetLayerStore(Protocol):
    """Read-only source of ruleset layer payloads."""

    async def load_layer(self, scope: str, scope_key: str | None) -> dict[str, Any] | None:
        ...


class InMemoryRulesetStore:
    """Ruleset layers held in process memory, keyed by (scope, scope_key)."""

    def __init__(
        self,
        layers: Mapping[tuple[str, str | None], Mapping[str, Any]] | None = None,
    ) -> None:
        self._layers: dict[tuple[str, str | None], dict[str, Any]] = {
            key: dict(value) for key, value in (layers or {}).items()
        }

    def put(self, scope: str, scope_key: str | None, payload: Mapping[str, Any]) -> None:
        self._layers[(scope, scope_key)] = dict(payload)

    async def load_layer(self, scope: str, scope_key: str | None) -> dict[str, Any] | None:
        payload = self._layers.get((scope, scope_key))
        return dict(payload) if payload is not None else None


class SqlRulesetRepository:
    """Reads one override row per layer via short-lived sessions."""

    async def load_layer(self, scope: str, scope_key: str | None) -> dict[str, Any] | None:
        async def _load(session: AsyncSession) -> dict[str, Any] | None:
            stmt = select(RulesetOverrideRecord).where(RulesetOverrideRecord.scope == scope)
            if scope_key is None:
                stmt = stmt.where(RulesetOverrideRecord.scope_key.is_(None))
            else:
                stmt = stmt.where(RulesetOverrideRecord.scope_key == scope_key)
            result = await session.execute(stmt)
            record = result.scalar_one_or_none()
            return record.to_payload() if record is not None else None

        try:
            return await db_read(_load, operation_name=f"load_ruleset_layer_{scope}")
        except DbKernelError as exc:
            raise RulesetStoreUnavailableError(scope, str(exc)) from exc
