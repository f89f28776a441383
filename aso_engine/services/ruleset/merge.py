"""Generic deep merge for ruleset layers.

Mappings merge recursively and scalars are last-writer-wins. List fields
named in UNION_FIELDS or ADDITIVE_FIELDS are concatenated with duplicates
removed; every other list is replaced by the later layer.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from copy import deepcopy
from typing import Any

from aso_engine.schemas.ruleset import RuleSetLayer, RuleSetPayload

UNION_FIELDS = frozenset({"stopwords"})
ADDITIVE_FIELDS = frozenset({"intent_patterns", "keywords"})


def _item_identity(item: Any) -> Any:
    if isinstance(item, Mapping) and "pattern" in item:
        return (item.get("pattern"), item.get("scope"), item.get("scope_key"))
    if isinstance(item, str):
        return item.strip().lower()
    return repr(item)


def _append_unique(existing: list[Any], incoming: list[Any]) -> list[Any]:
    """Concatenate keeping first-seen order; a later duplicate replaces the earlier value."""
    merged: dict[Any, Any] = {}
    for item in [*existing, *incoming]:
        merged[_item_identity(item)] = deepcopy(item)
    return list(merged.values())


def deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Merge override onto base without mutating either argument."""
    merged: dict[str, Any] = deepcopy(dict(base))
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = deep_merge(current, value)
        elif (
            key in UNION_FIELDS or key in ADDITIVE_FIELDS
        ) and isinstance(current, list) and isinstance(value, list):
            merged[key] = _append_unique(current, value)
        else:
            merged[key] = deepcopy(value)
    return merged


def layer_payload(layer: RuleSetPayload) -> dict[str, Any]:
    """Dump only the override fields a layer actually sets.

    Hook overrides keep only their explicitly set keys, so a layer that adds
    keywords does not reset an earlier weight to the default.
    """
    fields = set(layer.override_fields())
    if not fields:
        return {}
    scalar_fields = fields - {"hook_patterns"}
    payload = layer.model_dump(include=scalar_fields) if scalar_fields else {}
    if "hook_patterns" in fields:
        payload["hook_patterns"] = {
            name: hook.model_dump(exclude_unset=True) for name, hook in layer.hook_patterns.items()
        }
    return payload


def merge_layers(layers: Iterable[RuleSetLayer]) -> dict[str, Any]:
    """Reduce layers left to right through deep_merge."""
    merged: dict[str, Any] = {}
    for layer in layers:
        merged = deep_merge(merged, layer_payload(layer))
    return merged
