"""
Pure edit operations over the filter tree.

Every function takes a model and returns a new one; inputs are never mutated.
None of them raise for unknown ids or field names: those are no-ops.
"""

from __future__ import annotations
from dataclasses import replace
from datetime import datetime
from typing import Any, Callable, Optional, Sequence, TYPE_CHECKING

from .construction import new_condition, new_group
from .models import (
    AdvancedFilterConfig,
    FilterCondition,
    FilterGroup,
    FilterMetadata,
    FilterOperator,
    LogicOperator,
    empty_value,
)

if TYPE_CHECKING:
    from ..catalog import FilterField


def _flip(logic: LogicOperator) -> LogicOperator:
    return LogicOperator.OR if logic == LogicOperator.AND else LogicOperator.AND


# ---------------------------------------------------------------------------
# Conditions
# ---------------------------------------------------------------------------

def change_field(
    condition: FilterCondition,
    field_name: str,
    catalog: Sequence["FilterField"],
) -> FilterCondition:
    """
    Point the condition at another field. Operator and value are reset to the
    field's defaults so nothing from the previous field's type survives.
    """
    fld = next((f for f in catalog if f.name == field_name), None)
    if fld is None:
        return condition
    operator = fld.operators[0]
    return replace(
        condition,
        field=fld.name,
        value_type=fld.type,
        operator=operator,
        value=empty_value(fld.type, operator),
    )


def change_operator(condition: FilterCondition, operator: FilterOperator) -> FilterCondition:
    # Callers only offer operators from the field's own list.
    return replace(condition, operator=FilterOperator(operator))


def change_value(condition: FilterCondition, value: Any) -> FilterCondition:
    return replace(condition, value=value)


# ---------------------------------------------------------------------------
# Groups
# ---------------------------------------------------------------------------

def toggle_logic(group: FilterGroup) -> FilterGroup:
    return replace(group, logic=_flip(group.logic))


def replace_condition(
    group: FilterGroup, condition_id: str, updated: FilterCondition
) -> FilterGroup:
    return replace(
        group,
        conditions=[updated if c.id == condition_id else c for c in group.conditions],
    )


def update_condition(
    group: FilterGroup,
    condition_id: str,
    fn: Callable[[FilterCondition], FilterCondition],
) -> FilterGroup:
    return replace(
        group,
        conditions=[fn(c) if c.id == condition_id else c for c in group.conditions],
    )


def remove_condition(group: FilterGroup, condition_id: str) -> FilterGroup:
    remaining = [c for c in group.conditions if c.id != condition_id]
    if not remaining:
        remaining.append(new_condition())
    return replace(group, conditions=remaining)


def add_condition(group: FilterGroup) -> FilterGroup:
    return replace(group, conditions=[*group.conditions, new_condition()])


def add_nested_group(group: FilterGroup) -> FilterGroup:
    return replace(group, nested_groups=[*group.nested_groups, new_group()])


def replace_nested_group(
    group: FilterGroup, nested_id: str, updated: FilterGroup
) -> FilterGroup:
    return replace(
        group,
        nested_groups=[updated if g.id == nested_id else g for g in group.nested_groups],
    )


def remove_nested_group(group: FilterGroup, nested_id: str) -> FilterGroup:
    # nested groups may become empty; that is just a flat group
    return replace(
        group,
        nested_groups=[g for g in group.nested_groups if g.id != nested_id],
    )


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

def toggle_config_logic(config: AdvancedFilterConfig) -> AdvancedFilterConfig:
    return replace(config, logic=_flip(config.logic))


def add_group(config: AdvancedFilterConfig) -> AdvancedFilterConfig:
    return replace(config, groups=[*config.groups, new_group()])


def replace_group(
    config: AdvancedFilterConfig, group_id: str, updated: FilterGroup
) -> AdvancedFilterConfig:
    return replace(
        config,
        groups=[updated if g.id == group_id else g for g in config.groups],
    )


def remove_group(config: AdvancedFilterConfig, group_id: str) -> AdvancedFilterConfig:
    remaining = [g for g in config.groups if g.id != group_id]
    if not remaining:
        remaining.append(new_group())
    return replace(config, groups=remaining)


def find_group(config: AdvancedFilterConfig, group_id: str) -> Optional[FilterGroup]:
    def walk(groups: Sequence[FilterGroup]) -> Optional[FilterGroup]:
        for g in groups:
            if g.id == group_id:
                return g
            hit = walk(g.nested_groups)
            if hit is not None:
                return hit
        return None

    return walk(config.groups)


def update_group(
    config: AdvancedFilterConfig,
    group_id: str,
    fn: Callable[[FilterGroup], FilterGroup],
) -> AdvancedFilterConfig:
    """
    Apply fn to the group with group_id wherever it sits in the tree
    (depth-first, first match). Unknown ids leave the configuration as is.
    """
    found = False

    def walk(group: FilterGroup) -> FilterGroup:
        nonlocal found
        if found:
            return group
        if group.id == group_id:
            found = True
            return fn(group)
        children = [walk(g) for g in group.nested_groups]
        if any(new is not old for new, old in zip(children, group.nested_groups)):
            return replace(group, nested_groups=children)
        return group

    groups = [walk(g) for g in config.groups]
    if not found:
        return config
    return replace(config, groups=groups)


def with_metadata(
    config: AdvancedFilterConfig,
    applied_at: Optional[datetime],
    result_count: Optional[int],
) -> AdvancedFilterConfig:
    return replace(
        config,
        metadata=FilterMetadata(applied_at=applied_at, result_count=result_count),
    )


__all__ = [
    "change_field",
    "change_operator",
    "change_value",
    "toggle_logic",
    "replace_condition",
    "update_condition",
    "remove_condition",
    "add_condition",
    "add_nested_group",
    "replace_nested_group",
    "remove_nested_group",
    "toggle_config_logic",
    "add_group",
    "replace_group",
    "remove_group",
    "find_group",
    "update_group",
    "with_metadata",
]
