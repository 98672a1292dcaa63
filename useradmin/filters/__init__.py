"""
Advanced filter model for the user-admin service.

This module provides the filter tree (configuration, groups, conditions),
its construction, pure edit operations, and JSON parsing.
"""

from .models import (
    FilterOperator,
    FilterValueType,
    LogicOperator,
    FILTER_OPERATORS,
    EXISTENCE_OPERATORS,
    ARRAY_OPERATORS,
    empty_value,
    FilterCondition,
    FilterGroup,
    FilterMetadata,
    AdvancedFilterConfig,
    FILTER_CONFIG_SCHEMA,
    parse_filter_config_json,
)
from .construction import (
    fresh_id,
    new_condition,
    new_group,
    new_configuration,
)
from .editing import (
    change_field,
    change_operator,
    change_value,
    toggle_logic,
    replace_condition,
    update_condition,
    remove_condition,
    add_condition,
    add_nested_group,
    replace_nested_group,
    remove_nested_group,
    toggle_config_logic,
    add_group,
    replace_group,
    remove_group,
    find_group,
    update_group,
    with_metadata,
)

__all__ = [
    "FilterOperator",
    "FilterValueType",
    "LogicOperator",
    "FILTER_OPERATORS",
    "EXISTENCE_OPERATORS",
    "ARRAY_OPERATORS",
    "empty_value",
    "FilterCondition",
    "FilterGroup",
    "FilterMetadata",
    "AdvancedFilterConfig",
    "FILTER_CONFIG_SCHEMA",
    "parse_filter_config_json",
    "fresh_id",
    "new_condition",
    "new_group",
    "new_configuration",
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
