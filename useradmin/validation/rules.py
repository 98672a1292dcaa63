from typing import List, Sequence

from ..catalog import FilterField, find_field
from ..filters import (
    AdvancedFilterConfig,
    FilterCondition,
    FilterOperator,
    FilterValueType,
    EXISTENCE_OPERATORS,
)

_LIST_OPERATORS = {FilterOperator.IN, FilterOperator.NOT_IN}


def _condition_problems(c: FilterCondition, fields: Sequence[FilterField]) -> List[str]:
    if not c.is_selected:
        return []

    fld = find_field(fields, c.field)
    if fld is None:
        return [f"Unknown filter field: {c.field}"]

    problems: List[str] = []
    if c.value_type != fld.type:
        problems.append(
            f"Value type {c.value_type.value} does not match field {c.field} ({fld.type.value})"
        )
    if c.operator not in fld.operators:
        problems.append(f"Operator {c.operator.value} not allowed on field {c.field}")

    if c.operator in EXISTENCE_OPERATORS or not c.is_complete:
        return problems

    wants_list = (
        c.operator in _LIST_OPERATORS
        or c.operator == FilterOperator.BETWEEN
        or fld.type == FilterValueType.MULTI_SELECT
    )
    if wants_list and not isinstance(c.value, list):
        problems.append(f"Operator {c.operator.value} on {c.field} needs a list value")
        return problems
    if not wants_list and isinstance(c.value, (list, dict)):
        problems.append(f"Operator {c.operator.value} on {c.field} needs a single value")
        return problems
    if c.operator == FilterOperator.BETWEEN and len(c.value) != 2:
        problems.append(f"Between on {c.field} needs exactly two values")

    if fld.options is not None:
        allowed = set(fld.option_values)
        values = c.value if isinstance(c.value, list) else [c.value]
        bad = [v for v in values if str(v) not in allowed]
        if bad:
            problems.append(f"Values not allowed for {c.field}: {', '.join(map(str, bad))}")

    if fld.type == FilterValueType.NUMBER:
        values = c.value if isinstance(c.value, list) else [c.value]
        for v in values:
            try:
                float(v)
            except (TypeError, ValueError):
                problems.append(f"Value {v!r} on {c.field} is not a number")
                break

    return problems


def validate_configuration(
    config: AdvancedFilterConfig, fields: Sequence[FilterField]
) -> List[str]:
    """
    Check every condition in the tree against the field catalog.
    Unselected and blank conditions are fine: the UI always has one.
    """
    problems: List[str] = []
    for c in config.iter_conditions():
        problems.extend(_condition_problems(c, fields))
    return problems


def assert_configuration_allowed(
    entity_type: str, config: AdvancedFilterConfig, fields: Sequence[FilterField]
) -> None:
    if not fields:
        raise ValueError(f"No filter fields for entity type {entity_type}")
    problems = validate_configuration(config, fields)
    if problems:
        raise ValueError(f"Filter not allowed for {entity_type}: {problems[0]}")
