import uuid

from .models import (
    AdvancedFilterConfig,
    FilterCondition,
    FilterGroup,
    FilterOperator,
    FilterValueType,
    LogicOperator,
)


def fresh_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex}"


def new_condition() -> FilterCondition:
    """An unselected condition: no field, 'eq', blank text value."""
    return FilterCondition(
        id=fresh_id("cond"),
        field="",
        operator=FilterOperator.EQ,
        value="",
        value_type=FilterValueType.TEXT,
    )


def new_group() -> FilterGroup:
    return FilterGroup(
        id=fresh_id("group"),
        logic=LogicOperator.AND,
        conditions=[new_condition()],
        nested_groups=[],
    )


def new_configuration() -> AdvancedFilterConfig:
    return AdvancedFilterConfig(logic=LogicOperator.AND, groups=[new_group()])
