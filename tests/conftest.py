"""Pytest configuration and shared fixtures."""

from pathlib import Path

import pytest

from useradmin.catalog import USER_FILTER_FIELDS, FieldRegistry
from useradmin.filters import (
    AdvancedFilterConfig,
    FilterCondition,
    FilterGroup,
    FilterOperator,
    FilterValueType,
    LogicOperator,
)

CONFIG_DIR = Path(__file__).parent.parent / "config"


@pytest.fixture
def user_fields():
    return USER_FILTER_FIELDS


@pytest.fixture
def registry():
    reg = FieldRegistry(CONFIG_DIR / "fields.yaml")
    reg.load_fields()
    return reg


def cond(cid, field, operator, value, value_type):
    return FilterCondition(
        id=cid,
        field=field,
        operator=FilterOperator(operator),
        value=value,
        value_type=FilterValueType(value_type),
    )


@pytest.fixture
def nested_config():
    """
    (role in [ADMIN, TEAM_LEAD] AND (experienceYears >= 5 OR hourlyRate < 40))
    OR (status = SUSPENDED)
    """
    inner = FilterGroup(
        id="g-inner",
        logic=LogicOperator.OR,
        conditions=[
            cond("c-exp", "experienceYears", "gte", "5", "number"),
            cond("c-rate", "hourlyRate", "lt", 40, "number"),
        ],
    )
    first = FilterGroup(
        id="g-1",
        logic=LogicOperator.AND,
        conditions=[cond("c-role", "role", "in", ["ADMIN", "TEAM_LEAD"], "select")],
        nested_groups=[inner],
    )
    second = FilterGroup(
        id="g-2",
        logic=LogicOperator.AND,
        conditions=[cond("c-status", "status", "eq", "SUSPENDED", "select")],
    )
    return AdvancedFilterConfig(logic=LogicOperator.OR, groups=[first, second])
