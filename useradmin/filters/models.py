from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union
import json

import jsonschema

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class FilterOperator(str, Enum):
    EQ = "eq"
    NEQ = "neq"
    CONTAINS = "contains"
    STARTS_WITH = "startsWith"
    ENDS_WITH = "endsWith"
    IN = "in"
    NOT_IN = "notIn"
    GT = "gt"
    LT = "lt"
    GTE = "gte"
    LTE = "lte"
    BETWEEN = "between"
    IS_EMPTY = "isEmpty"
    IS_NOT_EMPTY = "isNotEmpty"
    IS_NULL = "isNull"
    IS_NOT_NULL = "isNotNull"


class FilterValueType(str, Enum):
    TEXT = "text"
    SELECT = "select"
    MULTI_SELECT = "multiSelect"
    DATE = "date"
    DATE_RANGE = "dateRange"
    NUMBER = "number"
    BOOLEAN = "boolean"


class LogicOperator(str, Enum):
    AND = "AND"
    OR = "OR"


FILTER_OPERATORS: Dict[FilterOperator, str] = {
    FilterOperator.EQ: "Equals",
    FilterOperator.NEQ: "Not Equals",
    FilterOperator.CONTAINS: "Contains",
    FilterOperator.STARTS_WITH: "Starts With",
    FilterOperator.ENDS_WITH: "Ends With",
    FilterOperator.IN: "In",
    FilterOperator.NOT_IN: "Not In",
    FilterOperator.GT: "Greater Than",
    FilterOperator.LT: "Less Than",
    FilterOperator.GTE: "Greater Than or Equal",
    FilterOperator.LTE: "Less Than or Equal",
    FilterOperator.BETWEEN: "Between",
    FilterOperator.IS_EMPTY: "Is Empty",
    FilterOperator.IS_NOT_EMPTY: "Is Not Empty",
    FilterOperator.IS_NULL: "Is Null",
    FilterOperator.IS_NOT_NULL: "Is Not Null",
}

# Operators that carry no value; evaluators ignore whatever is stored.
EXISTENCE_OPERATORS = frozenset({
    FilterOperator.IS_EMPTY,
    FilterOperator.IS_NOT_EMPTY,
    FilterOperator.IS_NULL,
    FilterOperator.IS_NOT_NULL,
})

ARRAY_OPERATORS = frozenset({
    FilterOperator.IN,
    FilterOperator.NOT_IN,
    FilterOperator.BETWEEN,
})


def empty_value(value_type: FilterValueType, operator: FilterOperator) -> Any:
    """
    The blank value a condition starts with after its field changes.
    """
    if value_type == FilterValueType.MULTI_SELECT or operator in ARRAY_OPERATORS:
        return []
    return ""


def _filled_bounds(raw: Any) -> List[Any]:
    """Non-blank entries of a list value or a comma-separated string."""
    if isinstance(raw, str):
        items: List[Any] = raw.split(",")
    elif isinstance(raw, (list, tuple)):
        items = list(raw)
    else:
        items = [raw]
    return [v for v in items if v is not None and str(v).strip() != ""]


def _parse_timestamp(raw: Any) -> Optional[datetime]:
    if raw is None or isinstance(raw, datetime):
        return raw
    text = str(raw)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def _format_timestamp(ts: Optional[datetime]) -> Optional[str]:
    return ts.isoformat() if ts is not None else None


# ---------------------------------------------------------------------------
# Core filter models
# ---------------------------------------------------------------------------

@dataclass
class FilterCondition:
    """
    One predicate: a field, an operator, and a value shaped by value_type.
    """
    id: str
    field: str = ""
    operator: FilterOperator = FilterOperator.EQ
    value: Any = ""
    value_type: FilterValueType = FilterValueType.TEXT
    label: Optional[str] = None

    @property
    def is_selected(self) -> bool:
        return self.field != ""

    @property
    def is_complete(self) -> bool:
        """
        True when an evaluator has something to test: a field is chosen and
        either the operator needs no value or a non-blank value is present.
        A range needs both bounds.
        """
        if not self.is_selected:
            return False
        if self.operator in EXISTENCE_OPERATORS:
            return True
        if self.operator == FilterOperator.BETWEEN:
            return len(_filled_bounds(self.value)) >= 2
        return self.value not in ("", None, [])

    # camelCase JSON helpers
    def to_dict(self) -> Dict[str, Any]:
        out = {
            "id": self.id,
            "field": self.field,
            "operator": self.operator.value,
            "value": self.value,
            "valueType": self.value_type.value,
        }
        if self.label is not None:
            out["label"] = self.label
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FilterCondition":
        return cls(
            id=str(data["id"]),
            field=data.get("field", ""),
            operator=FilterOperator(data.get("operator", FilterOperator.EQ.value)),
            value=data.get("value", ""),
            value_type=FilterValueType(data.get("valueType", FilterValueType.TEXT.value)),
            label=data.get("label"),
        )


@dataclass
class FilterGroup:
    """
    AND/OR combination of conditions and, optionally, nested groups.
    """
    id: str
    logic: LogicOperator = LogicOperator.AND
    conditions: List[FilterCondition] = field(default_factory=list)
    nested_groups: List["FilterGroup"] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "logic": self.logic.value,
            "conditions": [c.to_dict() for c in self.conditions],
            "nestedGroups": [g.to_dict() for g in self.nested_groups],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FilterGroup":
        return cls(
            id=str(data["id"]),
            logic=LogicOperator(data.get("logic", LogicOperator.AND.value)),
            conditions=[FilterCondition.from_dict(c) for c in data.get("conditions", [])],
            nested_groups=[cls.from_dict(g) for g in data.get("nestedGroups") or []],
        )


@dataclass
class FilterMetadata:
    applied_at: Optional[datetime] = None
    result_count: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        if self.applied_at is not None:
            out["appliedAt"] = _format_timestamp(self.applied_at)
        if self.result_count is not None:
            out["resultCount"] = self.result_count
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FilterMetadata":
        count = data.get("resultCount")
        return cls(
            applied_at=_parse_timestamp(data.get("appliedAt")),
            result_count=int(count) if count is not None else None,
        )


@dataclass
class AdvancedFilterConfig:
    """
    Root of the filter tree: a logic operator over one or more groups.
    Metadata is informational and never affects evaluation.
    """
    logic: LogicOperator = LogicOperator.AND
    groups: List[FilterGroup] = field(default_factory=list)
    metadata: Optional[FilterMetadata] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "logic": self.logic.value,
            "groups": [g.to_dict() for g in self.groups],
        }
        if self.metadata is not None:
            out["metadata"] = self.metadata.to_dict()
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AdvancedFilterConfig":
        meta = data.get("metadata")
        return cls(
            logic=LogicOperator(data.get("logic", LogicOperator.AND.value)),
            groups=[FilterGroup.from_dict(g) for g in data.get("groups", [])],
            metadata=FilterMetadata.from_dict(meta) if meta is not None else None,
        )

    def iter_conditions(self):
        """Depth-first walk over every condition in the tree."""
        def walk(group: FilterGroup):
            yield from group.conditions
            for child in group.nested_groups:
                yield from walk(child)

        for g in self.groups:
            yield from walk(g)


# ---------------------------------------------------------------------------
# JSON Schema
# ---------------------------------------------------------------------------

FILTER_CONFIG_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "$id": "https://useradmin.local/filter-config.schema.json",
    "title": "Advanced Filter Configuration",
    "$defs": {
        "FilterCondition": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "id": {"type": "string", "minLength": 1},
                "field": {"type": "string"},
                "operator": {
                    "type": "string",
                    "enum": [op.value for op in FilterOperator],
                },
                "value": {},
                "valueType": {
                    "type": "string",
                    "enum": [vt.value for vt in FilterValueType],
                },
                "label": {"type": ["string", "null"]},
            },
            "required": ["id", "field", "operator", "valueType"],
        },
        "FilterGroup": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "id": {"type": "string", "minLength": 1},
                "logic": {"type": "string", "enum": ["AND", "OR"]},
                "conditions": {
                    "type": "array",
                    "minItems": 1,
                    "items": {"$ref": "#/$defs/FilterCondition"},
                },
                "nestedGroups": {
                    "type": ["array", "null"],
                    "items": {"$ref": "#/$defs/FilterGroup"},
                },
            },
            "required": ["id", "logic", "conditions"],
        },
        "Metadata": {
            "type": "object",
            "properties": {
                "appliedAt": {"type": ["string", "null"]},
                "resultCount": {"type": ["integer", "null"], "minimum": 0},
            },
        },
    },
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "logic": {"type": "string", "enum": ["AND", "OR"]},
        "groups": {
            "type": "array",
            "minItems": 1,
            "items": {"$ref": "#/$defs/FilterGroup"},
        },
        "metadata": {"anyOf": [{"$ref": "#/$defs/Metadata"}, {"type": "null"}]},
    },
    "required": ["logic", "groups"],
}


def parse_filter_config_json(
    payload: Union[str, Dict[str, Any]],
    *,
    validate: bool = True,
) -> AdvancedFilterConfig:
    """
    Accept a JSON string or dict and return an AdvancedFilterConfig.
    Raises jsonschema.ValidationError when the payload has the wrong shape.
    """
    data = json.loads(payload) if isinstance(payload, str) else payload
    if validate:
        jsonschema.validate(instance=data, schema=FILTER_CONFIG_SCHEMA)
    return AdvancedFilterConfig.from_dict(data)


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
]
