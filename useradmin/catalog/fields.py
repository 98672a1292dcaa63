from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence, Tuple

from ..filters.models import FilterOperator, FilterValueType


@dataclass(frozen=True)
class FilterOption:
    value: str
    label: str

    def to_dict(self) -> Dict[str, str]:
        return {"value": self.value, "label": self.label}


@dataclass(frozen=True)
class FilterField:
    """
    A filterable attribute of an entity. The first operator is the default
    picked when the field is selected on a condition.
    """
    name: str
    label: str
    type: FilterValueType
    operators: Tuple[FilterOperator, ...]
    options: Optional[Tuple[FilterOption, ...]] = None
    is_array: bool = False

    def __post_init__(self):
        if not self.operators:
            raise ValueError(f"Field {self.name} declares no operators")

    @property
    def default_operator(self) -> FilterOperator:
        return self.operators[0]

    @property
    def option_values(self) -> Tuple[str, ...]:
        return tuple(o.value for o in self.options or ())

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "name": self.name,
            "label": self.label,
            "type": self.type.value,
            "operators": [op.value for op in self.operators],
        }
        if self.options is not None:
            out["options"] = [o.to_dict() for o in self.options]
        if self.is_array:
            out["isArray"] = True
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FilterField":
        opts = data.get("options")
        return cls(
            name=str(data["name"]),
            label=str(data.get("label") or data["name"]),
            type=FilterValueType(data["type"]),
            operators=tuple(FilterOperator(op) for op in data.get("operators", [])),
            options=tuple(
                FilterOption(value=str(o["value"]), label=str(o.get("label", o["value"])))
                for o in opts
            ) if opts is not None else None,
            is_array=bool(data.get("isArray", False)),
        )


def find_field(fields: Sequence[FilterField], name: str) -> Optional[FilterField]:
    for f in fields:
        if f.name == name:
            return f
    return None


def _ops(*names: str) -> Tuple[FilterOperator, ...]:
    return tuple(FilterOperator(n) for n in names)


def _opts(*pairs: Tuple[str, str]) -> Tuple[FilterOption, ...]:
    return tuple(FilterOption(value=v, label=l) for v, l in pairs)


USER_FILTER_FIELDS: Tuple[FilterField, ...] = (
    FilterField(
        name="name",
        label="Name",
        type=FilterValueType.TEXT,
        operators=_ops("contains", "startsWith", "eq", "neq"),
    ),
    FilterField(
        name="email",
        label="Email",
        type=FilterValueType.TEXT,
        operators=_ops("contains", "startsWith", "eq", "neq"),
    ),
    FilterField(
        name="role",
        label="Role",
        type=FilterValueType.SELECT,
        operators=_ops("eq", "neq", "in", "notIn"),
        options=_opts(
            ("ADMIN", "Admin"),
            ("TEAM_LEAD", "Team Lead"),
            ("TEAM_MEMBER", "Team Member"),
            ("STAFF", "Staff"),
            ("CLIENT", "Client"),
        ),
    ),
    FilterField(
        name="status",
        label="Status",
        type=FilterValueType.SELECT,
        operators=_ops("eq", "neq", "in", "notIn"),
        options=_opts(
            ("ACTIVE", "Active"),
            ("INACTIVE", "Inactive"),
            ("SUSPENDED", "Suspended"),
        ),
    ),
    FilterField(
        name="department",
        label="Department",
        type=FilterValueType.TEXT,
        operators=_ops("contains", "eq", "neq"),
    ),
    FilterField(
        name="tier",
        label="Tier",
        type=FilterValueType.SELECT,
        operators=_ops("eq", "neq", "in", "notIn"),
        options=_opts(
            ("INDIVIDUAL", "Individual"),
            ("SMB", "Small Business"),
            ("ENTERPRISE", "Enterprise"),
        ),
    ),
    FilterField(
        name="createdAt",
        label="Created Date",
        type=FilterValueType.DATE_RANGE,
        operators=_ops("between", "gt", "lt", "gte", "lte"),
    ),
    FilterField(
        name="experienceYears",
        label="Years of Experience",
        type=FilterValueType.NUMBER,
        operators=_ops("eq", "gt", "lt", "gte", "lte", "between"),
    ),
    FilterField(
        name="hourlyRate",
        label="Hourly Rate",
        type=FilterValueType.NUMBER,
        operators=_ops("eq", "gt", "lt", "gte", "lte", "between"),
    ),
)
