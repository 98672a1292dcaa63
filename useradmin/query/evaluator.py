from __future__ import annotations
import datetime as dt
import logging
from typing import Any, Iterable, List, Mapping, Optional, Tuple

from ..filters import (
    AdvancedFilterConfig,
    FilterCondition,
    FilterGroup,
    FilterOperator,
    FilterValueType,
    LogicOperator,
    with_metadata,
)

log = logging.getLogger("filters")

_DATE_TYPES = (FilterValueType.DATE, FilterValueType.DATE_RANGE)


def _as_date(v: Any) -> Optional[dt.date]:
    if v is None or v == "":
        return None
    if isinstance(v, dt.datetime):
        return v.date()
    if isinstance(v, dt.date):
        return v
    text = str(v)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    if "T" in text or " " in text:
        return dt.datetime.fromisoformat(text).date()
    return dt.date.fromisoformat(text)


def _as_number(v: Any) -> Optional[float]:
    if v is None or v == "":
        return None
    return float(str(v).replace(",", ""))


def _coerce(v: Any, value_type: FilterValueType) -> Any:
    """Bring record and condition values onto a comparable footing."""
    if value_type == FilterValueType.NUMBER:
        return _as_number(v)
    if value_type in _DATE_TYPES:
        return _as_date(v)
    if value_type == FilterValueType.BOOLEAN and isinstance(v, str):
        return v.strip().lower() in ("true", "1", "yes")
    if isinstance(v, str):
        return v.strip().lower()
    return v


def _values(raw: Any) -> List[Any]:
    if isinstance(raw, str):
        return [s.strip() for s in raw.split(",") if s.strip() != ""]
    if isinstance(raw, (list, tuple, set)):
        return list(raw)
    return [raw]


def condition_matches(c: FilterCondition, record: Mapping[str, Any]) -> bool:
    """Return True if the record satisfies the condition."""
    raw = record.get(c.field)
    op = c.operator

    if op == FilterOperator.IS_NULL:
        return raw is None
    if op == FilterOperator.IS_NOT_NULL:
        return raw is not None
    if op == FilterOperator.IS_EMPTY:
        return raw in (None, "") or raw == []
    if op == FilterOperator.IS_NOT_EMPTY:
        return not (raw in (None, "") or raw == [])

    if raw is None:
        return op in (FilterOperator.NEQ, FilterOperator.NOT_IN)

    vt = c.value_type
    # multi-valued record attributes match when any element does
    cells = raw if isinstance(raw, (list, tuple, set)) else [raw]
    try:
        cells = [_coerce(x, vt) for x in cells]
    except (TypeError, ValueError):
        # a record value that cannot be read as the field type never matches
        log.debug("Unreadable %s value for %s: %r", vt.value, c.field, raw)
        return False

    if op in (FilterOperator.IN, FilterOperator.NOT_IN):
        wanted = {_coerce(v, vt) for v in _values(c.value)}
        hit = any(x in wanted for x in cells)
        return hit if op == FilterOperator.IN else not hit

    if op == FilterOperator.BETWEEN:
        bounds = _values(c.value)
        if len(bounds) != 2:
            return False
        lo, hi = _coerce(bounds[0], vt), _coerce(bounds[1], vt)
        if lo is None or hi is None:
            return False
        return any(x is not None and lo <= x <= hi for x in cells)

    val = _coerce(c.value, vt)

    if op == FilterOperator.CONTAINS:
        return any(str(val) in str(x) for x in cells)
    if op == FilterOperator.STARTS_WITH:
        return any(str(x).startswith(str(val)) for x in cells)
    if op == FilterOperator.ENDS_WITH:
        return any(str(x).endswith(str(val)) for x in cells)
    if op == FilterOperator.EQ:
        return any(x == val for x in cells)
    if op == FilterOperator.NEQ:
        return all(x != val for x in cells)

    present = [x for x in cells if x is not None]
    if op == FilterOperator.GT:
        return any(x > val for x in present)
    if op == FilterOperator.GTE:
        return any(x >= val for x in present)
    if op == FilterOperator.LT:
        return any(x < val for x in present)
    if op == FilterOperator.LTE:
        return any(x <= val for x in present)
    return False


def _group_matches(group: FilterGroup, record: Mapping[str, Any]) -> Optional[bool]:
    """
    None when the group has nothing to evaluate (only blank conditions), so it
    doesn't constrain its parent either way.
    """
    results: List[bool] = [
        condition_matches(c, record) for c in group.conditions if c.is_complete
    ]
    for child in group.nested_groups:
        r = _group_matches(child, record)
        if r is not None:
            results.append(r)
    if not results:
        return None
    return all(results) if group.logic == LogicOperator.AND else any(results)


def matches(config: AdvancedFilterConfig, record: Mapping[str, Any]) -> bool:
    results = [r for r in (_group_matches(g, record) for g in config.groups) if r is not None]
    if not results:
        return True
    return all(results) if config.logic == LogicOperator.AND else any(results)


def apply_filter(
    config: AdvancedFilterConfig,
    records: Iterable[Mapping[str, Any]],
    *,
    now: Optional[dt.datetime] = None,
) -> Tuple[List[Mapping[str, Any]], AdvancedFilterConfig]:
    """
    Filter records in memory. Returns the matches and a copy of the
    configuration stamped with appliedAt/resultCount.
    """
    matched = [r for r in records if matches(config, r)]
    applied_at = now or dt.datetime.now(dt.timezone.utc)
    return matched, with_metadata(config, applied_at, len(matched))


__all__ = [
    "condition_matches",
    "matches",
    "apply_filter",
]
