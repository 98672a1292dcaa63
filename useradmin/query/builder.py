from __future__ import annotations
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union
import re

from ..filters import (
    AdvancedFilterConfig,
    FilterCondition,
    FilterGroup,
    FilterOperator,
    LogicOperator,
)

_UNQUOTED_IDENT_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_$]*$")

_COMPARE_SQL = {
    FilterOperator.EQ: "=",
    FilterOperator.NEQ: "<>",
    FilterOperator.GT: ">",
    FilterOperator.GTE: ">=",
    FilterOperator.LT: "<",
    FilterOperator.LTE: "<=",
}

_LIKE_OPERATORS = (
    FilterOperator.CONTAINS,
    FilterOperator.STARTS_WITH,
    FilterOperator.ENDS_WITH,
)


def _to_snake(name: str) -> str:
    """
    'experienceYears' -> 'experience_years'
    """
    s1 = re.sub('(.)([A-Z][a-z]+)', r'\1_\2', name)
    return re.sub('([a-z0-9])([A-Z])', r'\1_\2', s1).lower()


def _quote_identifier(name: str, *, quote_identifiers: bool) -> str:
    """
    Quote an identifier if needed. Doubles internal quotes.
    """
    if not quote_identifiers and _UNQUOTED_IDENT_RE.match(name):
        return name
    escaped = name.replace('"', '""')
    return f'"{escaped}"'


def _escape_like(value: str) -> str:
    """
    Escape \\, %, _ in LIKE patterns. We'll use ESCAPE '\\' in SQL.
    """
    value = value.replace("\\", "\\\\")
    return value.replace("%", "\\%").replace("_", "\\_")


class _ParamSink:
    """
    Collects params and returns the correct placeholder per paramstyle.
      - 'qmark'    -> ?, params is a list
      - 'pyformat' -> %(p1)s, params is a dict
    """
    def __init__(self, paramstyle: str = "qmark", *, prefix: str = "p", start_index: int = 1):
        if paramstyle not in {"qmark", "pyformat"}:
            raise ValueError("paramstyle must be 'qmark' or 'pyformat'")
        self.paramstyle = paramstyle
        self.prefix = prefix
        self.next_idx = start_index
        self.params_list: List[Any] = []
        self.params_dict: Dict[str, Any] = {}

    def add(self, value: Any) -> str:
        if self.paramstyle == "qmark":
            self.params_list.append(value)
            return "?"
        name = f"{self.prefix}{self.next_idx}"
        self.next_idx += 1
        self.params_dict[name] = value
        return f"%({name})s"

    def bundle(self) -> Union[List[Any], Dict[str, Any]]:
        return self.params_list if self.paramstyle == "qmark" else self.params_dict


def _format_like_pattern(val: Any, op: FilterOperator) -> str:
    lit = _escape_like(str(val))
    if op == FilterOperator.CONTAINS:
        return f"%{lit}%"
    if op == FilterOperator.STARTS_WITH:
        return f"{lit}%"
    return f"%{lit}"


def _as_list(raw: Union[str, Sequence[Any]]) -> List[Any]:
    """
    Accepts either a comma-delimited string or a sequence.
    """
    if isinstance(raw, str):
        return [s.strip() for s in raw.split(",") if s.strip() != ""]
    return list(raw)


def _build_condition_sql(
    c: FilterCondition,
    sink: _ParamSink,
    *,
    column: str,
    use_ilike: bool,
) -> str:
    op = c.operator

    # Existence checks bind nothing; any stored value is ignored.
    if op == FilterOperator.IS_NULL:
        return f"{column} IS NULL"
    if op == FilterOperator.IS_NOT_NULL:
        return f"{column} IS NOT NULL"
    if op == FilterOperator.IS_EMPTY:
        return f"({column} IS NULL OR {column} = '')"
    if op == FilterOperator.IS_NOT_EMPTY:
        return f"({column} IS NOT NULL AND {column} <> '')"

    if op in _LIKE_OPERATORS:
        ph = sink.add(_format_like_pattern(c.value, op))
        like_kw = "ILIKE" if use_ilike else "LIKE"
        return f"{column} {like_kw} {ph} ESCAPE '\\'"

    if op in (FilterOperator.IN, FilterOperator.NOT_IN):
        vals = _as_list(c.value)
        if not vals:
            # IN () is always false; NOT IN () is always true
            return "1=0" if op == FilterOperator.IN else "1=1"
        phs = ", ".join(sink.add(v) for v in vals)
        neg = "NOT " if op == FilterOperator.NOT_IN else ""
        return f"{column} {neg}IN ({phs})"

    if op == FilterOperator.BETWEEN:
        vals = _as_list(c.value)
        if len(vals) != 2:
            raise ValueError(f"Between on {c.field} needs exactly two values, got {len(vals)}")
        lo, hi = sink.add(vals[0]), sink.add(vals[1])
        return f"{column} BETWEEN {lo} AND {hi}"

    if op in _COMPARE_SQL:
        return f"{column} {_COMPARE_SQL[op]} {sink.add(c.value)}"

    raise ValueError(f"Unsupported operator: {op}")


def _combine(parts: List[str], logic: LogicOperator) -> str:
    if not parts:
        return ""
    if len(parts) == 1:
        return f"({parts[0]})"
    joiner = " AND " if logic == LogicOperator.AND else " OR "
    return "(" + joiner.join(parts) + ")"


def build_where_clause_and_params(
    config: AdvancedFilterConfig,
    *,
    paramstyle: str = "qmark",        # 'qmark' -> ?,  'pyformat' -> %(p1)s
    use_ilike: bool = False,
    quote_identifiers: bool = False,
    column_map: Optional[Mapping[str, str]] = None,
    default_when_empty: str = "1=1",
    include_where_keyword: bool = True,
    param_name_prefix: str = "p",
    param_start_index: int = 1,
) -> Tuple[str, Union[List[Any], Dict[str, Any]]]:
    """
    Returns (where_sql, params). Walks the group tree depth-first; unselected
    and incomplete conditions are skipped, so a fresh configuration yields
    `default_when_empty`. Field names map through `column_map`, falling back
    to snake_case.
    """
    sink = _ParamSink(paramstyle, prefix=param_name_prefix, start_index=param_start_index)
    cmap = column_map or {}

    def column_for(field_name: str) -> str:
        col = cmap.get(field_name) or _to_snake(field_name)
        return _quote_identifier(col, quote_identifiers=quote_identifiers)

    def walk(node: FilterGroup) -> str:
        parts: List[str] = []
        for c in node.conditions:
            if not c.is_complete:
                continue
            parts.append(
                _build_condition_sql(c, sink, column=column_for(c.field), use_ilike=use_ilike)
            )
        for g in node.nested_groups:
            child = walk(g)
            if child:
                parts.append(child)
        return _combine(parts, node.logic)

    groups = [s for s in (walk(g) for g in config.groups) if s]
    body = groups[0] if len(groups) == 1 else _combine(groups, config.logic)
    if not body:
        body = default_when_empty
    elif body.startswith("(") and body.endswith(")"):
        # drop outer parens for prettiness
        body = body[1:-1]

    where_sql = f"WHERE {body}" if include_where_keyword else body
    return where_sql, sink.bundle()


__all__ = [
    "build_where_clause_and_params",
]
