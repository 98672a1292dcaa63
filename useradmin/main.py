from __future__ import annotations
from dotenv import load_dotenv

load_dotenv()

import os, logging

from typing import Any, Dict, List, Optional
from fastapi import FastAPI, Body, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from jsonschema import ValidationError
from pydantic import BaseModel

from .catalog import FieldRegistry
from .filters import (
    AdvancedFilterConfig,
    FILTER_OPERATORS,
    FilterOperator,
    parse_filter_config_json,
    new_configuration,
    change_field,
    change_operator,
    change_value,
    update_condition,
    add_condition,
    remove_condition,
    toggle_logic,
    toggle_config_logic,
    add_group,
    remove_group,
    add_nested_group,
    remove_nested_group,
    find_group,
    update_group,
)
from .presets import parse_preset_json, expand, record_usage
from .query import build_where_clause_and_params, apply_filter
from .validation import validate_configuration, assert_configuration_allowed

log = logging.getLogger("api")

DEFAULT_PARAMSTYLE = os.getenv("DEFAULT_PARAMSTYLE", "qmark")

app = FastAPI(title="User Admin Filter Service", version="1.0.0")

origins_raw = os.getenv("CORS_ALLOW_ORIGINS", "")
origins = [o.strip() for o in origins_raw.split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=True,
)

REG = FieldRegistry()


class ConfigRequest(BaseModel):
    """A filter configuration plus the entity type whose catalog applies."""

    filterConfig: Dict[str, Any]
    entityType: str = "users"


class ConditionEdit(ConfigRequest):
    groupId: str
    conditionId: str


class FieldChange(ConditionEdit):
    field: str


class OperatorChange(ConditionEdit):
    operator: FilterOperator


class ValueChange(ConditionEdit):
    value: Any = None


class GroupEdit(ConfigRequest):
    groupId: Optional[str] = None
    parentId: Optional[str] = None


class SqlRequest(ConfigRequest):
    paramstyle: str = DEFAULT_PARAMSTYLE
    useIlike: bool = False
    quoteIdentifiers: bool = False
    columnMap: Dict[str, str] = {}


class ApplyRequest(ConfigRequest):
    records: List[Dict[str, Any]]


def _parse(payload: Dict[str, Any]) -> AdvancedFilterConfig:
    try:
        return parse_filter_config_json(payload, validate=True)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=f"Invalid filter configuration: {e.message}")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


def _fields(entity_type: str):
    try:
        return REG.ensure_entity(entity_type)
    except KeyError as e:
        raise HTTPException(status_code=404, detail=str(e.args[0]))


def _reply(config: AdvancedFilterConfig) -> Dict[str, Any]:
    return {"filterConfig": config.to_dict()}


def _require_group(config: AdvancedFilterConfig, group_id: str) -> None:
    if find_group(config, group_id) is None:
        raise HTTPException(status_code=404, detail=f"Unknown filter group: {group_id}")


@app.on_event("startup")
def _startup():
    REG.load_fields()


@app.get("/healthz")
def health():
    return {"ok": True, "entities": REG.entity_types()}


@app.get("/operators")
def list_operators():
    return {"operators": [{"value": op.value, "label": label} for op, label in FILTER_OPERATORS.items()]}


@app.get("/fields/{entity_type}")
def list_fields(entity_type: str):
    fields = _fields(entity_type)
    return {"entityType": entity_type, "fields": [f.to_dict() for f in fields]}


@app.post("/filters/new")
def create_configuration():
    return _reply(new_configuration())


@app.post("/filters/conditions/field")
def set_condition_field(req: FieldChange = Body(...)):
    config = _parse(req.filterConfig)
    fields = _fields(req.entityType)
    _require_group(config, req.groupId)
    updated = update_group(
        config,
        req.groupId,
        lambda g: update_condition(g, req.conditionId, lambda c: change_field(c, req.field, fields)),
    )
    return _reply(updated)


@app.post("/filters/conditions/operator")
def set_condition_operator(req: OperatorChange = Body(...)):
    config = _parse(req.filterConfig)
    _require_group(config, req.groupId)
    updated = update_group(
        config,
        req.groupId,
        lambda g: update_condition(g, req.conditionId, lambda c: change_operator(c, req.operator)),
    )
    return _reply(updated)


@app.post("/filters/conditions/value")
def set_condition_value(req: ValueChange = Body(...)):
    config = _parse(req.filterConfig)
    _require_group(config, req.groupId)
    updated = update_group(
        config,
        req.groupId,
        lambda g: update_condition(g, req.conditionId, lambda c: change_value(c, req.value)),
    )
    return _reply(updated)


@app.post("/filters/conditions/add")
def add_group_condition(req: GroupEdit = Body(...)):
    config = _parse(req.filterConfig)
    if not req.groupId:
        raise HTTPException(status_code=400, detail="groupId is required")
    _require_group(config, req.groupId)
    return _reply(update_group(config, req.groupId, add_condition))


@app.post("/filters/conditions/remove")
def remove_group_condition(req: ConditionEdit = Body(...)):
    config = _parse(req.filterConfig)
    _require_group(config, req.groupId)
    return _reply(update_group(config, req.groupId, lambda g: remove_condition(g, req.conditionId)))


@app.post("/filters/groups/toggle")
def toggle_group_logic(req: GroupEdit = Body(...)):
    config = _parse(req.filterConfig)
    if not req.groupId:
        return _reply(toggle_config_logic(config))
    _require_group(config, req.groupId)
    return _reply(update_group(config, req.groupId, toggle_logic))


@app.post("/filters/groups/add")
def add_filter_group(req: GroupEdit = Body(...)):
    config = _parse(req.filterConfig)
    if not req.parentId:
        return _reply(add_group(config))
    _require_group(config, req.parentId)
    return _reply(update_group(config, req.parentId, add_nested_group))


@app.post("/filters/groups/remove")
def remove_filter_group(req: GroupEdit = Body(...)):
    config = _parse(req.filterConfig)
    if not req.groupId:
        raise HTTPException(status_code=400, detail="groupId is required")
    if not req.parentId:
        return _reply(remove_group(config, req.groupId))
    _require_group(config, req.parentId)
    return _reply(
        update_group(config, req.parentId, lambda g: remove_nested_group(g, req.groupId))
    )


@app.post("/filters/validate")
def validate_filter(req: ConfigRequest = Body(...)):
    config = _parse(req.filterConfig)
    problems = validate_configuration(config, _fields(req.entityType))
    return {"valid": not problems, "problems": problems}


@app.post("/filters/sql")
def build_sql(req: SqlRequest = Body(...)):
    config = _parse(req.filterConfig)
    fields = _fields(req.entityType)
    try:
        assert_configuration_allowed(req.entityType, config, fields)
        where_sql, params = build_where_clause_and_params(
            config,
            paramstyle=req.paramstyle,
            use_ilike=req.useIlike,
            quote_identifiers=req.quoteIdentifiers,
            column_map=req.columnMap,
        )
    except ValueError as e:
        log.warning("SQL build rejected for %s: %s", req.entityType, e)
        raise HTTPException(status_code=400, detail=str(e))
    return {"where": where_sql, "params": params, "entityType": req.entityType}


@app.post("/filters/apply")
def apply_to_records(req: ApplyRequest = Body(...)):
    config = _parse(req.filterConfig)
    fields = _fields(req.entityType)
    try:
        assert_configuration_allowed(req.entityType, config, fields)
        matched, stamped = apply_filter(config, req.records)
    except ValueError as e:
        log.warning("Filter rejected for %s: %s", req.entityType, e)
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        log.exception("Filter evaluation failed for %s: %s", req.entityType, e)
        raise HTTPException(status_code=500, detail="Filter evaluation failed")
    return {"rows": matched, **_reply(stamped)}


@app.post("/presets/expand")
def expand_preset(payload: dict = Body(..., description="FilterPreset JSON")):
    try:
        preset = parse_preset_json(payload, validate=True)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=f"Invalid preset: {e.message}")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if not REG.get_fields(preset.entity_type):
        log.warning("Preset %s targets unknown entity type %s", preset.id, preset.entity_type)
        raise HTTPException(status_code=404, detail=f"Unknown entity type: {preset.entity_type}")

    used = record_usage(preset)
    return {"preset": used.to_dict(), **_reply(expand(used))}
