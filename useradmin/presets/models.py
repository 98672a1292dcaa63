from __future__ import annotations
from copy import deepcopy
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union
import json

import jsonschema

from ..filters import (
    AdvancedFilterConfig,
    FILTER_CONFIG_SCHEMA,
    new_configuration,
)
from ..filters.models import _format_timestamp, _parse_timestamp


@dataclass
class FilterPreset:
    """
    A named, reusable filter configuration. Presets are stored elsewhere;
    here they are only read, expanded and have their usage recorded.
    """
    name: str
    entity_type: str
    filter_config: AdvancedFilterConfig = field(default_factory=new_configuration)
    id: Optional[str] = None
    tenant_id: Optional[str] = None
    description: Optional[str] = None
    is_public: bool = False
    is_default: bool = False
    icon: Optional[str] = None
    color: Optional[str] = None
    usage_count: int = 0
    last_used_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # camelCase JSON helpers
    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "tenantId": self.tenant_id,
            "name": self.name,
            "description": self.description,
            "entityType": self.entity_type,
            "filterConfig": self.filter_config.to_dict(),
            "isPublic": self.is_public,
            "isDefault": self.is_default,
            "icon": self.icon,
            "color": self.color,
            "usageCount": self.usage_count,
            "lastUsedAt": _format_timestamp(self.last_used_at),
            "createdAt": _format_timestamp(self.created_at),
            "updatedAt": _format_timestamp(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FilterPreset":
        cfg = data.get("filterConfig")
        return cls(
            id=data.get("id"),
            tenant_id=data.get("tenantId"),
            name=str(data["name"]),
            description=data.get("description"),
            entity_type=str(data["entityType"]),
            filter_config=AdvancedFilterConfig.from_dict(cfg) if cfg else new_configuration(),
            is_public=bool(data.get("isPublic", False)),
            is_default=bool(data.get("isDefault", False)),
            icon=data.get("icon"),
            color=data.get("color"),
            usage_count=int(data.get("usageCount") or 0),
            last_used_at=_parse_timestamp(data.get("lastUsedAt")),
            created_at=_parse_timestamp(data.get("createdAt")),
            updated_at=_parse_timestamp(data.get("updatedAt")),
        )

    @property
    def key(self) -> tuple:
        return (self.tenant_id, self.entity_type, self.id)


PRESET_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "$id": "https://useradmin.local/filter-preset.schema.json",
    "title": "Filter Preset",
    "type": "object",
    "properties": {
        "id": {"type": ["string", "null"]},
        "tenantId": {"type": ["string", "null"]},
        "name": {"type": "string", "minLength": 1},
        "description": {"type": ["string", "null"]},
        "entityType": {"type": "string", "minLength": 1},
        "filterConfig": {"type": "object"},
        "isPublic": {"type": "boolean"},
        "isDefault": {"type": "boolean"},
        "icon": {"type": ["string", "null"]},
        "color": {"type": ["string", "null"]},
        "usageCount": {"type": "integer", "minimum": 0},
        "lastUsedAt": {"type": ["string", "null"]},
        "createdAt": {"type": ["string", "null"]},
        "updatedAt": {"type": ["string", "null"]},
    },
    "required": ["name", "entityType", "filterConfig"],
}


def parse_preset_json(
    payload: Union[str, Dict[str, Any]],
    *,
    validate: bool = True,
) -> FilterPreset:
    """
    Accept camelCase JSON for a preset. Also validates the embedded
    filter configuration when validation is enabled.
    """
    data = json.loads(payload) if isinstance(payload, str) else payload
    if validate:
        jsonschema.validate(instance=data, schema=PRESET_SCHEMA)
        jsonschema.validate(instance=data["filterConfig"], schema=FILTER_CONFIG_SCHEMA)
    return FilterPreset.from_dict(data)


def expand(preset: FilterPreset) -> AdvancedFilterConfig:
    """The live configuration a preset stands for; edits never reach the preset."""
    return deepcopy(preset.filter_config)


def record_usage(preset: FilterPreset, now: Optional[datetime] = None) -> FilterPreset:
    return replace(
        preset,
        usage_count=preset.usage_count + 1,
        last_used_at=now or datetime.now(timezone.utc),
    )
