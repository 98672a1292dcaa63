import json, logging, os
from pathlib import Path
from typing import Dict, Tuple

import yaml

from .fields import FilterField, USER_FILTER_FIELDS

log = logging.getLogger("catalog")

FIELDS_PATH = Path(os.getenv("FIELDS_FILE", "config/fields.yaml"))


class FieldRegistry:
    """
    Field catalogs keyed by entity type ('users', 'clients', 'team_members').
    Catalogs are read once at startup and never mutated afterwards.
    """

    def __init__(self, path: Path = FIELDS_PATH):
        self.path = Path(path)
        self.catalogs: Dict[str, Tuple[FilterField, ...]] = {"users": USER_FILTER_FIELDS}

    def load_fields(self) -> None:
        if not self.path.exists():
            log.warning("Field catalog file not found: %s (built-in catalogs only)", self.path)
            return
        with self.path.open("r", encoding="utf-8") as f:
            if self.path.suffix.lower() in (".yaml", ".yml"):
                cfg = yaml.safe_load(f) or {}
            else:
                cfg = json.load(f)

        if not isinstance(cfg, dict):
            raise RuntimeError(f"Bad field catalog file {self.path}: expected a mapping")
        ents = cfg.get("entities") or {}
        if not isinstance(ents, dict):
            raise RuntimeError(f"Bad field catalog file {self.path}: entities must be a mapping")
        loaded: Dict[str, Tuple[FilterField, ...]] = {}
        for entity_type, items in ents.items():
            if not isinstance(items, list) or not items:
                raise RuntimeError(f"Bad field catalog for {entity_type}: {items}")
            try:
                fields = tuple(FilterField.from_dict(item) for item in items)
            except (KeyError, ValueError, TypeError) as e:
                raise RuntimeError(f"Bad field entry for {entity_type}: {e}") from e
            names = [f.name for f in fields]
            if len(set(names)) != len(names):
                raise RuntimeError(f"Duplicate field names for {entity_type}: {names}")
            loaded[entity_type] = fields

        self.catalogs.update(loaded)
        log.info("Loaded field catalogs for %s from %s", sorted(loaded), self.path)

    def entity_types(self) -> list[str]:
        return list(self.catalogs.keys())

    def get_fields(self, entity_type: str) -> Tuple[FilterField, ...]:
        """Unknown entity types have no fields; never fall back to another catalog."""
        return self.catalogs.get(entity_type, ())

    def ensure_entity(self, entity_type: str) -> Tuple[FilterField, ...]:
        if entity_type not in self.catalogs:
            raise KeyError(f"Unknown entity type: {entity_type}")
        return self.catalogs[entity_type]
