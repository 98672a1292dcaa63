"""
Filter presets: named, reusable filter configurations.
"""

from .models import (
    FilterPreset,
    PRESET_SCHEMA,
    parse_preset_json,
    expand,
    record_usage,
)

__all__ = [
    "FilterPreset",
    "PRESET_SCHEMA",
    "parse_preset_json",
    "expand",
    "record_usage",
]
