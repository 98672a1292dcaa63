"""
Field catalogs for the user-admin filter service.

This module describes the filterable fields of each entity type.
"""

from .fields import (
    FilterField,
    FilterOption,
    USER_FILTER_FIELDS,
    find_field,
)
from .registry import FieldRegistry

__all__ = [
    "FilterField",
    "FilterOption",
    "USER_FILTER_FIELDS",
    "find_field",
    "FieldRegistry",
]
