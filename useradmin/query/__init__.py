"""
Query building module for the user-admin filter service.

This module turns filter configurations into SQL predicates and evaluates
them against in-memory records.
"""

from .builder import build_where_clause_and_params
from .evaluator import (
    condition_matches,
    matches,
    apply_filter,
)

__all__ = [
    "build_where_clause_and_params",
    "condition_matches",
    "matches",
    "apply_filter",
]
