"""
Validation module for the user-admin filter service.

This module checks filter configurations against a field catalog.
"""

from .rules import (
    validate_configuration,
    assert_configuration_allowed,
)

__all__ = [
    "validate_configuration",
    "assert_configuration_allowed",
]
