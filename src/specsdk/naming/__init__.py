"""Identifier casing and the operation naming policy."""

from specsdk.naming.casing import (
    enum_member_name,
    package_name,
    python_identifier,
    to_pascal_case,
    to_snake_case,
    type_name,
)
from specsdk.naming.policy import NamePolicy

__all__ = [
    "NamePolicy",
    "enum_member_name",
    "package_name",
    "python_identifier",
    "to_pascal_case",
    "to_snake_case",
    "type_name",
]
