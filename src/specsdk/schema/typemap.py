"""Structural type mapping from JSON Schema nodes to :class:`~specsdk.models.TypeRef`.

The same :class:`TypeMapper` is used for record fields, enum bases, union
alternatives, path and query parameters, request bodies, and responses, so a
given schema node always maps to the same Python type wherever it appears.

=========================  ==========================
Schema                     Python type
=========================  ==========================
``$ref`` to ``.../Pet``    ``Pet``
``string``                 ``str``
``string`` + date-time     ``datetime``
``string`` + date          ``date``
``string`` with ``title``  model named by the title
``integer``                ``int``
``number``                 ``float``
``boolean``                ``bool``
``array`` of T             ``list[T]``
``object``                 ``dict[str, Any]``
no type, with ``title``    model named by the title
anything else              ``Any``
=========================  ==========================
"""

from __future__ import annotations

import keyword
from typing import Any, Iterable, Optional

from specsdk.models import TypeRef
from specsdk.naming.casing import type_name

# $ref targets named after a primitive map to the primitive, not a model.
PRIMITIVE_REF_NAMES: dict[str, str] = {
    "bool": "bool",
    "boolean": "bool",
    "float": "float",
    "float64": "float",
    "int": "int",
    "int64": "int",
    "integer": "int",
    "number": "float",
    "str": "str",
    "string": "str",
}

# Module-level names of the generated models module.
RESERVED_TYPE_NAMES = frozenset(
    {"Any", "BaseModel", "ConfigDict", "Field", "Literal", "Optional", "Union", "enum"}
)

_SCALAR_TYPES = frozenset({"string", "integer", "number", "boolean"})
_DATE_FORMATS = frozenset({"date", "date-time"})


def ref_name(ref: str) -> str:
    """Return the last segment of a ``$ref`` pointer, unescaped.

    Example::

        ref_name("#/components/schemas/Pet")  # 'Pet'
    """
    return ref.rsplit("/", 1)[-1].replace("~1", "/").replace("~0", "~")


def schema_type(schema: dict[str, Any]) -> Optional[str]:
    """Return the declared JSON Schema type of *schema*.

    Handles OpenAPI 3.1 type arrays (e.g. ``["string", "null"]``) by
    returning the first non-null member.
    """
    value = schema.get("type")
    if isinstance(value, list):
        non_null = [item for item in value if item != "null"]
        return str(non_null[0]) if non_null else None
    return str(value) if value is not None else None


def is_nullable(schema: Any) -> bool:
    """Whether *schema* explicitly admits ``null`` (3.0 ``nullable`` or 3.1 type list)."""
    if not isinstance(schema, dict):
        return False
    if schema.get("nullable") is True:
        return True
    value = schema.get("type")
    return isinstance(value, list) and "null" in value


def is_scalar(schema: dict[str, Any]) -> bool:
    return schema_type(schema) in _SCALAR_TYPES


class TypeMapper:
    """Maps schema nodes to type descriptors.

    Args:
        brand_names: Names kept verbatim when deriving model names.
    """

    def __init__(self, brand_names: Iterable[str] = ()) -> None:
        self.brand_names = list(brand_names)

    def model_name(self, name: str) -> str:
        """Return the generated class name for a schema key.

        Names that would shadow a keyword or a name the generated models
        module imports get a ``Model`` suffix (``Field`` -> ``FieldModel``).
        """
        result = type_name(name, self.brand_names) or "Schema"
        if keyword.iskeyword(result) or result in RESERVED_TYPE_NAMES:
            result += "Model"
        return result

    def ref(self, ref: str) -> TypeRef:
        """Map a ``$ref`` string to a model (or primitive) type."""
        name = ref_name(ref)
        primitive = PRIMITIVE_REF_NAMES.get(name.lower())
        if primitive is not None:
            return TypeRef.primitive(primitive)
        return TypeRef.model(self.model_name(name))

    def primitive(self, type_: Optional[str], format_: Optional[str] = None) -> TypeRef:
        """Map a scalar JSON Schema type to a primitive, or ``Any``."""
        if type_ == "string":
            if format_ == "date-time":
                return TypeRef.primitive("datetime")
            if format_ == "date":
                return TypeRef.primitive("date")
            return TypeRef.primitive("str")
        if type_ == "integer":
            return TypeRef.primitive("int")
        if type_ == "number":
            return TypeRef.primitive("float")
        if type_ == "boolean":
            return TypeRef.primitive("bool")
        return TypeRef.any()

    def map_schema(self, schema: Any) -> TypeRef:
        """Map an arbitrary schema node to a type descriptor.

        Args:
            schema: A schema object. Non-mapping values map to ``Any``.

        Returns:
            The mapped :class:`~specsdk.models.TypeRef`.
        """
        if not isinstance(schema, dict):
            return TypeRef.any()

        ref = schema.get("$ref")
        if isinstance(ref, str):
            return self.ref(ref)

        all_of = schema.get("allOf")
        if isinstance(all_of, list) and len(all_of) == 1 and isinstance(all_of[0], dict):
            return self.map_schema(all_of[0])

        type_ = schema_type(schema)
        title = schema.get("title")
        if (
            type_ == "string"
            and isinstance(title, str)
            and title
            and schema.get("format") not in _DATE_FORMATS
        ):
            # Inline copy of a titled string schema, usually an enum.
            return TypeRef.model(self.model_name(title))
        if type_ in _SCALAR_TYPES:
            return self.primitive(type_, schema.get("format"))
        if type_ == "array":
            return TypeRef.array(self.map_schema(schema.get("items")))
        if type_ == "object":
            return TypeRef.map(TypeRef.any())
        if type_ is None and isinstance(title, str) and title:
            return TypeRef.model(self.model_name(title))
        return TypeRef.any()
