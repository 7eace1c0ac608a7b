"""Classify component schemas into the five canonical model kinds.

:meth:`SchemaModeler.classify` checks, in order, for an enum, a ``oneOf``
union, a string-keyed map, a record, and a titled scalar alias; the first
match wins. Schemas that match none of these, and schemas that are
malformed, are skipped with a warning. :meth:`SchemaModeler.build_models`
never aborts because of a single bad schema.

Record fields follow one nullability rule: an optional field is
``Optional[T] = None``, except an array field, which is ``list[T]`` with an
empty-list default and is never ``None``.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from specsdk.exceptions import SchemaError
from specsdk.models import (
    EnumMember,
    FieldSpec,
    ModelKind,
    ModelSpec,
    TypeKind,
    TypeRef,
)
from specsdk.naming.casing import (
    enum_member_name,
    python_identifier,
    to_snake_case,
    unique_name,
)
from specsdk.schema.typemap import TypeMapper, is_nullable, is_scalar, schema_type

logger = logging.getLogger(__name__)

# Attribute names a pydantic model field must not shadow, plus the names the
# generated models module binds at module level.
RESERVED_FIELD_NAMES = frozenset(
    {
        "Any",
        "BaseModel",
        "ConfigDict",
        "Field",
        "Literal",
        "Optional",
        "Union",
        "bool",
        "construct",
        "copy",
        "date",
        "datetime",
        "dict",
        "enum",
        "float",
        "from_orm",
        "int",
        "json",
        "list",
        "model_config",
        "model_fields",
        "parse_obj",
        "schema",
        "schema_json",
        "str",
        "validate",
    }
)

_ENUM_BASES = {"string": "str", "integer": "int", "number": "float", "boolean": "bool"}


class SchemaModeler:
    """Turns ``components.schemas`` into :class:`~specsdk.models.ModelSpec` records.

    Args:
        mapper: The type mapper shared with the operation extractor.
    """

    def __init__(self, mapper: TypeMapper) -> None:
        self.mapper = mapper

    def classify(self, name: str, node: Any) -> Optional[ModelSpec]:
        """Classify one named schema node.

        Args:
            name: The key under ``components.schemas``.
            node: The schema object.

        Returns:
            The classified model, or ``None`` when the schema matches no kind.

        Raises:
            SchemaError: If the schema is malformed.
        """
        if not isinstance(node, dict):
            raise SchemaError(name, f"expected a mapping, got {type(node).__name__}")

        if "enum" in node:
            return self._enum(name, node)
        if "oneOf" in node:
            return self._union(name, node)

        properties = node.get("properties")
        additional = node.get("additionalProperties")
        if schema_type(node) == "object" or properties is not None:
            if not properties and additional not in (None, False):
                return self._map(name, node, additional)
            return self._record(name, node)

        title = node.get("title")
        if isinstance(title, str) and title and is_scalar(node):
            untitled = {key: value for key, value in node.items() if key != "title"}
            return self._base(name, node, ModelKind.ALIAS).model_copy(
                update={"alias_type": self.mapper.map_schema(untitled)}
            )

        return None

    def build_models(self, schemas: Any) -> list[ModelSpec]:
        """Classify every schema and back-compute union membership.

        Args:
            schemas: The ``components.schemas`` mapping.

        Returns:
            Models sorted by generated name.
        """
        if schemas is None:
            return []
        if not isinstance(schemas, dict):
            logger.warning("Ignoring components.schemas: expected a mapping")
            return []

        models: dict[str, ModelSpec] = {}
        for key in sorted(schemas):
            try:
                model = self.classify(key, schemas[key])
            except SchemaError as exc:
                logger.warning("Skipping %s", exc)
                continue
            if model is None:
                logger.warning("Skipping schema '%s': unsupported schema shape", key)
                continue
            if model.name in models:
                logger.warning(
                    "Skipping schema '%s': name %s already used by '%s'",
                    key,
                    model.name,
                    models[model.name].source_name,
                )
                continue
            models[model.name] = model

        return _with_implements([models[name] for name in sorted(models)])

    # ------------------------------------------------------------------ #
    # Kinds
    # ------------------------------------------------------------------ #

    def _base(self, name: str, node: dict[str, Any], kind: ModelKind) -> ModelSpec:
        description = node.get("description")
        return ModelSpec(
            name=self.mapper.model_name(name),
            source_name=name,
            kind=kind,
            description=description if isinstance(description, str) else None,
        )

    def _enum(self, name: str, node: dict[str, Any]) -> ModelSpec:
        values = node["enum"]
        if not isinstance(values, list):
            raise SchemaError(name, "enum must be a list")

        base = _ENUM_BASES.get(schema_type(node) or "string", "str")
        members: list[EnumMember] = []
        taken: set[str] = set()
        seen: list[Any] = []
        for value in values:
            if value is None or value in seen:
                continue
            if isinstance(value, (dict, list)):
                raise SchemaError(name, f"unsupported enum literal {value!r}")
            seen.append(value)
            members.append(
                EnumMember(name=unique_name(enum_member_name(value), taken), value=value)
            )
        if not members:
            raise SchemaError(name, "enum has no usable values")

        return self._base(name, node, ModelKind.ENUM).model_copy(
            update={"enum_base": base, "enum_members": members}
        )

    def _union(self, name: str, node: dict[str, Any]) -> ModelSpec:
        alternatives = node["oneOf"]
        if not isinstance(alternatives, list):
            raise SchemaError(name, "oneOf must be a list")

        members: list[TypeRef] = []
        for alternative in alternatives:
            if not isinstance(alternative, dict):
                continue
            if isinstance(alternative.get("$ref"), str):
                member = self.mapper.ref(alternative["$ref"])
            elif is_scalar(alternative):
                member = self.mapper.primitive(schema_type(alternative), alternative.get("format"))
            else:
                logger.debug("Union '%s': ignoring inline alternative", name)
                continue
            if member not in members:
                members.append(member)
        if not members:
            raise SchemaError(name, "oneOf has no reference or primitive alternatives")

        discriminator = node.get("discriminator")
        property_name = (
            discriminator.get("propertyName") if isinstance(discriminator, dict) else None
        )
        return self._base(name, node, ModelKind.UNION).model_copy(
            update={"union_members": members, "discriminator": property_name}
        )

    def _map(self, name: str, node: dict[str, Any], additional: Any) -> ModelSpec:
        if additional is True or additional == {}:
            value = TypeRef.any()
        elif isinstance(additional, dict):
            value = self.mapper.map_schema(additional)
        else:
            raise SchemaError(name, "additionalProperties must be a boolean or a schema")
        return self._base(name, node, ModelKind.MAP).model_copy(update={"map_value": value})

    def _record(self, name: str, node: dict[str, Any]) -> ModelSpec:
        properties = node.get("properties") or {}
        if not isinstance(properties, dict):
            raise SchemaError(name, "properties must be a mapping")
        required = node.get("required") or []
        if not isinstance(required, list):
            raise SchemaError(name, "required must be a list")

        fields: list[FieldSpec] = []
        taken: set[str] = set()
        for json_name in sorted(properties):
            prop = properties[json_name]
            if not isinstance(prop, dict):
                logger.warning(
                    "Skipping property '%s' of schema '%s': expected a mapping",
                    json_name,
                    name,
                )
                continue
            fields.append(self._field(json_name, prop, json_name in required, taken))

        discriminator = next((field.json_name for field in fields if field.const), None)
        additional = node.get("additionalProperties")
        return self._base(name, node, ModelKind.RECORD).model_copy(
            update={
                "fields": fields,
                "allow_extra": additional not in (None, False),
                "discriminator": discriminator,
            }
        )

    def _field(
        self, json_name: str, prop: dict[str, Any], required: bool, taken: set[str]
    ) -> FieldSpec:
        type_ = self.mapper.map_schema(prop)
        const = prop.get("const")
        description = prop.get("description")
        attribute = python_identifier(
            to_snake_case(json_name, self.mapper.brand_names) or json_name,
            reserved=RESERVED_FIELD_NAMES,
        )
        # pydantic treats underscore-prefixed names as private attributes.
        if attribute.startswith("_"):
            attribute = "field" + attribute
        nullable = type_.kind != TypeKind.ARRAY and (not required or is_nullable(prop))
        return FieldSpec(
            name=unique_name(attribute, taken),
            json_name=json_name,
            type=type_,
            required=required,
            nullable=nullable,
            const=const if isinstance(const, str) else None,
            description=description if isinstance(description, str) else None,
        )


def _with_implements(models: list[ModelSpec]) -> list[ModelSpec]:
    """Fill ``implements`` from union membership."""
    unions_by_member: dict[str, set[str]] = {}
    for model in models:
        if model.kind != ModelKind.UNION:
            continue
        for member in model.union_members:
            if member.kind == TypeKind.MODEL and member.name:
                unions_by_member.setdefault(member.name, set()).add(model.name)

    return [
        model.model_copy(update={"implements": sorted(unions_by_member[model.name])})
        if model.name in unions_by_member
        else model
        for model in models
    ]
