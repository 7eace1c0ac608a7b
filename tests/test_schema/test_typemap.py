"""Tests for specsdk.schema.typemap."""

from __future__ import annotations

import pytest

from specsdk.models import TypeKind, TypeRef
from specsdk.schema.typemap import TypeMapper, is_nullable, ref_name, schema_type


class TestHelpers:
    """ref_name, schema_type, is_nullable."""

    def test_ref_name(self) -> None:
        assert ref_name("#/components/schemas/Pet") == "Pet"
        assert ref_name("#/components/schemas/a~1b") == "a/b"

    def test_schema_type_31_list(self) -> None:
        assert schema_type({"type": ["null", "string"]}) == "string"
        assert schema_type({"type": ["null"]}) is None
        assert schema_type({}) is None

    def test_is_nullable(self) -> None:
        assert is_nullable({"type": "string", "nullable": True})
        assert is_nullable({"type": ["string", "null"]})
        assert not is_nullable({"type": "string"})
        assert not is_nullable("string")


class TestMapSchema:
    """Structural mapping table."""

    @pytest.mark.parametrize(
        ("schema", "annotation"),
        [
            ({"type": "string"}, "str"),
            ({"type": "string", "format": "date-time"}, "datetime"),
            ({"type": "string", "format": "date"}, "date"),
            ({"type": "string", "format": "uuid"}, "str"),
            ({"type": "integer", "format": "int64"}, "int"),
            ({"type": "number"}, "float"),
            ({"type": "boolean"}, "bool"),
            ({"type": "array", "items": {"type": "integer"}}, "list[int]"),
            ({"type": "array"}, "list[Any]"),
            ({"type": "object"}, "dict[str, Any]"),
            ({"$ref": "#/components/schemas/Pet"}, "Pet"),
            ({"allOf": [{"$ref": "#/components/schemas/Pet"}]}, "Pet"),
            ({"title": "Owner"}, "Owner"),
            ({"type": "string", "title": "app-state"}, "AppState"),
            ({"type": "string", "title": "Stamp", "format": "date-time"}, "datetime"),
            ({"type": "integer", "title": "Count"}, "int"),
            ({}, "Any"),
            ({"type": "null"}, "Any"),
        ],
    )
    def test_mapping(self, schema: dict, annotation: str) -> None:
        assert TypeMapper().map_schema(schema).annotation() == annotation

    def test_nested_arrays(self) -> None:
        schema = {"type": "array", "items": {"type": "array", "items": {"$ref": "#/x/Tag"}}}
        assert TypeMapper().map_schema(schema).annotation("models.") == "list[list[models.Tag]]"

    def test_non_mapping_is_any(self) -> None:
        assert TypeMapper().map_schema(None).kind == TypeKind.ANY
        assert TypeMapper().map_schema("string").kind == TypeKind.ANY

    def test_multi_allof_is_any(self) -> None:
        schema = {"allOf": [{"$ref": "#/a/A"}, {"$ref": "#/a/B"}]}
        assert TypeMapper().map_schema(schema).kind == TypeKind.ANY


class TestModelNames:
    """Reference naming."""

    def test_primitive_ref_names(self) -> None:
        mapper = TypeMapper()
        assert mapper.ref("#/components/schemas/string") == TypeRef.primitive("str")
        assert mapper.ref("#/components/schemas/Int64") == TypeRef.primitive("int")

    def test_ref_cased(self) -> None:
        assert TypeMapper().ref("#/components/schemas/network-group").name == "NetworkGroup"

    def test_brand_name_kept(self) -> None:
        mapper = TypeMapper(["WireGuard"])
        assert mapper.model_name("wireguard-peer") == "WireGuardPeer"
        assert mapper.model_name("WireGuard") == "WireGuard"

    @pytest.mark.parametrize(("raw", "expected"), [("Field", "FieldModel"), ("None", "NoneModel")])
    def test_reserved_names_suffixed(self, raw: str, expected: str) -> None:
        assert TypeMapper().model_name(raw) == expected

    def test_same_node_same_type(self) -> None:
        mapper = TypeMapper()
        node = {"type": "array", "items": {"$ref": "#/components/schemas/Tag"}}
        assert mapper.map_schema(node) == mapper.map_schema(dict(node))
