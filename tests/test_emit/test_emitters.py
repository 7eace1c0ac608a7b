"""Tests for the models, operations, and builder emitters."""

from __future__ import annotations

import ast

import pytest

from specsdk.emit import emit_builder, emit_models, emit_operations
from specsdk.emit.formatter import format_source
from specsdk.emit.operations_emitter import function_context, operation_doc, query_parameter
from specsdk.emit.render import docstring_text, header, type_expression
from specsdk.models import Artifact, NamingTables, Parameter, ParameterLocation, SpecIR, TypeRef
from specsdk.pipeline import build_ir

PACKAGE = "platform_sdk"


def _by_path(artifacts: list[Artifact]) -> dict[str, str]:
    return {a.path: format_source(a.content, a.path) for a in artifacts}


def _function(source: str, name: str) -> ast.FunctionDef:
    tree = ast.parse(source)
    for node in ast.walk(tree):
        if isinstance(node, ast.FunctionDef) and node.name == name:
            return node
    raise AssertionError(f"function {name} not found")


# ---------------------------------------------------------------------------
# Shared rendering helpers
# ---------------------------------------------------------------------------


class TestRenderHelpers:
    def test_header(self, platform_ir: SpecIR, tables: NamingTables) -> None:
        text = header("models", platform_ir)
        lines = text.splitlines()
        assert lines[0].startswith("# Code generated by specsdk ")
        assert lines[0].endswith("(models pass). DO NOT EDIT.")
        assert lines[1] == "# Source: Platform API 4.2.0 (OpenAPI 3.0.3)"
        assert lines[2] == f"# Naming tables: version 1, sha256 {tables.fingerprint()}"

    def test_docstring_text(self) -> None:
        assert docstring_text('say """hi"""') == 'say \\"\\"\\"hi\\"\\"\\"'
        assert docstring_text('ends with "quote"') == 'ends with "quote\\"'
        assert docstring_text("back\\slash") == "back\\\\slash"
        assert docstring_text(None) == ""

    def test_type_expression(self) -> None:
        assert type_expression(TypeRef.nothing()) == "None"
        assert type_expression(TypeRef.any()) == "Any"
        assert type_expression(TypeRef.array(TypeRef.model("Pet"))) == "list[models.Pet]"


# ---------------------------------------------------------------------------
# models.py
# ---------------------------------------------------------------------------


class TestModelsEmitter:
    """Declarations for every classified schema."""

    @pytest.fixture
    def source(self, platform_ir: SpecIR) -> str:
        (artifact,) = emit_models(platform_ir, PACKAGE)
        assert artifact.path == "models.py"
        return format_source(artifact.content, artifact.path)

    def test_header(self, source: str, platform_ir: SpecIR) -> None:
        assert "(models pass)" in source.splitlines()[0]
        assert platform_ir.tables_fingerprint in source

    def test_enum(self, source: str) -> None:
        assert "class AppState(str, enum.Enum):" in source
        assert "    IN_PROGRESS = 'in-progress'" in source

    def test_scalar_alias(self, source: str) -> None:
        assert "OwnerId = str\n" in source
        assert '"""Organisation or user ID."""' in source

    def test_record_fields(self, source: str) -> None:
        assert "class Organisation(BaseModel):" in source
        assert "    id: str = Field(alias='id')" in source
        created_at = "    created_at: Optional[datetime] = Field(default=None, alias='createdAt')"
        assert created_at in source
        assert "    avatar: Optional[str] = Field(default=None, alias='avatar')" in source
        assert "    tags: list[str] = Field(default_factory=list, alias='tags')" in source
        assert "    status: Optional[AppState] = Field(default=None, alias='status')" in source

    def test_const_field(self, source: str) -> None:
        assert "    pet_type: Literal['cat'] = Field(default='cat', alias='petType')" in source
        assert "Member of: Pet." in source

    def test_map_and_union(self, source: str) -> None:
        assert "Labels = dict[str, str]\n" in source
        assert "Pet = Union[Cat, Dog]\n" in source

    def test_declaration_order(self, source: str) -> None:
        assert source.index("class AppState") < source.index("OwnerId = str")
        assert source.index("OwnerId = str") < source.index("class Application(BaseModel)")
        assert source.index("class Dog(BaseModel)") < source.index("Pet = Union")
        assert source.index("Pet = Union") < source.index("Organisation.model_rebuild()")

    def test_every_record_rebuilt(self, source: str, platform_ir: SpecIR) -> None:
        records = [m.name for m in platform_ir.models if m.kind.value == "record"]
        for name in records:
            assert f"{name}.model_rebuild()" in source

    def test_type_aliases_toposorted(self, spec_factory, tables: NamingTables) -> None:
        schemas = {
            "A": {"type": "object", "additionalProperties": {"$ref": "#/components/schemas/B"}},
            "B": {"oneOf": [{"$ref": "#/components/schemas/C"}]},
            "C": {"type": "object"},
        }
        ir = build_ir(spec_factory({}, schemas), tables)
        (artifact,) = emit_models(ir, PACKAGE)
        source = format_source(artifact.content)
        assert source.index("B = Union[C]") < source.index("A = dict[str, B]")

    def test_empty_document(self, spec_factory, tables: NamingTables) -> None:
        ir = build_ir(spec_factory({}), tables)
        (artifact,) = emit_models(ir, PACKAGE)
        format_source(artifact.content)


# ---------------------------------------------------------------------------
# services
# ---------------------------------------------------------------------------


class TestOperationsEmitter:
    """Runtime plus one module per package."""

    @pytest.fixture
    def files(self, platform_ir: SpecIR) -> dict[str, str]:
        return _by_path(emit_operations(platform_ir, PACKAGE))

    def test_artifacts(self, files: dict[str, str]) -> None:
        assert list(files) == [
            "__init__.py",
            "_runtime.py",
            "services/__init__.py",
            "services/configuration_provider.py",
            "services/organisation.py",
            "services/pets.py",
            "services/product.py",
            "services/pulsar.py",
        ]

    def test_headers(self, files: dict[str, str], platform_ir: SpecIR) -> None:
        for content in files.values():
            assert "(operations pass)" in content.splitlines()[0]
            assert platform_ir.tables_fingerprint in content

    def test_base_url(self, files: dict[str, str]) -> None:
        assert "base_url: str = 'https://api.example.com'," in files["_runtime.py"]

    def test_package_imports(self, files: dict[str, str]) -> None:
        assert f"from {PACKAGE}._runtime import APIError, Client" in files["__init__.py"]
        assert f"from {PACKAGE} import models" in files["services/organisation.py"]

    def test_function_signatures(self, files: dict[str, str]) -> None:
        source = files["services/organisation.py"]
        list_orgs = _function(source, "list_organisations")
        assert [a.arg for a in list_orgs.args.args] == ["client"]
        assert [a.arg for a in list_orgs.args.kwonlyargs] == ["limit"]

        create = _function(source, "create_organisation")
        assert [a.arg for a in create.args.args] == ["client", "body"]
        assert ast.unparse(create.returns) == "models.Organisation"

        delete = _function(source, "delete_organisation")
        assert [a.arg for a in delete.args.args] == ["client", "owner_id"]
        assert ast.unparse(delete.returns) == "None"

    def test_function_order_follows_extraction(self, files: dict[str, str]) -> None:
        tree = ast.parse(files["services/organisation.py"])
        names = [node.name for node in tree.body if isinstance(node, ast.FunctionDef)]
        assert names == [
            "list_organisations",
            "create_organisation",
            "list_members",
            "delete_organisation",
            "get_organisation",
        ]

    def test_request_call(self, files: dict[str, str]) -> None:
        source = files["services/product.py"]
        template = "'/v4/organisations/{ownerId}/applications/{appId}'"
        assert f"build_path({template}, owner_id, app_id)" in source
        assert "return parse_response(response, models.Application)" in source

    def test_query_mapping(self, files: dict[str, str]) -> None:
        assert "'limit': limit," in files["services/organisation.py"]

    def test_deprecated_doc(self, files: dict[str, str]) -> None:
        delete = _function(files["services/organisation.py"], "delete_organisation")
        doc = ast.get_docstring(delete)
        assert "Deprecated." in doc
        assert doc.endswith("DELETE /v4/organisations/{ownerId} (operation ID deleteOrganisation)")

    def test_services_init(self, files: dict[str, str]) -> None:
        assert "Packages: configuration_provider, organisation, pets, product, pulsar." in (
            files["services/__init__.py"]
        )


class TestFunctionContext:
    def test_query_parameter(self) -> None:
        optional = Parameter(
            name="limit",
            python_name="limit",
            location=ParameterLocation.QUERY,
            type=TypeRef.primitive("int"),
        )
        required = optional.model_copy(update={"required": True})
        assert query_parameter(optional) == "limit: Optional[int] = None"
        assert query_parameter(required) == "limit: int"

    def test_context(self, platform_ir: SpecIR) -> None:
        resolved = next(
            op for op in platform_ir.operations if op.operation_id == "updateConfigProviderEnv"
        )
        context = function_context(resolved)
        assert context["parameters"] == [
            "client: Client",
            "provider_id: str",
            "body: list[models.EnvVar]",
        ]
        assert context["method"] == "PUT"
        assert context["response"] == "list[models.EnvVar]"
        assert context["has_body"] is True

    def test_operation_doc(self, platform_ir: SpecIR) -> None:
        resolved = next(
            op for op in platform_ir.operations if op.operation_id == "listOrganisations"
        )
        assert operation_doc(resolved) == (
            "List organisations\n\nGET /v4/organisations (operation ID listOrganisations)"
        )


# ---------------------------------------------------------------------------
# builder.py
# ---------------------------------------------------------------------------


class TestBuilderEmitter:
    """Fluent builder module."""

    @pytest.fixture
    def source(self, platform_ir: SpecIR, tables: NamingTables) -> str:
        (artifact,) = emit_builder(platform_ir, PACKAGE, tables.brand_names)
        assert artifact.path == "builder.py"
        return format_source(artifact.content, artifact.path)

    def test_header(self, source: str) -> None:
        assert "(builder pass)" in source.splitlines()[0]

    def test_imports_every_service(self, source: str) -> None:
        for name in ("configuration_provider", "organisation", "pets", "product", "pulsar"):
            assert f"from {PACKAGE}.services import {name} as _{name}" in source

    def test_classes(self, source: str) -> None:
        tree = ast.parse(source)
        classes = [node.name for node in tree.body if isinstance(node, ast.ClassDef)]
        assert classes[0] == "SDK"
        assert "V4OrganisationsIdApplicationsAppIdBuilder" in classes

    def test_accessor_threads_fields(self, source: str) -> None:
        assert "def app_id(self, app_id: str) -> V4OrganisationsIdApplicationsAppIdBuilder:" in (
            source
        )
        assert (
            "return V4OrganisationsIdApplicationsAppIdBuilder(self._client, self._id, app_id)"
            in source
        )

    def test_call_delegates(self, source: str) -> None:
        assert "return _product.get_application(self._client, self._id, self._app_id)" in source
        assert "return _organisation.list_organisations(self._client, limit=limit)" in source
        assert "return _configuration_provider.update_config_provider_env(" in source

    def test_example_chain(self, source: str) -> None:
        chain = "sdk.v4().addon_providers().addon_pulsar().addons().addon_id(...).get_pulsar_v2()"
        assert chain in source

    def test_mixed_segment_parameter(self, spec_factory, tables: NamingTables) -> None:
        paths = {
            "/files/{name}.json": {
                "get": {"operationId": "getFile", "tags": ["files"], "responses": {}}
            }
        }
        ir = build_ir(spec_factory(paths), tables)
        (artifact,) = emit_builder(ir, PACKAGE)
        source = format_source(artifact.content)
        assert "def get_file(self, name: str) -> Any:" in source
        assert "return _files.get_file(self._client, name)" in source

    def test_no_operations(self, spec_factory, tables: NamingTables) -> None:
        ir = build_ir(spec_factory({}), tables)
        (artifact,) = emit_builder(ir, PACKAGE)
        source = format_source(artifact.content)
        assert "class SDK:" in source
