"""End-to-end tests: generate the platform SDK, import it, and call it.

HTTP traffic goes through :class:`httpx.MockTransport`, so no network is
needed.
"""

from __future__ import annotations

import importlib
import inspect
import json
import sys
from datetime import datetime
from pathlib import Path
from types import ModuleType
from typing import Any, Callable, Iterator

import httpx
import pytest

from specsdk.app import PASSES, run_pass
from specsdk.config import DEFAULT_NAMING_TABLES
from specsdk.models import GeneratorConfig

PACKAGE = "platform_sdk"
BASE_URL = "https://api.example.com"
FIXTURE = Path(__file__).parent.parent / "fixtures" / "platform.json"

Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture(scope="module")
def sdk(tmp_path_factory: pytest.TempPathFactory) -> Iterator[dict[str, ModuleType]]:
    """Run every pass into a temp dir and import the resulting package."""
    root = tmp_path_factory.mktemp("generated")
    raw = json.loads(FIXTURE.read_text())
    config = GeneratorConfig(output=str(root / PACKAGE), package=PACKAGE)
    for pass_name in PASSES:
        run_pass(pass_name, raw, DEFAULT_NAMING_TABLES, config)

    with pytest.MonkeyPatch.context() as mp:
        mp.syspath_prepend(str(root))
        modules = {
            name: importlib.import_module(f"{PACKAGE}.{name}" if name else PACKAGE)
            for name in (
                "",
                "models",
                "builder",
                "services.organisation",
                "services.pets",
                "services.pulsar",
                "services.product",
                "services.configuration_provider",
            )
        }
        yield modules

    for name in list(sys.modules):
        if name == PACKAGE or name.startswith(PACKAGE + "."):
            del sys.modules[name]


def _client(sdk: dict[str, ModuleType], handler: Handler) -> Any:
    http = httpx.Client(base_url=BASE_URL, transport=httpx.MockTransport(handler))
    return sdk[""].Client(http=http)


class _Recorder:
    """Transport handler that records requests and replays one response."""

    def __init__(self, status: int = 200, payload: Any = None) -> None:
        self.status = status
        self.payload = payload
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.payload is None:
            return httpx.Response(self.status)
        return httpx.Response(self.status, json=self.payload)


ORGANISATION = {
    "id": "org_1",
    "name": "Acme",
    "createdAt": "2024-01-02T03:04:05+00:00",
    "status": "in-progress",
}


# ---------------------------------------------------------------------------
# Generated files
# ---------------------------------------------------------------------------


class TestLayout:
    def test_package_exports(self, sdk: dict[str, ModuleType]) -> None:
        assert sdk[""].__all__ == ["APIError", "Client"]

    def test_default_base_url(self, sdk: dict[str, ModuleType]) -> None:
        signature = inspect.signature(sdk[""].Client.__init__)
        assert signature.parameters["base_url"].default == BASE_URL

    def test_every_operation_has_a_function(self, sdk: dict[str, ModuleType]) -> None:
        from specsdk.pipeline import build_ir

        ir = build_ir(json.loads(FIXTURE.read_text()), DEFAULT_NAMING_TABLES)
        for op in ir.operations:
            module = importlib.import_module(f"{PACKAGE}.services.{op.package}")
            assert callable(getattr(module, op.function_name))


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class TestModels:
    def test_record_parsing(self, sdk: dict[str, ModuleType]) -> None:
        models = sdk["models"]
        org = models.Organisation.model_validate(ORGANISATION)
        assert org.created_at == datetime.fromisoformat("2024-01-02T03:04:05+00:00")
        assert org.status is models.AppState.IN_PROGRESS
        assert org.tags == []
        assert org.avatar is None

    def test_required_field(self, sdk: dict[str, ModuleType]) -> None:
        from pydantic import ValidationError

        with pytest.raises(ValidationError):
            sdk["models"].Organisation.model_validate({"name": "Acme"})

    def test_populate_by_name(self, sdk: dict[str, ModuleType]) -> None:
        models = sdk["models"]
        instance = models.Instance(zone="par", count=2)
        assert instance.model_dump(by_alias=True) == {"zone": "par", "count": 2}

    def test_enum_values(self, sdk: dict[str, ModuleType]) -> None:
        assert [m.value for m in sdk["models"].AppState] == ["RUNNING", "STOPPED", "in-progress"]


# ---------------------------------------------------------------------------
# Service functions
# ---------------------------------------------------------------------------


class TestServices:
    def test_get_organisation(self, sdk: dict[str, ModuleType]) -> None:
        recorder = _Recorder(payload=ORGANISATION)
        org = sdk["services.organisation"].get_organisation(_client(sdk, recorder), "org_1")

        (request,) = recorder.requests
        assert request.method == "GET"
        assert request.url.path == "/v4/organisations/org_1"
        assert isinstance(org, sdk["models"].Organisation)
        assert org.name == "Acme"

    def test_list_organisations_query(self, sdk: dict[str, ModuleType]) -> None:
        recorder = _Recorder(payload=[ORGANISATION])
        client = _client(sdk, recorder)
        service = sdk["services.organisation"]

        assert len(service.list_organisations(client, limit=5)) == 1
        service.list_organisations(client)
        assert recorder.requests[0].url.params["limit"] == "5"
        assert "limit" not in recorder.requests[1].url.params

    def test_create_organisation_body(self, sdk: dict[str, ModuleType]) -> None:
        recorder = _Recorder(status=201, payload=ORGANISATION)
        body = sdk["models"].OrganisationCreate(name="Acme")
        sdk["services.organisation"].create_organisation(_client(sdk, recorder), body)

        (request,) = recorder.requests
        assert request.method == "POST"
        assert json.loads(request.content) == {"name": "Acme"}

    def test_list_body(self, sdk: dict[str, ModuleType]) -> None:
        recorder = _Recorder(payload=[{"name": "A", "value": "1"}])
        models = sdk["models"]
        result = sdk["services.configuration_provider"].update_config_provider_env(
            _client(sdk, recorder), "cfg_1", [models.EnvVar(name="A", value="1")]
        )
        (request,) = recorder.requests
        assert request.method == "PUT"
        assert json.loads(request.content) == [{"name": "A", "value": "1"}]
        assert result == [models.EnvVar(name="A", value="1")]

    def test_no_content(self, sdk: dict[str, ModuleType]) -> None:
        recorder = _Recorder(status=204)
        result = sdk["services.organisation"].delete_organisation(_client(sdk, recorder), "org_1")
        assert result is None
        assert recorder.requests[0].method == "DELETE"

    def test_error_status(self, sdk: dict[str, ModuleType]) -> None:
        recorder = _Recorder(status=404, payload={"error": "not found"})
        with pytest.raises(sdk[""].APIError) as exc_info:
            sdk["services.organisation"].get_organisation(_client(sdk, recorder), "missing")
        assert exc_info.value.status_code == 404
        assert "HTTP 404" in str(exc_info.value)

    def test_union_response(self, sdk: dict[str, ModuleType]) -> None:
        recorder = _Recorder(payload=[{"petType": "cat", "meows": True}, {"petType": "dog"}])
        pets = sdk["services.pets"].get_v4_pets(_client(sdk, recorder))
        models = sdk["models"]
        assert isinstance(pets[0], models.Cat)
        assert isinstance(pets[1], models.Dog)
        assert pets[0].meows is True

    def test_map_response(self, sdk: dict[str, ModuleType]) -> None:
        recorder = _Recorder(payload={"env": "prod"})
        labels = sdk["services.pulsar"].get_pulsar_v2(_client(sdk, recorder), "addon_1")
        assert labels == {"env": "prod"}

    def test_build_path_escapes(self, sdk: dict[str, ModuleType]) -> None:
        runtime = importlib.import_module(f"{PACKAGE}._runtime")
        path = runtime.build_path("/orgs/{id}/apps/{appId}", "o 1", "a/b")
        assert path == "/orgs/o%201/apps/a%2Fb"


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------


class TestBuilder:
    def test_chain_reaches_operation(self, sdk: dict[str, ModuleType]) -> None:
        recorder = _Recorder(payload={"id": "app_1", "ownerId": "org_1", "state": "RUNNING"})
        sdk_root = sdk["builder"].SDK(_client(sdk, recorder))

        app = sdk_root.v4().organisations().id("org_1").applications().app_id("app_1")
        result = app.get_application()

        assert recorder.requests[0].url.path == "/v4/organisations/org_1/applications/app_1"
        assert result.owner_id == "org_1"
        assert result.state is sdk["models"].AppState.RUNNING

    def test_shared_node_serves_both_operations(self, sdk: dict[str, ModuleType]) -> None:
        recorder = _Recorder(payload=["user_1"])
        node = sdk["builder"].SDK(_client(sdk, recorder)).v4().organisations().id("org_1")
        assert node.members().list_members() == ["user_1"]
        assert recorder.requests[0].url.path == "/v4/organisations/org_1/members"

    def test_query_through_builder(self, sdk: dict[str, ModuleType]) -> None:
        recorder = _Recorder(payload=[])
        organisations = sdk["builder"].SDK(_client(sdk, recorder)).v4().organisations()
        assert organisations.list_organisations(limit=2) == []
        assert recorder.requests[0].url.params["limit"] == "2"
