"""Tests for specsdk.parser.loader."""

from __future__ import annotations

import io
import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import httpx
import pytest

from specsdk.exceptions import SpecParseError
from specsdk.parser.loader import load_spec, parse_content, validate_openapi_version


# ---------------------------------------------------------------------------
# parse_content
# ---------------------------------------------------------------------------


class TestParseContent:
    """JSON/YAML detection and top-level shape checks."""

    def test_json_without_hint(self) -> None:
        assert parse_content('{"openapi": "3.0.0"}') == {"openapi": "3.0.0"}

    def test_yaml_without_hint(self) -> None:
        assert parse_content("openapi: 3.0.0\ninfo:\n  title: T\n") == {
            "openapi": "3.0.0",
            "info": {"title": "T"},
        }

    def test_json_hint_does_not_fall_back_to_yaml(self) -> None:
        with pytest.raises(SpecParseError, match="Invalid JSON"):
            parse_content("openapi: 3.0.0", hint="json")

    def test_yaml_hint_reports_yaml_error(self) -> None:
        with pytest.raises(SpecParseError, match="Invalid YAML"):
            parse_content("key: [unclosed", hint="yaml")

    def test_unparseable_reports_both_errors(self) -> None:
        with pytest.raises(SpecParseError, match="JSON or YAML"):
            parse_content("key: [unclosed")

    def test_top_level_list_rejected(self) -> None:
        with pytest.raises(SpecParseError, match="got list"):
            parse_content("[1, 2]")

    def test_empty_yaml_rejected(self) -> None:
        with pytest.raises(SpecParseError, match="empty document"):
            parse_content("", hint="yaml")


# ---------------------------------------------------------------------------
# load_spec
# ---------------------------------------------------------------------------


class TestLoadSpec:
    """Loading from files, stdin, and URLs."""

    def test_load_json_file(self, platform_path: Path) -> None:
        spec = load_spec(str(platform_path))
        assert spec["info"]["title"] == "Platform API"

    def test_load_yaml_file(self, minimal_path: Path) -> None:
        spec = load_spec(str(minimal_path))
        assert spec["openapi"] == "3.1.0"
        # Unquoted status codes parse as integers.
        assert 204 in spec["paths"]["/health"]["get"]["responses"]

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(SpecParseError, match="not found"):
            load_spec(str(tmp_path / "nope.json"))

    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.json"
        path.write_text("   \n")
        with pytest.raises(SpecParseError, match="empty"):
            load_spec(str(path))

    def test_undecodable_file(self, tmp_path: Path) -> None:
        path = tmp_path / "binary.json"
        path.write_bytes(b"\xff\xfe\x00")
        with pytest.raises(SpecParseError, match="Failed to read spec file"):
            load_spec(str(path))

    def test_unknown_suffix_tries_both(self, tmp_path: Path) -> None:
        path = tmp_path / "spec.txt"
        path.write_text("openapi: 3.0.1\n")
        assert load_spec(str(path)) == {"openapi": "3.0.1"}

    def test_stdin(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("sys.stdin", io.StringIO(json.dumps({"openapi": "3.0.0"})))
        assert load_spec("-") == {"openapi": "3.0.0"}

    def test_empty_stdin(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("sys.stdin", io.StringIO(""))
        with pytest.raises(SpecParseError, match="No input"):
            load_spec("-")

    def test_undecodable_stdin(self, monkeypatch: pytest.MonkeyPatch) -> None:
        stream = io.TextIOWrapper(io.BytesIO(b"\xff\xfe\x00"), encoding="utf-8")
        monkeypatch.setattr("sys.stdin", stream)
        with pytest.raises(SpecParseError, match="Failed to read from stdin"):
            load_spec("-")

    def test_url_uses_content_type(self) -> None:
        response = MagicMock()
        response.text = "openapi: 3.0.0\n"
        response.headers = {"content-type": "application/yaml"}
        with patch("specsdk.parser.loader.httpx.get", return_value=response) as get:
            spec = load_spec("https://example.com/spec")
        get.assert_called_once()
        assert spec == {"openapi": "3.0.0"}

    def test_url_http_error(self) -> None:
        request = httpx.Request("GET", "https://example.com/openapi.json")
        error_response = httpx.Response(404, request=request)
        response = MagicMock()
        response.raise_for_status.side_effect = httpx.HTTPStatusError(
            "not found", request=request, response=error_response
        )
        with patch("specsdk.parser.loader.httpx.get", return_value=response):
            with pytest.raises(SpecParseError, match="HTTP 404"):
                load_spec("https://example.com/openapi.json")

    def test_url_connection_error(self) -> None:
        with patch(
            "specsdk.parser.loader.httpx.get",
            side_effect=httpx.ConnectError("refused"),
        ):
            with pytest.raises(SpecParseError, match="Failed to fetch"):
                load_spec("https://example.com/openapi.json")


# ---------------------------------------------------------------------------
# validate_openapi_version
# ---------------------------------------------------------------------------


class TestValidateOpenAPIVersion:
    """Accepts 3.0/3.1, rejects Swagger 2 and missing versions."""

    @pytest.mark.parametrize("version", ["3.0.0", "3.0.3", "3.1.0"])
    def test_supported(self, version: str) -> None:
        assert validate_openapi_version({"openapi": version}) == version

    def test_swagger_rejected(self) -> None:
        with pytest.raises(SpecParseError, match="Swagger"):
            validate_openapi_version({"swagger": "2.0"})

    def test_missing_version(self) -> None:
        with pytest.raises(SpecParseError):
            validate_openapi_version({"info": {}})

    def test_unsupported_major(self) -> None:
        with pytest.raises(SpecParseError):
            validate_openapi_version({"openapi": "4.0.0"})
