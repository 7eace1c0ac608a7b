"""Load OpenAPI specifications from a URL, local file, or stdin.

This module handles all I/O for fetching raw OpenAPI documents and converting
them into Python dictionaries. Local files are parsed according to their
extension (``.json`` or ``.yaml``/``.yml``); anything else, including stdin,
is tried as JSON first and then as YAML.

The public functions are:

* :func:`load_spec` -- Load and parse a spec from any supported source.
* :func:`parse_content` -- Parse a JSON or YAML string into a dict. Also
  used for naming tables files.
* :func:`validate_openapi_version` -- Check and return the ``openapi`` version
  string, rejecting Swagger 2.x and unsupported versions.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any

import httpx
import yaml

from specsdk.exceptions import SpecParseError

logger = logging.getLogger(__name__)


def load_spec(source: str) -> dict[str, Any]:
    """Load an OpenAPI spec from URL, file path, or stdin ('-').

    Args:
        source: A URL (http/https), file path, or '-' for stdin.

    Returns:
        The parsed spec as a dictionary.

    Raises:
        SpecParseError: If the source cannot be loaded or parsed.
    """
    if source == "-":
        return _load_from_stdin()
    elif source.startswith(("http://", "https://")):
        return _load_from_url(source)
    else:
        return _load_from_file(source)


def _load_from_stdin() -> dict[str, Any]:
    """Read spec from stdin.

    Raises:
        SpecParseError: If stdin is empty or content cannot be parsed.
    """
    try:
        content = sys.stdin.read()
    except (OSError, UnicodeDecodeError) as exc:
        raise SpecParseError(f"Failed to read from stdin: {exc}") from exc

    if not content.strip():
        raise SpecParseError("No input received from stdin")

    return parse_content(content)


def _load_from_url(url: str) -> dict[str, Any]:
    """Fetch spec from URL. Supports JSON and YAML responses.

    Args:
        url: The HTTP(S) URL to fetch.

    Returns:
        The parsed spec dictionary.

    Raises:
        SpecParseError: If the URL cannot be fetched or content cannot be parsed.
    """
    logger.debug("Fetching spec from %s", url)
    try:
        response = httpx.get(url, timeout=30.0, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise SpecParseError(
            f"HTTP {exc.response.status_code} fetching spec from {url}"
        ) from exc
    except httpx.RequestError as exc:
        raise SpecParseError(f"Failed to fetch spec from {url}: {exc}") from exc

    # The URL path extension wins over the content type.
    hint = _hint_from_suffix(Path(httpx.URL(url).path).suffix)
    if not hint:
        content_type = response.headers.get("content-type", "")
        if "json" in content_type:
            hint = "json"
        elif "yaml" in content_type or "yml" in content_type:
            hint = "yaml"

    return parse_content(response.text, hint=hint)


def _load_from_file(path: str) -> dict[str, Any]:
    """Load spec from local file.

    Args:
        path: Path to the local file.

    Returns:
        The parsed spec dictionary.

    Raises:
        SpecParseError: If the file cannot be read or content cannot be parsed.
    """
    file_path = Path(path)
    if not file_path.is_file():
        raise SpecParseError(f"Spec file not found: {path}")

    try:
        content = file_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise SpecParseError(f"Failed to read spec file {path}: {exc}") from exc

    if not content.strip():
        raise SpecParseError(f"Spec file is empty: {path}")

    return parse_content(content, hint=_hint_from_suffix(file_path.suffix))


def _hint_from_suffix(suffix: str) -> str:
    suffix = suffix.lower()
    if suffix == ".json":
        return "json"
    if suffix in (".yaml", ".yml"):
        return "yaml"
    return ""


def parse_content(content: str, hint: str = "") -> dict[str, Any]:
    """Parse content as JSON or YAML.

    With a ``json`` or ``yaml`` hint only that format is attempted. Without
    a hint JSON is tried first, then YAML.

    Args:
        content: The raw string content.
        hint: Optional format hint ('json' or 'yaml').

    Returns:
        The parsed dictionary.

    Raises:
        SpecParseError: If the content cannot be parsed, or does not hold a
            mapping at the top level.
    """
    json_error: Exception | None = None

    if hint != "yaml":
        try:
            result = json.loads(content)
        except json.JSONDecodeError as exc:
            if hint == "json":
                raise SpecParseError(f"Invalid JSON: {exc}") from exc
            json_error = exc
        else:
            return _require_mapping(result)

    try:
        result = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        if hint == "yaml":
            raise SpecParseError(f"Invalid YAML: {exc}") from exc
        raise SpecParseError(
            "Failed to parse spec as JSON or YAML"
            f"\n  JSON error: {json_error}"
            f"\n  YAML error: {exc}"
        ) from exc

    return _require_mapping(result)


def _require_mapping(result: Any) -> dict[str, Any]:
    if not isinstance(result, dict):
        got = type(result).__name__ if result is not None else "empty document"
        raise SpecParseError(f"Spec must be a JSON/YAML object (got {got})")
    return result


def validate_openapi_version(spec: dict[str, Any]) -> str:
    """Validate and return the OpenAPI version string.

    Supports OpenAPI 3.0.x and 3.1.x. Raises SpecParseError for Swagger 2.x,
    missing version fields, or unsupported versions.

    Args:
        spec: The parsed spec dictionary.

    Returns:
        The OpenAPI version string (e.g., '3.0.3', '3.1.0').

    Raises:
        SpecParseError: If the version is missing, unsupported, or indicates Swagger 2.x.
    """
    if "swagger" in spec:
        raise SpecParseError(
            f"Swagger {spec['swagger']} is not supported. "
            "Only OpenAPI 3.0.x and 3.1.x are supported. "
            "Consider converting with https://converter.swagger.io"
        )

    openapi_version = spec.get("openapi")
    if openapi_version is None:
        raise SpecParseError(
            "Missing 'openapi' field. Is this an OpenAPI 3.x document?"
        )

    version_str = str(openapi_version)
    if version_str.startswith("3."):
        return version_str

    raise SpecParseError(
        f"Unsupported OpenAPI version: {version_str}. "
        "Only OpenAPI 3.0.x and 3.1.x are supported."
    )
