"""Extract canonical operations from an OpenAPI document.

This module walks the ``paths`` object and builds one
:class:`~specsdk.models.Operation` per path and HTTP method. Paths are
visited in sorted order and methods in the fixed order DELETE, GET, PATCH,
POST, PUT, so the resulting list is identical on every run.

For each operation:

* **Parameters** -- path-level parameters provide defaults and
  operation-level parameters override them when they share the same
  ``name`` and ``in`` values. Path parameters are ordered by their position
  in the path template; query parameters keep a simplified type.
* **Request body** -- the first media type whose schema is a ``$ref`` (or an
  array of ``$ref`` items) sets the body type; inline bodies are not
  modelled.
* **Response** -- status codes 200, 201, 202, 204 are checked in that order and
  the first present one wins. No content means the empty-body type.

Parameter, request-body, and response objects may themselves be ``$ref``
pointers into ``components``; those are dereferenced here.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Optional

from specsdk.models import (
    HTTPMethod,
    Operation,
    Parameter,
    ParameterLocation,
    TypeKind,
    TypeRef,
)
from specsdk.naming.casing import python_identifier, to_snake_case, unique_name
from specsdk.parser.resolver import resolve_object
from specsdk.schema.typemap import TypeMapper

logger = logging.getLogger(__name__)

SUCCESS_STATUS_CODES = ("200", "201", "202", "204")
"""Success codes checked for the response type, in priority order."""

_PLACEHOLDER_RE = re.compile(r"\{([^{}]+)\}")

# Argument names the generated operation functions use themselves.
_RESERVED_ARGUMENTS = frozenset(
    {"body", "build_path", "client", "date", "datetime", "models", "parse_response", "self"}
)


def extract_operations(
    spec: dict[str, Any],
    mapper: TypeMapper,
    service_extension: str = "x-service",
) -> list[Operation]:
    """Extract every operation of *spec* in deterministic order.

    Args:
        spec: The raw OpenAPI document, as returned by
            :func:`~specsdk.parser.loader.load_spec`.
        mapper: Type mapper shared with the schema modeler.
        service_extension: Vendor extension key naming the owning service.

    Returns:
        Operations sorted by path, then by method.

    Raises:
        SpecParseError: If a parameter, body, or response ``$ref`` cannot be
            resolved.

    Example::

        raw = load_spec("openapi.yaml")
        for op in extract_operations(raw, TypeMapper()):
            print(op.route_key)
    """
    paths = spec.get("paths") or {}
    if not isinstance(paths, dict):
        logger.warning("Ignoring 'paths': expected a mapping")
        return []

    operations: list[Operation] = []
    for path in sorted(paths):
        path_item = resolve_object(paths[path], spec)
        if not isinstance(path_item, dict):
            logger.warning("Skipping path %s: expected a mapping", path)
            continue

        path_level_params = path_item.get("parameters") or []
        for method in HTTPMethod:
            raw_operation = path_item.get(method.value)
            if not isinstance(raw_operation, dict):
                continue
            operations.append(
                _extract_operation(
                    spec, mapper, path, method, raw_operation, path_level_params, service_extension
                )
            )

    return operations


def _extract_operation(
    spec: dict[str, Any],
    mapper: TypeMapper,
    path: str,
    method: HTTPMethod,
    raw: dict[str, Any],
    path_level_params: list[Any],
    service_extension: str,
) -> Operation:
    params = _merge_parameters(
        [resolve_object(p, spec) for p in path_level_params],
        [resolve_object(p, spec) for p in raw.get("parameters") or []],
    )
    taken = set(_RESERVED_ARGUMENTS)
    path_params = _path_parameters(path, params, mapper, taken)
    query_params = _query_parameters(params, mapper, taken)

    tags = raw.get("tags") or []
    x_service = raw.get(service_extension)
    operation_id = raw.get("operationId")
    return Operation(
        operation_id=operation_id if isinstance(operation_id, str) and operation_id else None,
        method=method,
        path=path,
        path_params=path_params,
        query_params=query_params,
        has_query_params=bool(query_params),
        request_body=_request_body_type(spec, mapper, raw.get("requestBody")),
        response=_response_type(spec, mapper, raw.get("responses")),
        x_service=x_service if isinstance(x_service, str) and x_service else None,
        tags=[str(tag) for tag in tags if isinstance(tag, (str, int))],
        summary=raw.get("summary"),
        description=raw.get("description"),
        deprecated=bool(raw.get("deprecated", False)),
    )


def _merge_parameters(
    path_params: list[Any],
    op_params: list[Any],
) -> list[dict[str, Any]]:
    """Merge path-level and operation-level parameters.

    Operation-level parameters override path-level parameters with the same
    name and location (``in`` field).

    Args:
        path_params: Parameters defined at the path level.
        op_params: Parameters defined at the operation level.

    Returns:
        A merged list of parameter dicts, path-level ones first.
    """
    op_params = [p for p in op_params if isinstance(p, dict)]
    overridden = {(p.get("name", ""), p.get("in", "")) for p in op_params}

    merged = [
        p
        for p in path_params
        if isinstance(p, dict) and (p.get("name", ""), p.get("in", "")) not in overridden
    ]
    merged.extend(op_params)
    return merged


def _argument_name(name: str, mapper: TypeMapper, taken: set[str]) -> str:
    return unique_name(
        python_identifier(to_snake_case(name, mapper.brand_names) or name),
        taken,
    )


def _path_parameters(
    path: str,
    params: list[dict[str, Any]],
    mapper: TypeMapper,
    taken: set[str],
) -> list[Parameter]:
    """Build path parameters in template order.

    Every ``{placeholder}`` yields one parameter, even when a name repeats
    (``/x/{id}/y/{id}``) or has no declaration (typed ``str``).
    """
    declared = {
        p.get("name"): p
        for p in params
        if p.get("in") == ParameterLocation.PATH.value
    }

    result: list[Parameter] = []
    for name in _PLACEHOLDER_RE.findall(path):
        declaration = declared.get(name, {})
        type_ = mapper.map_schema(declaration.get("schema"))
        if type_.kind != TypeKind.PRIMITIVE:
            type_ = TypeRef.primitive("str")
        result.append(
            Parameter(
                name=name,
                python_name=_argument_name(name, mapper, taken),
                location=ParameterLocation.PATH,
                type=type_,
                required=True,
                description=declaration.get("description"),
            )
        )
    return result


def _query_parameters(
    params: list[dict[str, Any]],
    mapper: TypeMapper,
    taken: set[str],
) -> list[Parameter]:
    """Build the simplified query parameter list.

    Primitive and list-of-primitive types are kept; anything else becomes
    ``str``.
    """
    result: list[Parameter] = []
    for param in params:
        name = param.get("name")
        if param.get("in") != ParameterLocation.QUERY.value or not isinstance(name, str):
            continue
        type_ = mapper.map_schema(param.get("schema"))
        if not _is_simple(type_):
            type_ = TypeRef.primitive("str")
        result.append(
            Parameter(
                name=name,
                python_name=_argument_name(name, mapper, taken),
                location=ParameterLocation.QUERY,
                type=type_,
                required=bool(param.get("required", False)),
                description=param.get("description"),
            )
        )
    return result


def _is_simple(type_: TypeRef) -> bool:
    if type_.kind == TypeKind.PRIMITIVE:
        return True
    return (
        type_.kind == TypeKind.ARRAY
        and type_.item is not None
        and type_.item.kind == TypeKind.PRIMITIVE
    )


def _request_body_type(
    spec: dict[str, Any], mapper: TypeMapper, body: Any
) -> Optional[TypeRef]:
    """Return the body type from the first media type carrying a model reference."""
    body = resolve_object(body, spec)
    if not isinstance(body, dict):
        return None
    content = body.get("content")
    if not isinstance(content, dict):
        return None

    for media in content.values():
        schema = media.get("schema") if isinstance(media, dict) else None
        if not isinstance(schema, dict):
            continue
        if isinstance(schema.get("$ref"), str):
            return mapper.ref(schema["$ref"])
        items = schema.get("items")
        if (
            schema.get("type") == "array"
            and isinstance(items, dict)
            and isinstance(items.get("$ref"), str)
        ):
            return TypeRef.array(mapper.ref(items["$ref"]))
    return None


def _response_type(spec: dict[str, Any], mapper: TypeMapper, responses: Any) -> TypeRef:
    """Return the response type of the first declared success status.

    No content, no media type, or a media type without a schema maps to the
    empty-body type. No success status at all maps to ``Any``.
    """
    if not isinstance(responses, dict):
        return TypeRef.any()
    # YAML parses unquoted status codes as integers.
    by_code = {str(code): value for code, value in responses.items()}

    for code in SUCCESS_STATUS_CODES:
        if code not in by_code:
            continue
        response = resolve_object(by_code[code], spec)
        content = response.get("content") if isinstance(response, dict) else None
        if not isinstance(content, dict) or not content:
            return TypeRef.nothing()

        media = next(iter(content.values()))
        schema = media.get("schema") if isinstance(media, dict) else None
        if not isinstance(schema, dict):
            return TypeRef.nothing()
        return mapper.map_schema(schema)

    return TypeRef.any()
