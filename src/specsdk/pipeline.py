"""Build the intermediate representation shared by all generator passes.

:func:`build_ir` is the one entry point every pass calls. Given the same
document and the same :class:`~specsdk.models.NamingTables` it returns the
same :class:`~specsdk.models.SpecIR`, which is how the ``models``,
``operations``, and ``builder`` passes agree on names without talking to each
other.

Steps:

1. Validate the OpenAPI version.
2. Classify ``components.schemas`` with the
   :class:`~specsdk.schema.SchemaModeler`.
3. Extract operations with :func:`~specsdk.parser.extract_operations`.
4. Resolve identifiers and packages with the
   :class:`~specsdk.naming.NamePolicy`.
5. Replace references to models that were skipped with ``Any``, so no pass
   emits a name the models pass never declares.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from specsdk.models import (
    APIInfo,
    FieldSpec,
    ModelKind,
    ModelSpec,
    NamingTables,
    ResolvedOperation,
    SpecIR,
    TypeKind,
    TypeRef,
)
from specsdk.naming import NamePolicy
from specsdk.parser import extract_operations, load_spec, validate_openapi_version
from specsdk.schema import SchemaModeler, TypeMapper

logger = logging.getLogger(__name__)


def build_ir(raw: dict[str, Any], tables: NamingTables) -> SpecIR:
    """Build the full IR for a loaded document.

    Args:
        raw: The document as returned by
            :func:`~specsdk.parser.loader.load_spec`.
        tables: The naming tables shared by every pass.

    Returns:
        The deterministic :class:`~specsdk.models.SpecIR`.

    Raises:
        SpecParseError: If the document is not OpenAPI 3.x or a parameter,
            body, or response reference cannot be resolved.
    """
    version = validate_openapi_version(raw)
    mapper = TypeMapper(tables.brand_names)

    components = raw.get("components")
    schemas = components.get("schemas") if isinstance(components, dict) else None
    models = _drop_empty_unions(SchemaModeler(mapper).build_models(schemas))

    operations = extract_operations(raw, mapper, tables.service_extension)
    resolved, excluded = NamePolicy(tables).resolve_all(operations)

    known = {model.name for model in models}
    models = [_prune_model(model, known) for model in models]
    resolved = [_prune_operation(op, known) for op in resolved]

    logger.debug(
        "Built IR: %d models, %d operations, %d excluded",
        len(models),
        len(resolved),
        len(excluded),
    )
    return SpecIR(
        openapi_version=version,
        info=_extract_info(raw),
        models=models,
        operations=resolved,
        excluded=excluded,
        tables_version=tables.version,
        tables_fingerprint=tables.fingerprint(),
    )


def load_ir(source: str, tables: NamingTables) -> SpecIR:
    """Load a document from *source* and build its IR."""
    return build_ir(load_spec(source), tables)


def _extract_info(raw: dict[str, Any]) -> APIInfo:
    info = raw.get("info")
    if not isinstance(info, dict):
        info = {}
    description = info.get("description")
    return APIInfo(
        title=str(info.get("title") or "API"),
        version=str(info.get("version") or ""),
        description=description if isinstance(description, str) else None,
        base_url=_base_url(raw.get("servers")),
    )


def _base_url(servers: Any) -> str:
    """Return the first server URL with its variables set to their defaults."""
    if not isinstance(servers, list) or not servers or not isinstance(servers[0], dict):
        return ""
    url = servers[0].get("url")
    if not isinstance(url, str):
        return ""
    variables = servers[0].get("variables")
    if isinstance(variables, dict):
        for name, variable in variables.items():
            if isinstance(variable, dict) and "default" in variable:
                url = url.replace("{" + str(name) + "}", str(variable["default"]))
    return url.rstrip("/")


# ---------------------------------------------------------------------------
# Dangling reference pruning
# ---------------------------------------------------------------------------


def _drop_empty_unions(models: list[ModelSpec]) -> list[ModelSpec]:
    """Drop unions whose every model member is missing, until none are left.

    Dropping one union can leave another union empty, hence the loop.
    """
    while True:
        known = {model.name for model in models}
        empty = {
            model.name
            for model in models
            if model.kind == ModelKind.UNION
            and not any(_resolves(member, known) for member in model.union_members)
        }
        if not empty:
            return models
        for name in sorted(empty):
            logger.warning("Skipping union %s: none of its members were modelled", name)
        models = [model for model in models if model.name not in empty]


def _resolves(type_ref: TypeRef, known: set[str]) -> bool:
    return type_ref.kind != TypeKind.MODEL or type_ref.name in known


def _prune(type_ref: Optional[TypeRef], known: set[str]) -> Optional[TypeRef]:
    """Return *type_ref* with references to unknown models replaced by ``Any``."""
    if type_ref is None:
        return None
    if type_ref.kind == TypeKind.MODEL and type_ref.name not in known:
        logger.debug("Replacing reference to unknown model %s with Any", type_ref.name)
        return TypeRef.any()
    if type_ref.item is not None:
        item = _prune(type_ref.item, known)
        if item != type_ref.item:
            return type_ref.model_copy(update={"item": item})
    return type_ref


def _prune_field(field: FieldSpec, known: set[str]) -> FieldSpec:
    pruned = _prune(field.type, known)
    return field if pruned == field.type else field.model_copy(update={"type": pruned})


def _prune_model(model: ModelSpec, known: set[str]) -> ModelSpec:
    implements = [name for name in model.implements if name in known]
    if model.referenced_models() <= known and implements == model.implements:
        return model
    return model.model_copy(
        update={
            "implements": implements,
            "fields": [_prune_field(field, known) for field in model.fields],
            "alias_type": _prune(model.alias_type, known),
            "map_value": _prune(model.map_value, known),
            "union_members": [m for m in model.union_members if _resolves(m, known)],
        }
    )


def _prune_operation(resolved: ResolvedOperation, known: set[str]) -> ResolvedOperation:
    operation = resolved.operation
    request_body = _prune(operation.request_body, known)
    response = _prune(operation.response, known)
    if request_body == operation.request_body and response == operation.response:
        return resolved
    return resolved.model_copy(
        update={
            "operation": operation.model_copy(
                update={"request_body": request_body, "response": response}
            )
        }
    )
