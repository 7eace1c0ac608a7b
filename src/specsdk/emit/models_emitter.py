"""Emit ``models.py``: one declaration per classified schema.

Declarations are grouped so every module-level name exists before it is
evaluated:

1. enums (``class Status(str, enum.Enum)``),
2. scalar aliases (``OrgId = str``),
3. records (pydantic ``BaseModel`` classes; their annotations are lazy),
4. maps and unions (``Tags = dict[str, Tag]``, ``Pet = Union[Cat, Dog]``),
   ordered so a map or union is declared after the ones it refers to,
5. ``model_rebuild()`` for every record, once all names exist.
"""

from __future__ import annotations

import logging
from typing import Any

from specsdk.emit.render import create_jinja_env, header, render
from specsdk.models import Artifact, FieldSpec, ModelKind, ModelSpec, SpecIR

logger = logging.getLogger(__name__)

MODELS_FILE = "models.py"

_ENUM_BASES = {
    "str": "str, enum.Enum",
    "int": "int, enum.Enum",
    "float": "float, enum.Enum",
    "bool": "enum.Enum",
}


def emit_models(ir: SpecIR, package: str) -> list[Artifact]:
    """Render the models module for *ir*.

    Args:
        ir: The intermediate representation.
        package: Import name of the generated package.

    Returns:
        A single artifact, ``models.py``.
    """
    by_kind: dict[ModelKind, list[ModelSpec]] = {kind: [] for kind in ModelKind}
    for model in ir.models:
        by_kind[model.kind].append(model)

    content = render(
        create_jinja_env(),
        "models.py.j2",
        header=header("models", ir),
        title=ir.info.title,
        package=package,
        enums=[_enum_context(model) for model in by_kind[ModelKind.ENUM]],
        aliases=[_alias_context(model) for model in by_kind[ModelKind.ALIAS]],
        records=[_record_context(model) for model in by_kind[ModelKind.RECORD]],
        type_aliases=[
            _alias_context(model)
            for model in _ordered_type_aliases(by_kind[ModelKind.MAP] + by_kind[ModelKind.UNION])
        ],
    )
    return [Artifact(path=MODELS_FILE, content=content)]


def _doc(model: ModelSpec) -> str:
    parts = [model.description] if model.description else []
    if model.implements:
        parts.append("Member of: " + ", ".join(model.implements) + ".")
    return "\n\n".join(parts)


def _enum_context(model: ModelSpec) -> dict[str, Any]:
    return {
        "name": model.name,
        "bases": _ENUM_BASES.get(model.enum_base or "str", "str, enum.Enum"),
        "doc": _doc(model),
        "members": model.enum_members,
    }


def _alias_context(model: ModelSpec) -> dict[str, Any]:
    if model.kind == ModelKind.UNION:
        members = ", ".join(member.annotation() for member in model.union_members)
        value = f"Union[{members}]"
    elif model.kind == ModelKind.MAP:
        value = f"dict[str, {model.map_value.annotation() if model.map_value else 'Any'}]"
    else:
        value = model.alias_type.annotation() if model.alias_type else "Any"
    return {"name": model.name, "value": value, "doc": _doc(model)}


def _record_context(model: ModelSpec) -> dict[str, Any]:
    config = ["populate_by_name=True", "protected_namespaces=()"]
    if model.allow_extra:
        config.append('extra="allow"')
    return {
        "name": model.name,
        "doc": _doc(model),
        "config": ", ".join(config),
        "fields": [_field_context(field) for field in model.fields],
    }


def _field_context(field: FieldSpec) -> dict[str, Any]:
    """Compute the annotation and ``Field(...)`` call of one record field."""
    if field.const is not None:
        annotation = f"Literal[{field.const!r}]"
        arguments = [f"default={field.const!r}"]
    elif field.is_array:
        annotation = field.type.annotation()
        arguments = [] if field.required else ["default_factory=list"]
    elif field.nullable:
        annotation = f"Optional[{field.type.annotation()}]"
        arguments = [] if field.required else ["default=None"]
    else:
        annotation = field.type.annotation()
        arguments = []

    arguments.append(f"alias={field.json_name!r}")
    if field.description:
        arguments.append(f"description={' '.join(field.description.split())!r}")
    return {
        "name": field.name,
        "annotation": annotation,
        "value": f"Field({', '.join(arguments)})",
    }


def _ordered_type_aliases(models: list[ModelSpec]) -> list[ModelSpec]:
    """Order maps and unions so each follows the ones it references.

    Ties are broken by name. Models caught in a reference cycle are appended
    in name order with a warning; such a module fails to import.
    """
    by_name = {model.name: model for model in models}
    pending = {
        model.name: model.referenced_models() & by_name.keys() - {model.name}
        for model in models
    }

    ordered: list[ModelSpec] = []
    while pending:
        ready = sorted(name for name, deps in pending.items() if not deps)
        if not ready:
            cycle = sorted(pending)
            logger.warning("Reference cycle between type aliases: %s", ", ".join(cycle))
            ready = cycle
        for name in ready:
            ordered.append(by_name[name])
            del pending[name]
        for deps in pending.values():
            deps.difference_update(ready)
    return ordered
