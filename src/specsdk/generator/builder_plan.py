"""Plan the builder classes for a path tree.

Every :class:`~specsdk.models.PathNode` becomes one builder class. The root
becomes :data:`ROOT_CLASS_NAME`; every other class is named after its
parent's name plus the PascalCase segment (``V4OrganisationsOwnerIdBuilder``).

Path parameters are captured as fields and threaded down the chain: a
child receives all of its parent's fields plus, for a parameter segment, one
new field. When the new parameter's name collides with a field captured
higher up (``/x/{id}/y/{id}``), the new field gets a fresh name (``id_2``) so
both values reach the operation.
"""

from __future__ import annotations

from typing import Iterable, Sequence

from specsdk.generator.path_tree import count_placeholders, is_param_segment, split_path
from specsdk.models import (
    BuilderAccessor,
    BuilderCall,
    BuilderClass,
    BuilderField,
    PathTree,
    ResolvedOperation,
)
from specsdk.naming.casing import (
    python_identifier,
    to_pascal_case,
    to_snake_case,
    unique_name,
)

ROOT_CLASS_NAME = "SDK"
"""Name of the builder class for the synthetic root."""

_CLASS_SUFFIX = "Builder"
_RESERVED_FIELDS = frozenset({"client", "self"})
_RESERVED_ARGUMENTS = frozenset({"body", "client", "self"})
_RESERVED_CLASS_NAMES = frozenset({ROOT_CLASS_NAME, "Any", "Client", "Optional"})


def plan_builders(
    tree: PathTree,
    operations: Sequence[ResolvedOperation],
    brand_names: Iterable[str] = (),
) -> list[BuilderClass]:
    """Plan one builder class per tree node.

    Args:
        tree: The path tree built from *operations*.
        operations: The resolved operations the tree indexes into.
        brand_names: Names kept verbatim by the casing transforms.

    Returns:
        Builder classes in depth-first, sorted-key order, root first.
    """
    brand_names = list(brand_names)
    class_names: set[str] = set(_RESERVED_CLASS_NAMES)
    pending: dict[int, tuple[str, list[BuilderField], str]] = {
        tree.root.index: (ROOT_CLASS_NAME, [], "/")
    }
    planned: list[BuilderClass] = []

    for node in tree.walk():
        class_name, fields, path = pending.pop(node.index)
        prefix = "" if node.parent is None else class_name[: -len(_CLASS_SUFFIX)]
        method_names: set[str] = set()

        accessors: list[BuilderAccessor] = []
        for child in tree.children(node):
            word = child.param.name if child.param is not None else child.segment
            child_class = _unique_class_name(
                prefix + to_pascal_case(word, brand_names), class_names
            )

            argument = None
            child_fields = fields
            if child.param is not None:
                taken = {field.name for field in fields} | _RESERVED_FIELDS
                argument = BuilderField(
                    name=unique_name(_snake_identifier(word, brand_names), taken),
                    type=child.param.type,
                )
                child_fields = fields + [argument]

            accessors.append(
                BuilderAccessor(
                    method_name=unique_name(_snake_identifier(word, brand_names), method_names),
                    target=child_class,
                    argument=argument,
                )
            )
            pending[child.index] = (
                child_class,
                child_fields,
                path.rstrip("/") + "/" + child.segment,
            )

        calls = [
            _plan_call(op_index, operations[op_index], fields, method_names)
            for op_index in node.operations
        ]

        planned.append(
            BuilderClass(
                node=node.index,
                class_name=class_name,
                path=path,
                fields=fields,
                accessors=accessors,
                calls=calls,
            )
        )

    return planned


def _plan_call(
    op_index: int,
    resolved: ResolvedOperation,
    fields: list[BuilderField],
    method_names: set[str],
) -> BuilderCall:
    """Map each path placeholder of the operation to a field or a call parameter."""
    operation = resolved.operation
    captured = iter(fields)
    params = iter(operation.path_params)
    taken = (
        {param.python_name for param in operation.query_params}
        | {field.name for field in fields}
        | _RESERVED_ARGUMENTS
    )

    arguments: list[str] = []
    parameters: list[BuilderField] = []
    for segment in split_path(operation.path):
        for _ in range(count_placeholders(segment)):
            param = next(params)
            if is_param_segment(segment):
                arguments.append(next(captured).name)
                continue
            extra = BuilderField(name=unique_name(param.python_name, taken), type=param.type)
            parameters.append(extra)
            arguments.append(extra.name)

    return BuilderCall(
        method_name=unique_name(resolved.function_name, method_names),
        operation=op_index,
        arguments=arguments,
        parameters=parameters,
    )


def _snake_identifier(word: str, brand_names: Sequence[str]) -> str:
    return python_identifier(to_snake_case(word, brand_names))


def _unique_class_name(stem: str, taken: set[str]) -> str:
    stem = stem or "Segment"
    name = f"{stem}{_CLASS_SUFFIX}"
    counter = 2
    while name in taken:
        name = f"{stem}{counter}{_CLASS_SUFFIX}"
        counter += 1
    taken.add(name)
    return name
