"""Emit ``builder.py``: the fluent path builders.

The path tree and the class plan come from :mod:`specsdk.generator`; this
module only turns the plan into template context. Builder methods delegate
to the functions in ``services/<package>.py``, so the builder pass and the
operations pass must see the same IR.
"""

from __future__ import annotations

from typing import Any, Optional

from specsdk.emit.operations_emitter import operation_doc, query_parameter
from specsdk.emit.render import MODELS_QUALIFIER, create_jinja_env, header, render
from specsdk.generator import build_path_tree, plan_builders
from specsdk.models import Artifact, BuilderCall, BuilderClass, PathTree, ResolvedOperation, SpecIR

BUILDER_FILE = "builder.py"


def emit_builder(
    ir: SpecIR, package: str, brand_names: Optional[list[str]] = None
) -> list[Artifact]:
    """Render the builder module for *ir*.

    Args:
        ir: The intermediate representation.
        package: Import name of the generated package.
        brand_names: Names kept verbatim when naming builder classes and
            methods.

    Returns:
        A single artifact, ``builder.py``.
    """
    tree = build_path_tree(ir.operations)
    classes = plan_builders(tree, ir.operations, brand_names or ())

    content = render(
        create_jinja_env(),
        "builder.py.j2",
        header=header("builder", ir),
        title=ir.info.title,
        package=package,
        example=_example(classes, tree, ir.operations),
        packages=ir.packages(),
        classes=[_class_context(cls, ir.operations) for cls in classes],
    )
    return [Artifact(path=BUILDER_FILE, content=content)]


def _class_context(cls: BuilderClass, operations: list[ResolvedOperation]) -> dict[str, Any]:
    receivers = ["self._client"] + [f"self._{field.name}" for field in cls.fields]

    accessors = []
    for accessor in cls.accessors:
        parameters = ["self"]
        arguments = list(receivers)
        if accessor.argument is not None:
            parameters.append(f"{accessor.argument.name}: {accessor.argument.type.annotation()}")
            arguments.append(accessor.argument.name)
        accessors.append(
            {
                "name": accessor.method_name,
                "parameters": parameters,
                "target": accessor.target,
                "arguments": arguments,
            }
        )

    return {
        "name": cls.class_name,
        "path": cls.path,
        "fields": [
            {"name": field.name, "annotation": field.type.annotation()} for field in cls.fields
        ],
        "accessors": accessors,
        "calls": [_call_context(call, operations[call.operation]) for call in cls.calls],
    }


def _call_context(call: BuilderCall, resolved: ResolvedOperation) -> dict[str, Any]:
    operation = resolved.operation
    local = {param.name for param in call.parameters}

    parameters = ["self"]
    parameters.extend(f"{param.name}: {param.type.annotation()}" for param in call.parameters)
    arguments = ["self._client"]
    arguments.extend(name if name in local else f"self._{name}" for name in call.arguments)

    if operation.request_body is not None:
        parameters.append(f"body: {operation.request_body.annotation(MODELS_QUALIFIER)}")
        arguments.append("body")
    if operation.query_params:
        parameters.append("*")
        parameters.extend(query_parameter(param) for param in operation.query_params)
        arguments.extend(
            f"{param.python_name}={param.python_name}" for param in operation.query_params
        )

    return {
        "name": call.method_name,
        "parameters": parameters,
        "returns": operation.response.annotation(MODELS_QUALIFIER),
        "doc": operation_doc(resolved),
        "package": resolved.package,
        "function": resolved.function_name,
        "arguments": arguments,
    }


def _example(
    classes: list[BuilderClass], tree: PathTree, operations: list[ResolvedOperation]
) -> str:
    """Return a sample call chain for the module docstring, or ``""``."""
    by_node = {cls.node: cls for cls in classes}
    target = next(
        (cls for cls in classes if cls.calls and tree.nodes[cls.node].parent is not None), None
    )
    if target is None:
        return ""

    chain = []
    for node in tree.lineage(tree.nodes[target.node]):
        parent = by_node[node.parent]
        accessor = next(a for a in parent.accessors if a.target == by_node[node.index].class_name)
        chain.append(f"{accessor.method_name}({'...' if accessor.argument else ''})")

    call = target.calls[0]
    operation = operations[call.operation].operation
    takes_arguments = bool(call.parameters or operation.request_body or operation.query_params)
    chain.append(f"{call.method_name}({'...' if takes_arguments else ''})")
    return ".".join(chain)
