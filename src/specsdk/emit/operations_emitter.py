"""Emit the HTTP runtime and one module of operation functions per package.

Artifacts:

* ``__init__.py`` -- re-exports :class:`Client` and :class:`APIError`.
* ``_runtime.py`` -- the httpx-based client, ``build_path``, and
  ``parse_response``.
* ``services/__init__.py`` and ``services/<package>.py`` -- one function per
  operation, named by the name policy.

A generated function takes the client, the path parameters in template
order, the request body (when the operation declares one), and the query
parameters as keyword-only arguments.
"""

from __future__ import annotations

from typing import Any

from specsdk.emit.render import MODELS_QUALIFIER, create_jinja_env, header, render, type_expression
from specsdk.models import Artifact, Parameter, ResolvedOperation, SpecIR

SERVICES_DIR = "services"


def emit_operations(ir: SpecIR, package: str) -> list[Artifact]:
    """Render the runtime and every service module for *ir*.

    Args:
        ir: The intermediate representation.
        package: Import name of the generated package.

    Returns:
        Artifacts in a stable order: package init, runtime, services init,
        then one module per package in sorted order.
    """
    env = create_jinja_env()
    file_header = header("operations", ir)
    packages = ir.packages()

    artifacts = [
        Artifact(
            path="__init__.py",
            content=render(
                env, "package_init.py.j2", header=file_header, title=ir.info.title, package=package
            ),
        ),
        Artifact(
            path="_runtime.py",
            content=render(env, "runtime.py.j2", header=file_header, base_url=ir.info.base_url),
        ),
        Artifact(
            path=f"{SERVICES_DIR}/__init__.py",
            content=render(env, "services_init.py.j2", header=file_header, packages=packages),
        ),
    ]

    for name in packages:
        operations = ir.operations_for(name)
        artifacts.append(
            Artifact(
                path=f"{SERVICES_DIR}/{name}.py",
                content=render(
                    env,
                    "service.py.j2",
                    header=file_header,
                    package=package,
                    service=operations[0].service,
                    functions=[function_context(op) for op in operations],
                ),
            )
        )
    return artifacts


def function_context(resolved: ResolvedOperation) -> dict[str, Any]:
    """Build the template context of one operation function."""
    operation = resolved.operation
    parameters = ["client: Client"]
    parameters.extend(
        f"{param.python_name}: {param.type.annotation()}" for param in operation.path_params
    )
    if operation.request_body is not None:
        parameters.append(f"body: {operation.request_body.annotation(MODELS_QUALIFIER)}")
    if operation.query_params:
        parameters.append("*")
        parameters.extend(query_parameter(param) for param in operation.query_params)

    return {
        "name": resolved.function_name,
        "parameters": parameters,
        "returns": operation.response.annotation(MODELS_QUALIFIER),
        "doc": operation_doc(resolved),
        "method": operation.method.value.upper(),
        "path": operation.path,
        "path_args": [param.python_name for param in operation.path_params],
        "query": operation.query_params,
        "has_body": operation.request_body is not None,
        "response": type_expression(operation.response),
    }


def query_parameter(param: Parameter) -> str:
    """Render a keyword-only query parameter declaration."""
    if param.required:
        return f"{param.python_name}: {param.type.annotation()}"
    return f"{param.python_name}: Optional[{param.type.annotation()}] = None"


def operation_doc(resolved: ResolvedOperation) -> str:
    """Docstring for an operation: summary, description, route, and ID."""
    operation = resolved.operation
    lines = []
    if operation.summary:
        lines.append(" ".join(operation.summary.split()))
    if operation.description and operation.description.strip() != (operation.summary or "").strip():
        lines.append(operation.description.strip())
    if operation.deprecated:
        lines.append("Deprecated.")
    lines.append(
        f"{operation.method.value.upper()} {operation.path} (operation ID {resolved.operation_id})"
    )
    return "\n\n".join(lines)
