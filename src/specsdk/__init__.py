"""specsdk -- Generate typed Python client SDKs from OpenAPI 3.0/3.1 specs.

This package reads an OpenAPI document and deterministically emits three
kinds of source artifacts: pydantic data models for every component schema,
one callable function per endpoint grouped by service package, and a fluent
builder whose method chains mirror the URL path segments.

Typical workflow::

    specsdk models --spec openapi.json --output sdk
    specsdk operations --spec openapi.json --output sdk
    specsdk builder --spec openapi.json --output sdk

All three passes share a single :class:`~specsdk.models.NamingTables`
artifact so that operation names, service ownership, and type names agree.

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models for the intermediate representation.
    config: Configuration resolution and naming table loading.
    pipeline: Builds the full intermediate representation from a document.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"
