"""Typer application and CLI entry point for specsdk.

The generator runs as independent passes. Each pass loads the document,
builds its own :class:`~specsdk.models.SpecIR` from the shared naming
tables, and writes its own files; the passes never exchange state, so any
one of them can be re-run alone::

    specsdk models     --spec openapi.json --output sdk --package sdk
    specsdk operations --spec openapi.json --output sdk --package sdk
    specsdk builder    --spec openapi.json --output sdk --package sdk
    specsdk all        --spec openapi.json

``inspect`` prints the resolved operations, and ``tables`` prints (or
exports) the naming tables in effect.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. Unhandled exceptions are written to a crash log under
the data directory.

See Also:
    :mod:`specsdk.config`: Settings precedence and naming tables.
    :mod:`specsdk.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import keyword
import signal
import sys
import traceback
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Optional

import typer

from specsdk import __version__
from specsdk.exceptions import EmitError, InvalidUsageError, SpecsdkError
from specsdk.exit_codes import EXIT_GENERIC_FAILURE
from specsdk.models import Artifact, GeneratorConfig, NamingTables, SpecIR
from specsdk.output import error, get_output, info, print_json, success, suggest

app = typer.Typer(
    name="specsdk",
    help="Generate a typed Python client SDK from an OpenAPI 3.x document.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

PASSES = ("models", "operations", "builder")
"""Generator passes in the order ``all`` runs them."""


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"specsdk {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Initialises the global :class:`~specsdk.output.OutputManager` from
    CLI flags and routes library log records through it.

    Args:
        ctx: Typer invocation context.
        version: If ``True``, print the version string and exit.
        json_output: Force JSON output format.
        no_color: Disable all colour and Rich markup.
        quiet: Suppress non-essential diagnostic output.
        verbose: Enable debug-level diagnostic output.
    """
    from specsdk.output import OutputFormat, OutputManager, configure_logging, set_output

    output = OutputManager(
        format=OutputFormat.JSON if json_output else OutputFormat.AUTO,
        no_color=no_color,
        quiet=quiet,
        verbose=verbose,
    )
    set_output(output)
    configure_logging(verbose=verbose)

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


# ------------------------------------------------------------------ #
# Shared options
# ------------------------------------------------------------------ #

_SPEC_OPTION = typer.Option(
    None, "--spec", "-s", help="OpenAPI document: file path, URL, or '-' for stdin."
)
_OUTPUT_OPTION = typer.Option(None, "--output", "-o", help="Output directory.")
_PACKAGE_OPTION = typer.Option(
    None, "--package", "-p", help="Import name of the generated package."
)
_TABLES_OPTION = typer.Option(
    None, "--tables", "-t", help="Naming tables file (JSON or YAML)."
)


def validate_package_name(name: str) -> str:
    """Check that *name* is a dotted Python import name.

    Raises:
        InvalidUsageError: If any part is empty, not an identifier, or a
            keyword.
    """
    parts = name.split(".")
    if not all(part.isidentifier() and not keyword.iskeyword(part) for part in parts):
        raise InvalidUsageError(f"Invalid package name: {name!r}")
    return name


def _load(
    spec: Optional[str],
    output: Optional[str],
    package: Optional[str],
    tables: Optional[str],
) -> tuple[GeneratorConfig, NamingTables, dict[str, Any]]:
    """Resolve settings, naming tables, and the raw document."""
    from specsdk.config import load_naming_tables, resolve_config
    from specsdk.output import debug
    from specsdk.parser import load_spec

    config = resolve_config(
        cli_spec=spec, cli_output=output, cli_package=package, cli_tables=tables
    )
    validate_package_name(config.package)
    naming_tables = load_naming_tables(config.tables)
    debug(f"Naming tables version {naming_tables.version} ({naming_tables.fingerprint()[:12]})")
    debug(f"Loading spec from {config.spec}")
    return config, naming_tables, load_spec(config.spec)


def _emitter(pass_name: str, tables: NamingTables) -> Callable[[SpecIR, str], list[Artifact]]:
    from specsdk.emit import emit_builder, emit_models, emit_operations

    if pass_name == "models":
        return emit_models
    if pass_name == "operations":
        return emit_operations
    return lambda ir, package: emit_builder(ir, package, tables.brand_names)


def run_pass(
    pass_name: str,
    raw: dict[str, Any],
    tables: NamingTables,
    config: GeneratorConfig,
) -> list[Path]:
    """Run one generator pass from scratch and write its files.

    Args:
        pass_name: One of :data:`PASSES`.
        raw: The loaded document.
        tables: The naming tables shared by every pass.
        config: Effective settings (output directory and package name).

    Returns:
        The written file paths.

    Raises:
        SpecParseError: If the document cannot be turned into an IR.
        EmitError: If any file of this pass fails formatting.
    """
    from specsdk.emit import write_target
    from specsdk.pipeline import build_ir

    ir = build_ir(raw, tables)
    artifacts = _emitter(pass_name, tables)(ir, config.package)
    written = write_target(artifacts, config.output)
    success(f"{pass_name}: wrote {len(written)} file(s) to {config.output}")
    return written


def _fail(exc: SpecsdkError) -> typer.Exit:
    error(str(exc))
    return typer.Exit(code=exc.exit_code)


def _generate(
    passes: tuple[str, ...],
    spec: Optional[str],
    output: Optional[str],
    package: Optional[str],
    tables: Optional[str],
) -> None:
    """Run *passes* in order; a failed pass does not stop the others."""
    try:
        config, naming_tables, raw = _load(spec, output, package, tables)
    except SpecsdkError as exc:
        raise _fail(exc) from None

    failed: Optional[SpecsdkError] = None
    for pass_name in passes:
        try:
            run_pass(pass_name, raw, naming_tables, config)
        except EmitError as exc:
            error(f"{pass_name}: {exc}")
            for path in exc.paths:
                info(f"  raw output: {path}")
            failed = failed or exc
        except SpecsdkError as exc:
            raise _fail(exc) from None

    if failed is not None:
        raise typer.Exit(code=failed.exit_code)
    if len(passes) == len(PASSES):
        suggest(f"Import it with: from {config.package}.builder import SDK")


# ------------------------------------------------------------------ #
# Generator passes
# ------------------------------------------------------------------ #


@app.command("models")
def models_command(
    spec: Optional[str] = _SPEC_OPTION,
    output: Optional[str] = _OUTPUT_OPTION,
    package: Optional[str] = _PACKAGE_OPTION,
    tables: Optional[str] = _TABLES_OPTION,
) -> None:
    """Generate ``models.py`` from ``components.schemas``."""
    _generate(("models",), spec, output, package, tables)


@app.command("operations")
def operations_command(
    spec: Optional[str] = _SPEC_OPTION,
    output: Optional[str] = _OUTPUT_OPTION,
    package: Optional[str] = _PACKAGE_OPTION,
    tables: Optional[str] = _TABLES_OPTION,
) -> None:
    """Generate the HTTP runtime and one module per service package."""
    _generate(("operations",), spec, output, package, tables)


@app.command("builder")
def builder_command(
    spec: Optional[str] = _SPEC_OPTION,
    output: Optional[str] = _OUTPUT_OPTION,
    package: Optional[str] = _PACKAGE_OPTION,
    tables: Optional[str] = _TABLES_OPTION,
) -> None:
    """Generate ``builder.py``, the fluent path builders."""
    _generate(("builder",), spec, output, package, tables)


@app.command("all")
def all_command(
    spec: Optional[str] = _SPEC_OPTION,
    output: Optional[str] = _OUTPUT_OPTION,
    package: Optional[str] = _PACKAGE_OPTION,
    tables: Optional[str] = _TABLES_OPTION,
) -> None:
    """Run the models, operations, and builder passes.

    Example::

        specsdk all --spec openapi.yaml --output src/acme --package acme
    """
    _generate(PASSES, spec, output, package, tables)


# ------------------------------------------------------------------ #
# Inspection
# ------------------------------------------------------------------ #


@app.command("inspect")
def inspect_command(
    spec: Optional[str] = _SPEC_OPTION,
    tables: Optional[str] = _TABLES_OPTION,
) -> None:
    """Show every operation with its resolved ID, package, and function.

    With ``--json`` the full intermediate representation is printed
    instead.
    """
    from specsdk.output import OutputFormat
    from specsdk.pipeline import build_ir

    try:
        _, naming_tables, raw = _load(spec, None, None, tables)
        ir = build_ir(raw, naming_tables)
    except SpecsdkError as exc:
        raise _fail(exc) from None

    output = get_output()
    if output.format == OutputFormat.JSON:
        print_json(ir.model_dump(mode="json"))
        return

    rows = [
        [
            op.operation.method.value.upper(),
            op.operation.path,
            op.operation_id,
            op.package,
            op.function_name,
        ]
        for op in ir.operations
    ]
    output.print_table(
        ["Method", "Path", "Operation ID", "Package", "Function"],
        rows,
        title=f"{ir.info.title} -- Operations ({len(rows)})",
    )
    info(f"{len(ir.models)} model(s), {len(ir.packages())} package(s)")
    for excluded in ir.excluded:
        info(f"excluded: {excluded.method.value.upper()} {excluded.path} ({excluded.reason})")


@app.command("tables")
def tables_command(
    tables: Optional[str] = _TABLES_OPTION,
    export: Optional[Path] = typer.Option(
        None, "--export", "-e", help="Write the tables to this file instead of stdout."
    ),
) -> None:
    """Print the naming tables in effect, or export them for editing.

    Example::

        specsdk tables --export naming.json
        specsdk all --tables naming.json
    """
    from specsdk.config import load_naming_tables, resolve_config, save_naming_tables

    try:
        config = resolve_config(cli_tables=tables)
        naming_tables = load_naming_tables(config.tables)
    except SpecsdkError as exc:
        raise _fail(exc) from None

    if export is None:
        print_json(naming_tables.model_dump(mode="json"))
        return
    save_naming_tables(naming_tables, export)
    success(f"Wrote naming tables to {export} (sha256 {naming_tables.fingerprint()[:12]})")


# ------------------------------------------------------------------ #
# Entry point
# ------------------------------------------------------------------ #


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from specsdk.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``specsdk`` console script.

    Unhandled :class:`~specsdk.exceptions.SpecsdkError` instances cause a
    clean exit with the error's ``exit_code``. All other exceptions produce
    a crash log and a generic failure exit.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except SpecsdkError as exc:
        error(str(exc))
        sys.exit(exc.exit_code)
    except Exception as exc:
        log_path = _write_crash_log(exc)
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
