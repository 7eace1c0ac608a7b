"""Jinja2 environment and filters shared by the emitters.

Templates live in ``emit/templates/`` next to this module and produce
Python source, so autoescaping is disabled for ``.py.j2`` files. Block
trimming and lstrip are enabled for cleaner template authoring; the
formatter tidies any leftover blank lines afterwards.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

from specsdk import __version__
from specsdk.models import SpecIR, TypeKind, TypeRef

TEMPLATE_DIR = Path(__file__).parent / "templates"
"""Path to the Jinja2 template directory (``emit/templates/``)."""

MODELS_QUALIFIER = "models."
"""Prefix for model names outside the generated models module."""


def create_jinja_env() -> Environment:
    """Create and configure the Jinja2 environment for source templates.

    Returns:
        A configured :class:`~jinja2.Environment` with the ``pyrepr`` and
        ``docstring`` filters installed.
    """
    env = Environment(
        loader=FileSystemLoader(str(TEMPLATE_DIR)),
        autoescape=select_autoescape(disabled_extensions=("py.j2",)),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
        undefined=StrictUndefined,
    )
    env.filters["pyrepr"] = repr
    env.filters["docstring"] = docstring_text
    return env


def render(env: Environment, template: str, **context: Any) -> str:
    """Render *template* with *context*."""
    return env.get_template(template).render(**context)


def docstring_text(text: Any) -> str:
    """Make *text* safe to place between triple double quotes."""
    text = str(text or "").strip()
    text = text.replace("\\", "\\\\").replace('"""', '\\"\\"\\"')
    if text.endswith('"'):
        text = text[:-1] + '\\"'
    return text


def one_line(text: Any) -> str:
    """Collapse whitespace so *text* fits on a single comment line."""
    return " ".join(str(text or "").split())


def header(pass_name: str, ir: SpecIR) -> str:
    """Return the ``DO NOT EDIT`` header stamped on every artifact."""
    source = one_line(f"{ir.info.title} {ir.info.version}")
    return (
        f"# Code generated by specsdk {__version__} ({pass_name} pass). DO NOT EDIT.\n"
        f"# Source: {source} (OpenAPI {ir.openapi_version})\n"
        f"# Naming tables: version {one_line(ir.tables_version)}, "
        f"sha256 {ir.tables_fingerprint}"
    )


def type_expression(type_ref: TypeRef, qualifier: str = MODELS_QUALIFIER) -> str:
    """Render *type_ref* as a runtime expression for ``parse_response``."""
    if type_ref.kind == TypeKind.NOTHING:
        return "None"
    return type_ref.annotation(qualifier)
