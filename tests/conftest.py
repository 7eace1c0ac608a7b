"""Shared test fixtures for specsdk.

Provides reusable fixtures for loading spec fixtures, building the
intermediate representation, isolating configuration, managing output
state, and running CLI commands. These fixtures are automatically
discovered by pytest and available to all test modules without explicit
imports.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import pytest

from specsdk.config import DEFAULT_NAMING_TABLES
from specsdk.models import NamingTables, SpecIR
from specsdk.output import OutputFormat, OutputHandler, OutputManager, reset_output, set_output


FIXTURES_DIR = Path(__file__).parent / "fixtures"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager and the CLI log handler after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale
    ("I/O operation on closed file"). Resetting forces a fresh manager
    to be created on next use.
    """
    yield
    reset_output()
    logger = logging.getLogger("specsdk")
    for handler in list(logger.handlers):
        if isinstance(handler, OutputHandler):
            logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


# ---------------------------------------------------------------------------
# Raw spec fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def platform_raw() -> dict[str, Any]:
    """Load the raw platform spec dict."""
    with open(FIXTURES_DIR / "platform.json") as f:
        return json.load(f)


@pytest.fixture
def platform_path() -> Path:
    return FIXTURES_DIR / "platform.json"


@pytest.fixture
def minimal_path() -> Path:
    return FIXTURES_DIR / "minimal.yaml"


# ---------------------------------------------------------------------------
# Naming tables and IR
# ---------------------------------------------------------------------------


@pytest.fixture
def tables() -> NamingTables:
    """The built-in naming tables."""
    return DEFAULT_NAMING_TABLES


@pytest.fixture
def platform_ir(platform_raw: dict[str, Any], tables: NamingTables) -> SpecIR:
    """IR built from the platform spec with the built-in tables."""
    from specsdk.pipeline import build_ir

    return build_ir(platform_raw, tables)


def make_spec(paths: dict[str, Any], schemas: dict[str, Any] | None = None) -> dict[str, Any]:
    """Wrap *paths* and *schemas* in a minimal OpenAPI 3.0 document."""
    spec: dict[str, Any] = {
        "openapi": "3.0.3",
        "info": {"title": "Test", "version": "1.0"},
        "paths": paths,
    }
    if schemas is not None:
        spec["components"] = {"schemas": schemas}
    return spec


@pytest.fixture
def spec_factory():
    """Return :func:`make_spec` for building inline documents."""
    return make_spec


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points XDG_DATA_HOME at tmp_path, clears all SPECSDK_* environment
    variables, and changes the working directory to tmp_path so no
    ``specsdk.json`` from the real working tree is picked up.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    for var in ["SPECSDK_SPEC", "SPECSDK_OUTPUT", "SPECSDK_PACKAGE", "SPECSDK_TABLES"]:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
