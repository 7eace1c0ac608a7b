"""Configuration resolution, naming tables, and atomic file writes.

This module handles all configuration for specsdk:

* **Directory layout** -- XDG Base Directory compliant data directory on
  Linux/BSD, ``~/.specsdk/`` on macOS and Windows. Only used for crash logs.
  See :func:`get_data_dir`.
* **Naming tables** -- the shared :class:`~specsdk.models.NamingTables`
  artifact. :data:`DEFAULT_NAMING_TABLES` ships with the package and
  :func:`load_naming_tables` reads a replacement from a JSON or YAML file.
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  environment variables, and the project-local ``specsdk.json`` into the
  effective :class:`~specsdk.models.GeneratorConfig`.

All file writes use an atomic temp-file-then-rename strategy
(:func:`atomic_write`) so a crashed run never leaves half-written files.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from specsdk.exceptions import ConfigError, SpecParseError
from specsdk.models import GeneratorConfig, NamingTables

_APP_NAME = "specsdk"
_PROJECT_CONFIG_FILENAME = "specsdk.json"
_ENV_PREFIX = "SPECSDK_"


DEFAULT_NAMING_TABLES = NamingTables(
    version="1",
    operation_id_overrides={
        "DELETE:/v4/ai/organisations/{ownerId}/ai/{addonAIId}/endpoints/{endpointId}": "deleteAIEndpoint",
        "POST:/v4/ai/organisations/{ownerId}/ai/{addonAIId}/endpoints": "createAIEndpoint",
        "GET:/v4/materia/organisations/{ownerId}/materia/databases/{resourceId}": "getMateriaKvV4",
        "DELETE:/v4/materia/organisations/{ownerId}/materia/databases/{resourceId}": "deleteMateriaKvV4",
    },
    operation_service_overrides={
        name: "pulsar"
        for name in (
            "createPulsar",
            "createPulsarTenantAndNamespace",
            "createTriggerPulsar",
            "deletePulsar",
            "deletePulsarTenantAndNamespace",
            "deleteTriggerPulsar",
            "getPulsar",
            "getPulsarCluster",
            "getPulsarPolicies",
            "getPulsarProviderInfo",
            "getPulsarV2",
            "getTriggerPulsar",
            "listPulsarConsumptions",
            "provisionPulsar",
            "renewPulsarToken",
            "setStoragePolicies",
        )
    },
    service_package_overrides={
        "addon-ai": "ai",
        "addon-cellar": "storage",
        "addon-cumulocity": "cumulocity",
        "addon-keycloak": "keycloak",
        "addon-matomo": "matomo",
        "addon-metabase": "metabase",
        "addon-otoroshi": "otoroshi",
        "addon-postgresql": "postgresql",
        "addon-pulsar": "pulsar",
        "addon-storage": "storage",
        "compute": "infrastructure",
        "config-provider": "configuration_provider",
        "drain": "drains",
        "drains": "drains",
        "infrastructure": "infrastructure",
        "loadbalancer": "loadbalancer",
        "materia-kv": "materia_kv",
        "network-group": "network_group",
    },
    reserved_service_keywords=["pulsar"],
    routing_prefixes={"addon-providers": "addon-"},
    brand_names=["WireGuard"],
    service_extension="x-service",
)
"""Built-in naming tables used when no ``--tables`` file is given."""


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/specsdk/`` (default ``~/.local/share/specsdk/``).
    On macOS/Windows: ``~/.specsdk/``.

    Returns:
        Absolute path to the data directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. On success the temp
    file is renamed over *path*; on any failure the temp file is removed.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None and os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise


# --- Naming tables ---


def load_naming_tables(path: Optional[str] = None) -> NamingTables:
    """Load naming tables from a JSON or YAML file.

    A tables file replaces the built-in tables wholesale; keys it omits take
    the empty defaults of :class:`~specsdk.models.NamingTables`, not the
    built-in values.

    Args:
        path: Path to the tables file. ``None`` returns
            :data:`DEFAULT_NAMING_TABLES`.

    Returns:
        The validated tables.

    Raises:
        ConfigError: If the file is missing, unparseable, or fails validation.
    """
    if path is None:
        return DEFAULT_NAMING_TABLES

    from specsdk.parser.loader import parse_content

    file_path = Path(path)
    if not file_path.is_file():
        raise ConfigError(f"Naming tables file not found: {path}")

    suffix = file_path.suffix.lower()
    hint = "yaml" if suffix in (".yaml", ".yml") else "json" if suffix == ".json" else ""
    try:
        data = parse_content(file_path.read_text(encoding="utf-8"), hint=hint)
        return NamingTables.model_validate(data)
    except (OSError, SpecParseError, ValidationError) as exc:
        raise ConfigError(f"Invalid naming tables at {path}: {exc}") from exc


def save_naming_tables(tables: NamingTables, path: Path) -> None:
    """Persist naming tables atomically as pretty-printed JSON.

    Args:
        tables: The tables to save.
        path: Destination file.
    """
    data = tables.model_dump(mode="json")
    atomic_write(path, json.dumps(data, indent=2, sort_keys=True) + "\n")


# --- Project-local config ---


def load_project_config() -> Optional[dict[str, Any]]:
    """Load project-local configuration from ``./specsdk.json``.

    Project-local config sits below environment variables in the precedence
    chain. It typically pins the spec location and the target package so
    that a repository can regenerate its SDK with a bare ``specsdk all``.

    Returns:
        The parsed JSON as a dict, or ``None`` if the file does not exist.

    Raises:
        ConfigError: If the file exists but contains invalid JSON.
    """
    path = Path.cwd() / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid project config at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid project config at {path}: expected a JSON object")
    return data


# --- Precedence resolution ---


def resolve_config(
    cli_spec: Optional[str] = None,
    cli_output: Optional[str] = None,
    cli_package: Optional[str] = None,
    cli_tables: Optional[str] = None,
) -> GeneratorConfig:
    """Resolve the effective generator configuration.

    Precedence for each setting (highest first):

    1. CLI flag
    2. ``SPECSDK_SPEC`` / ``SPECSDK_OUTPUT`` / ``SPECSDK_PACKAGE`` /
       ``SPECSDK_TABLES`` environment variables
    3. Project config ``./specsdk.json``
    4. Built-in defaults

    Args:
        cli_spec: Spec location from ``--spec``.
        cli_output: Output directory from ``--output``.
        cli_package: Package name from ``--package``.
        cli_tables: Naming tables file from ``--tables``.

    Returns:
        The resolved :class:`~specsdk.models.GeneratorConfig`.

    Raises:
        ConfigError: If the project config file is invalid.
    """
    project = load_project_config() or {}
    cli_values = {
        "spec": cli_spec,
        "output": cli_output,
        "package": cli_package,
        "tables": cli_tables,
    }

    merged: dict[str, Any] = {}
    for key, cli_value in cli_values.items():
        env_value = os.environ.get(f"{_ENV_PREFIX}{key.upper()}") or None
        for candidate in (cli_value, env_value, project.get(key)):
            if candidate is not None:
                merged[key] = candidate
                break

    try:
        return GeneratorConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
