"""Exception hierarchy for specsdk.

All exceptions inherit from :class:`SpecsdkError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`specsdk.exit_codes`.
The top-level error handler in :func:`specsdk.app.main` catches
``SpecsdkError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Subclass hierarchy::

    SpecsdkError (exit 1)
    +-- InvalidUsageError   (exit 2)
    +-- SpecParseError      (exit 7)
    +-- EmitError           (exit 8)
    |   +-- FormatError     (exit 8)
    +-- ConfigError         (exit 1)
    +-- SchemaError         (exit 1, never escapes the modeler)
"""

from __future__ import annotations

from specsdk.exit_codes import (
    EXIT_EMIT_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_SPEC_PARSE_ERROR,
)


class SpecsdkError(Exception):
    """Base exception for all specsdk errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`specsdk.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(SpecsdkError):
    """Raised for invalid CLI arguments or missing required parameters."""

    exit_code = EXIT_INVALID_USAGE


class SpecParseError(SpecsdkError):
    """Raised when the OpenAPI spec cannot be parsed or fails validation."""

    exit_code = EXIT_SPEC_PARSE_ERROR


class ConfigError(SpecsdkError):
    """Raised for configuration problems (bad naming tables, invalid project config)."""

    exit_code = EXIT_GENERIC_FAILURE


class SchemaError(SpecsdkError):
    """Raised for a single schema that cannot be modelled.

    The modeler catches this per schema, logs a warning, and skips the
    schema; it never aborts a pass.

    Args:
        name: Component name of the offending schema.
        message: What is wrong with it.
    """

    def __init__(self, name: str, message: str):
        super().__init__(f"schema '{name}': {message}")
        self.name = name


class EmitError(SpecsdkError):
    """Raised when generated source fails the formatting step.

    Args:
        message: Human-readable error description.
        paths: Files whose raw text was persisted as ``<file>.unformatted``.
    """

    exit_code = EXIT_EMIT_ERROR

    def __init__(self, message: str, paths: list[str] | None = None):
        super().__init__(message)
        self.paths = list(paths or [])


class FormatError(EmitError):
    """Raised by the formatter for a single artifact that is not valid Python.

    The writer collects these per target and raises one :class:`EmitError`.

    Args:
        filename: Artifact path relative to the output directory.
        message: The syntax error reported for it.
    """

    def __init__(self, filename: str, message: str):
        super().__init__(f"{filename}: {message}", paths=[filename])
        self.filename = filename
