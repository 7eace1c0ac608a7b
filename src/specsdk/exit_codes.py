"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~specsdk.exceptions.SpecsdkError` subclass.
Build scripts can inspect the exit code to tell a broken input document
from a generation failure without parsing stderr.

Example::

    $ specsdk models --spec broken.yaml
    $ echo $?
    7   # EXIT_SPEC_PARSE_ERROR -- the document could not be loaded
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_SPEC_PARSE_ERROR = 7
"""The OpenAPI specification could not be parsed or validated."""

EXIT_EMIT_ERROR = 8
"""Generated source failed formatting; raw output was kept for inspection."""
