"""Source emitters -- render the IR into Python source artifacts.

Emitters make no naming or mapping decisions; every name they print comes
from the :class:`~specsdk.models.SpecIR`. Each emitter returns a list of
:class:`~specsdk.models.Artifact` objects which
:func:`~specsdk.emit.writer.write_target` formats and writes.

Sub-modules:

* :mod:`~specsdk.emit.render` -- Jinja2 environment and shared filters.
* :mod:`~specsdk.emit.models_emitter` -- ``models.py`` with every schema.
* :mod:`~specsdk.emit.operations_emitter` -- the HTTP runtime and one
  module per service package.
* :mod:`~specsdk.emit.builder_emitter` -- ``builder.py`` with the fluent
  path builders.
* :mod:`~specsdk.emit.formatter` -- whitespace normalisation and syntax check.
* :mod:`~specsdk.emit.writer` -- atomic writes, ``.unformatted`` fallbacks.
"""

from specsdk.emit.builder_emitter import emit_builder
from specsdk.emit.models_emitter import emit_models
from specsdk.emit.operations_emitter import emit_operations
from specsdk.emit.writer import write_target

__all__ = ["emit_builder", "emit_models", "emit_operations", "write_target"]
