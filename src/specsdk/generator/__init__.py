"""Builder tree -- fold operations into a path tree and plan the builder classes.

Typical usage::

    from specsdk.generator import build_path_tree, plan_builders

    tree = build_path_tree(ir.operations)
    classes = plan_builders(tree, ir.operations)

Sub-modules:

* :mod:`~specsdk.generator.path_tree` -- Folds operations into an
  index-addressed arena of :class:`~specsdk.models.PathNode` objects,
  unifying path parameters by position.
* :mod:`~specsdk.generator.builder_plan` -- Names one builder class per node
  and threads captured path parameters down to the operations.
"""

from specsdk.generator.builder_plan import plan_builders
from specsdk.generator.path_tree import build_path_tree, split_path

__all__ = ["build_path_tree", "plan_builders", "split_path"]
