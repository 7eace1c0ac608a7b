"""Fold resolved operations into a path-segment tree.

Each path is split on ``/`` and walked one level per segment. Literal
segments are keyed by their text. Parameter segments are keyed by
:data:`~specsdk.models.PARAM_KEY` whatever their name, so
``/things/{a}/sub`` and ``/things/{b}/sub`` share one branch; the node keeps
the parameter of the first operation that created it, and each
:class:`~specsdk.models.Operation` keeps its own parameter names.
A segment that mixes text and placeholders (``{name}.json``) is a literal
segment; its placeholders are passed to the operation call directly.

The tree is an arena: nodes live in :attr:`PathTree.nodes` and refer to each
other by index, which keeps it serialisable and testable without any
emission step.
"""

from __future__ import annotations

import re
from typing import Sequence

from specsdk.models import PARAM_KEY, PathNode, PathTree, ResolvedOperation

_PLACEHOLDER_RE = re.compile(r"\{[^{}]+\}")


def split_path(path: str) -> list[str]:
    """Split a path template into its non-empty segments."""
    return [segment for segment in path.split("/") if segment]


def is_param_segment(segment: str) -> bool:
    """Whether *segment* is exactly one placeholder, such as ``{id}``."""
    return _PLACEHOLDER_RE.fullmatch(segment) is not None


def count_placeholders(segment: str) -> int:
    return len(_PLACEHOLDER_RE.findall(segment))


def build_path_tree(operations: Sequence[ResolvedOperation]) -> PathTree:
    """Build the path tree for *operations*.

    Args:
        operations: Resolved operations; their list positions become the
            indices stored in :attr:`PathNode.operations`.

    Returns:
        The populated :class:`~specsdk.models.PathTree`. Operations whose path
        is ``/`` terminate at the root.
    """
    tree = PathTree()

    for op_index, resolved in enumerate(operations):
        operation = resolved.operation
        node = tree.root
        param_position = 0

        for segment in split_path(operation.path):
            param = None
            key = segment
            if is_param_segment(segment):
                key = PARAM_KEY
                param = operation.path_params[param_position]
            param_position += count_placeholders(segment)

            child_index = node.children.get(key)
            if child_index is None:
                child_index = len(tree.nodes)
                tree.nodes.append(
                    PathNode(
                        index=child_index,
                        segment=segment,
                        key=key,
                        parent=node.index,
                        param=param,
                    )
                )
                node.children[key] = child_index
            node = tree.nodes[child_index]

        node.operations.append(op_index)

    return tree
