"""Follow internal ``$ref`` JSON Reference pointers in OpenAPI documents.

Unlike a full dereferencer, the generator keeps schema references intact:
a ``$ref`` to ``#/components/schemas/Pet`` is exactly what tells the type
mapper to emit ``Pet``. Only parameter, request-body, and response objects
are dereferenced, one level at a time, with :func:`resolve_object`.

Only **internal** references (those starting with ``#/``) are supported.
External file or URL references raise
:class:`~specsdk.exceptions.SpecParseError`.
"""

from __future__ import annotations

from typing import Any

from specsdk.exceptions import SpecParseError


def resolve_pointer(ref: str, root: dict[str, Any]) -> Any:
    """Resolve a single ``$ref`` string against the root spec.

    Parses JSON Pointer references like ``#/components/parameters/Limit``
    and navigates the root dict to locate the referenced value. Handles
    RFC 6901 JSON Pointer escaping (``~0`` for ``~``, ``~1`` for ``/``).

    Args:
        ref: The ``$ref`` string.
        root: The root spec dictionary to resolve against.

    Returns:
        The value found at the referenced path.

    Raises:
        SpecParseError: If the reference is external (does not start with
            ``#/``), or if any segment in the pointer path does not exist.
    """
    if not ref.startswith("#/"):
        raise SpecParseError(
            f"External $ref not supported: {ref}. "
            "Only internal references (#/...) are handled."
        )

    current: Any = root
    for segment in ref[2:].split("/"):
        segment = segment.replace("~1", "/").replace("~0", "~")

        if isinstance(current, dict):
            if segment not in current:
                raise SpecParseError(
                    f"Cannot resolve $ref '{ref}': "
                    f"key '{segment}' not found at path"
                )
            current = current[segment]
        elif isinstance(current, list):
            try:
                current = current[int(segment)]
            except (ValueError, IndexError) as exc:
                raise SpecParseError(
                    f"Cannot resolve $ref '{ref}': "
                    f"invalid array index '{segment}'"
                ) from exc
        else:
            raise SpecParseError(
                f"Cannot resolve $ref '{ref}': "
                f"cannot navigate into {type(current).__name__}"
            )

    return current


def resolve_object(node: Any, root: dict[str, Any]) -> Any:
    """Dereference *node* if it is a ``$ref`` object, following chains.

    Nested values are left untouched, so a response whose schema is a
    ``$ref`` keeps that reference.

    Args:
        node: A parameter, request body, or response object, possibly a
            ``{"$ref": ...}`` wrapper.
        root: The root spec dictionary.

    Returns:
        The referenced object, or *node* itself when it is not a reference.

    Raises:
        SpecParseError: On unresolvable or circular reference chains.
    """
    seen: set[str] = set()
    while isinstance(node, dict) and isinstance(node.get("$ref"), str):
        ref = node["$ref"]
        if ref in seen:
            raise SpecParseError(f"Circular $ref chain at '{ref}'")
        seen.add(ref)
        node = resolve_pointer(ref, root)
    return node
