"""Resolve operation identifiers and service ownership.

:class:`NamePolicy` is the only place that decides what an operation is
called and which service package it lives in. All three generator passes
construct it from the same :class:`~specsdk.models.NamingTables`, which is
what keeps their independently computed names in agreement.

Service precedence, first match wins:

1. operation ID in ``operation_service_overrides``
2. a reserved keyword appears in the path (case-insensitive)
3. a reserved keyword appears in the operation ID (case-insensitive)
4. the vendor extension (``x-service`` by default)
5. the first tag
6. the segment after a routing prefix (``/addon-providers/addon-pulsar``)

Operations matching none of these are excluded from generation. Exclusions
are returned to the caller and logged as warnings.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence, Union

from specsdk.models import (
    ExcludedOperation,
    HTTPMethod,
    NamingTables,
    Operation,
    ResolvedOperation,
)
from specsdk.naming.casing import (
    package_name,
    python_identifier,
    to_pascal_case,
    to_snake_case,
    unique_name,
)

logger = logging.getLogger(__name__)

# Names the generated service modules import at module level.
_RESERVED_FUNCTION_NAMES = frozenset(
    {"Any", "Client", "Optional", "build_path", "date", "datetime", "models", "parse_response"}
)


class NamePolicy:
    """Operation naming and ownership rules backed by a set of naming tables.

    Args:
        tables: The shared naming tables.
    """

    def __init__(self, tables: NamingTables) -> None:
        self.tables = tables
        self._keywords = sorted({kw.lower() for kw in tables.reserved_service_keywords})

    # ------------------------------------------------------------------ #
    # Identifiers
    # ------------------------------------------------------------------ #

    def resolve_operation_id(
        self,
        method: Union[HTTPMethod, str],
        path: str,
        raw_id: Optional[str],
    ) -> str:
        """Return the final operation ID for ``method`` + ``path``.

        The ``METHOD:path`` override table wins over the raw ID; operations
        without any ID get one derived from the method and path.

        Args:
            method: HTTP method, any case.
            path: Path template exactly as declared.
            raw_id: The document's ``operationId``, if any.

        Returns:
            The resolved operation ID.
        """
        verb = method.value if isinstance(method, HTTPMethod) else method
        override = self.tables.operation_id_overrides.get(f"{verb.upper()}:{path}")
        if override:
            return override
        if raw_id:
            return raw_id
        return _derive_operation_id(verb.lower(), path, self.tables.brand_names)

    def function_name(self, operation_id: str) -> str:
        """Return the snake_case Python function name for an operation ID."""
        return python_identifier(
            to_snake_case(operation_id, self.tables.brand_names),
            reserved=_RESERVED_FUNCTION_NAMES,
        )

    # ------------------------------------------------------------------ #
    # Ownership
    # ------------------------------------------------------------------ #

    def resolve_service(
        self,
        operation_id: str,
        path: str,
        x_service: Optional[str] = None,
        tags: Sequence[str] = (),
    ) -> Optional[str]:
        """Return the owning service of an operation, or ``None``.

        Args:
            operation_id: The resolved operation ID.
            path: The path template.
            x_service: Value of the service vendor extension.
            tags: The operation's declared tags.

        Returns:
            The service name, or ``None`` when no rule matches.
        """
        override = self.tables.operation_service_overrides.get(operation_id)
        if override:
            return override

        lowered_path = path.lower()
        for keyword in self._keywords:
            if keyword in lowered_path:
                return keyword

        lowered_id = operation_id.lower()
        for keyword in self._keywords:
            if keyword in lowered_id:
                return keyword

        if x_service:
            return x_service
        if tags:
            return tags[0]

        return self._service_from_path(path)

    def package_for_service(self, service: str) -> str:
        """Map a service name to its package name."""
        override = self.tables.service_package_overrides.get(service)
        if override:
            return override
        return package_name(service, self.tables.brand_names)

    def resolve_package(
        self,
        operation_id: str,
        service_tag: Optional[str],
        path: str,
    ) -> Optional[str]:
        """Return the package an operation is emitted into, or ``None``.

        Args:
            operation_id: The resolved operation ID.
            service_tag: The declared service (vendor extension, else first tag).
            path: The path template.

        Returns:
            The package name, or ``None`` if the operation is excluded.
        """
        service = self.resolve_service(operation_id, path, x_service=service_tag)
        if service is None:
            return None
        return self.package_for_service(service)

    def _service_from_path(self, path: str) -> Optional[str]:
        segments = [segment for segment in path.split("/") if segment]
        for index, segment in enumerate(segments[:-1]):
            strip = self.tables.routing_prefixes.get(segment)
            if strip is None:
                continue
            following = segments[index + 1]
            if following.startswith("{"):
                continue
            if strip and following.startswith(strip):
                following = following[len(strip):]
            if following:
                return following
        return None

    # ------------------------------------------------------------------ #
    # Whole operations
    # ------------------------------------------------------------------ #

    def resolve(self, operation: Operation) -> Union[ResolvedOperation, ExcludedOperation]:
        """Resolve one operation's identifier, service, and package.

        Returns:
            A :class:`~specsdk.models.ResolvedOperation`, or an
            :class:`~specsdk.models.ExcludedOperation` when no service rule
            matches.
        """
        operation_id = self.resolve_operation_id(
            operation.method, operation.path, operation.operation_id
        )
        service = self.resolve_service(
            operation_id, operation.path, operation.x_service, operation.tags
        )
        if service is None:
            return ExcludedOperation(
                method=operation.method,
                path=operation.path,
                operation_id=operation_id,
                reason="no service rule matched",
            )
        return ResolvedOperation(
            operation=operation,
            operation_id=operation_id,
            service=service,
            package=self.package_for_service(service),
            function_name=self.function_name(operation_id),
        )

    def resolve_all(
        self, operations: Sequence[Operation]
    ) -> tuple[list[ResolvedOperation], list[ExcludedOperation]]:
        """Resolve every operation, keeping input order.

        Function names that collide within a package get a numeric suffix
        (``list_users``, ``list_users_2``) in input order.

        Args:
            operations: Operations in extraction order.

        Returns:
            The resolved operations and the excluded ones.
        """
        resolved: list[ResolvedOperation] = []
        excluded: list[ExcludedOperation] = []
        taken: dict[str, set[str]] = {}

        for operation in operations:
            result = self.resolve(operation)
            if isinstance(result, ExcludedOperation):
                logger.warning(
                    "Excluding %s %s (%s): %s",
                    result.method.value.upper(),
                    result.path,
                    result.operation_id,
                    result.reason,
                )
                excluded.append(result)
                continue

            names = taken.setdefault(result.package, set())
            function_name = unique_name(result.function_name, names)
            if function_name != result.function_name:
                logger.warning(
                    "Duplicate function name %s in package %s; using %s for %s %s",
                    result.function_name,
                    result.package,
                    function_name,
                    operation.method.value.upper(),
                    operation.path,
                )
                result = result.model_copy(update={"function_name": function_name})
            resolved.append(result)

        return resolved, excluded


def _derive_operation_id(method: str, path: str, brand_names: Sequence[str]) -> str:
    """Build an operation ID from method and path, e.g. ``getV4OrganisationsByOwnerId``."""
    parts = [method]
    for segment in path.split("/"):
        if not segment:
            continue
        if segment.startswith("{") and segment.endswith("}"):
            parts.append("By" + to_pascal_case(segment[1:-1], brand_names))
        else:
            parts.append(to_pascal_case(segment, brand_names))
    return "".join(parts)
