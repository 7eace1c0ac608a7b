"""Canonical Pydantic models shared across all specsdk modules.

This is the single source of truth for data shapes in the project. Every other
module imports from here rather than defining its own models. The models fall
into three groups:

**Configuration models** -- loaded from disk or built from CLI flags:
    :class:`NamingTables` and :class:`GeneratorConfig`.

**Intermediate representation (IR)** -- produced by the parser, the schema
modeler, and the name policy, and consumed by the emitters:
    :class:`TypeKind`, :class:`TypeRef`, :class:`ModelKind`,
    :class:`FieldSpec`, :class:`EnumMember`, :class:`ModelSpec`,
    :class:`HTTPMethod`, :class:`ParameterLocation`, :class:`Parameter`,
    :class:`Operation`, :class:`ResolvedOperation`,
    :class:`ExcludedOperation`, :class:`APIInfo`, and :class:`SpecIR`.

**Builder tree** -- the index-addressed arena built for the builder pass:
    :class:`PathNode` and :class:`PathTree`.

IR records are frozen once built. Components that need to derive a new
record use ``model_copy(update=...)`` instead of mutating the original.
"""

from __future__ import annotations

import enum
import hashlib
import json
from typing import Any, Iterator, Optional

from pydantic import BaseModel, ConfigDict, Field


# --- Type descriptors ---


class TypeKind(str, enum.Enum):
    """Discriminator for :class:`TypeRef`."""

    PRIMITIVE = "primitive"
    MODEL = "model"
    ARRAY = "array"
    MAP = "map"
    ANY = "any"
    NOTHING = "nothing"


class TypeRef(BaseModel):
    """A host-language type descriptor produced by the type mapper.

    ``name`` holds the Python primitive name (``str``, ``int``, ``float``,
    ``bool``, ``datetime``, ``date``) for primitives, or the generated class
    name for models. ``item`` holds the element type of arrays and the value
    type of maps.

    Example::

        TypeRef.array(TypeRef.model("Organisation")).annotation("models.")
        # 'list[models.Organisation]'
    """

    model_config = ConfigDict(frozen=True)

    kind: TypeKind
    name: Optional[str] = None
    item: Optional[TypeRef] = None

    @classmethod
    def primitive(cls, name: str) -> TypeRef:
        return cls(kind=TypeKind.PRIMITIVE, name=name)

    @classmethod
    def model(cls, name: str) -> TypeRef:
        return cls(kind=TypeKind.MODEL, name=name)

    @classmethod
    def array(cls, item: TypeRef) -> TypeRef:
        return cls(kind=TypeKind.ARRAY, item=item)

    @classmethod
    def map(cls, value: TypeRef) -> TypeRef:
        return cls(kind=TypeKind.MAP, item=value)

    @classmethod
    def any(cls) -> TypeRef:
        return cls(kind=TypeKind.ANY)

    @classmethod
    def nothing(cls) -> TypeRef:
        return cls(kind=TypeKind.NOTHING)

    def annotation(self, qualifier: str = "") -> str:
        """Render the type as a Python annotation.

        Args:
            qualifier: Prefix for model names, e.g. ``"models."`` when the
                annotation is used outside the generated models module.

        Returns:
            The annotation source text.
        """
        if self.kind == TypeKind.PRIMITIVE:
            return self.name or "Any"
        if self.kind == TypeKind.MODEL:
            return f"{qualifier}{self.name}"
        if self.kind == TypeKind.ARRAY:
            inner = self.item.annotation(qualifier) if self.item else "Any"
            return f"list[{inner}]"
        if self.kind == TypeKind.MAP:
            inner = self.item.annotation(qualifier) if self.item else "Any"
            return f"dict[str, {inner}]"
        if self.kind == TypeKind.NOTHING:
            return "None"
        return "Any"

    def model_names(self) -> set[str]:
        """Return every model name referenced by this type, recursively."""
        if self.kind == TypeKind.MODEL and self.name:
            return {self.name}
        if self.item is not None:
            return self.item.model_names()
        return set()


# --- Schema models ---


class ModelKind(str, enum.Enum):
    """The five canonical schema classifications."""

    RECORD = "record"
    ENUM = "enum"
    ALIAS = "alias"
    MAP = "map"
    UNION = "union"


class FieldSpec(BaseModel):
    """One property of a record model."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Python attribute name")
    json_name: str = Field(description="Property name on the wire")
    type: TypeRef
    required: bool = False
    nullable: bool = False
    const: Optional[str] = None
    description: Optional[str] = None

    @property
    def is_array(self) -> bool:
        return self.type.kind == TypeKind.ARRAY


class EnumMember(BaseModel):
    """A single enum literal and the Python member name it is emitted under."""

    model_config = ConfigDict(frozen=True)

    name: str
    value: Any


class ModelSpec(BaseModel):
    """A classified component schema.

    One tagged variant for all five kinds; only the payload fields that
    belong to ``kind`` are populated:

    * ``RECORD`` -- ``fields`` (sorted by JSON name), ``allow_extra``,
      ``discriminator``.
    * ``ENUM`` -- ``enum_base`` and ``enum_members``.
    * ``ALIAS`` -- ``alias_type``.
    * ``MAP`` -- ``map_value``.
    * ``UNION`` -- ``union_members`` and optionally ``discriminator``.

    ``implements`` lists the unions this model appears in as a ``oneOf``
    member. It is back-computed after every schema is classified.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    source_name: str = Field(description="Key under components.schemas")
    kind: ModelKind
    description: Optional[str] = None
    fields: list[FieldSpec] = Field(default_factory=list)
    allow_extra: bool = False
    enum_base: Optional[str] = None
    enum_members: list[EnumMember] = Field(default_factory=list)
    alias_type: Optional[TypeRef] = None
    map_value: Optional[TypeRef] = None
    union_members: list[TypeRef] = Field(default_factory=list)
    discriminator: Optional[str] = None
    implements: list[str] = Field(default_factory=list)

    def referenced_models(self) -> set[str]:
        """Return the names of all models this model's payload refers to."""
        refs: set[str] = set()
        for field in self.fields:
            refs |= field.type.model_names()
        for member in self.union_members:
            refs |= member.model_names()
        for payload in (self.alias_type, self.map_value):
            if payload is not None:
                refs |= payload.model_names()
        return refs


# --- Operations ---


class HTTPMethod(str, enum.Enum):
    """HTTP methods the extractor turns into operations.

    Declaration order is the fixed per-path traversal order.
    """

    DELETE = "delete"
    GET = "get"
    PATCH = "patch"
    POST = "post"
    PUT = "put"


class ParameterLocation(str, enum.Enum):
    """Locations where an API parameter can appear, per OpenAPI ``in`` field."""

    QUERY = "query"
    HEADER = "header"
    PATH = "path"
    COOKIE = "cookie"


class Parameter(BaseModel):
    """A path or query parameter of an :class:`Operation`.

    ``python_name`` is unique within its operation, so two path parameters
    that share a wire name (``/x/{id}/y/{id}``) still get distinct
    arguments.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    python_name: str
    location: ParameterLocation
    type: TypeRef = Field(default_factory=lambda: TypeRef.primitive("str"))
    required: bool = False
    description: Optional[str] = None


class Operation(BaseModel):
    """One HTTP method bound to one path, as declared in the document.

    Created once during extraction and immutable afterwards. The naming
    decisions (final identifier, service, package) live on
    :class:`ResolvedOperation`.
    """

    model_config = ConfigDict(frozen=True)

    operation_id: Optional[str] = Field(
        default=None, description="Raw operationId from the document"
    )
    method: HTTPMethod
    path: str
    path_params: list[Parameter] = Field(default_factory=list)
    query_params: list[Parameter] = Field(default_factory=list)
    has_query_params: bool = False
    request_body: Optional[TypeRef] = None
    response: TypeRef = Field(default_factory=TypeRef.nothing)
    x_service: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    summary: Optional[str] = None
    description: Optional[str] = None
    deprecated: bool = False

    @property
    def service_tag(self) -> Optional[str]:
        """The declared owning service: the vendor extension, else the first tag."""
        if self.x_service:
            return self.x_service
        return self.tags[0] if self.tags else None

    @property
    def route_key(self) -> str:
        """``METHOD:path`` key used by the operation-ID override table."""
        return f"{self.method.value.upper()}:{self.path}"


class ResolvedOperation(BaseModel):
    """An :class:`Operation` with the identifiers assigned by the name policy."""

    model_config = ConfigDict(frozen=True)

    operation: Operation
    operation_id: str
    service: str
    package: str
    function_name: str


class ExcludedOperation(BaseModel):
    """An operation the name policy could not assign to any service."""

    model_config = ConfigDict(frozen=True)

    method: HTTPMethod
    path: str
    operation_id: str
    reason: str


# --- Builder tree ---


PARAM_KEY = "{}"
"""Child key shared by every path-parameter segment at a given position."""


class PathNode(BaseModel):
    """One URL segment in the builder tree.

    ``children`` maps a child key (literal segment text, or
    :data:`PARAM_KEY` for parameters) to the child's index in the arena.
    ``operations`` holds indices into the resolved operation list, in
    encounter order.
    """

    index: int
    segment: str = ""
    key: str = ""
    parent: Optional[int] = None
    param: Optional[Parameter] = None
    children: dict[str, int] = Field(default_factory=dict)
    operations: list[int] = Field(default_factory=list)

    @property
    def is_param(self) -> bool:
        return self.param is not None


class PathTree(BaseModel):
    """Arena of :class:`PathNode` objects. Index 0 is the synthetic root."""

    nodes: list[PathNode] = Field(default_factory=lambda: [PathNode(index=0)])

    @property
    def root(self) -> PathNode:
        return self.nodes[0]

    def children(self, node: PathNode) -> list[PathNode]:
        """Return the children of *node* in sorted key order."""
        return [self.nodes[node.children[key]] for key in sorted(node.children)]

    def walk(self, node: Optional[PathNode] = None) -> Iterator[PathNode]:
        """Yield nodes depth-first, pre-order, children in sorted key order."""
        start = node if node is not None else self.root
        stack = [start]
        while stack:
            current = stack.pop()
            yield current
            stack.extend(reversed(self.children(current)))

    def lineage(self, node: PathNode) -> list[PathNode]:
        """Return the nodes from the first segment down to *node* (root excluded)."""
        chain: list[PathNode] = []
        current: Optional[PathNode] = node
        while current is not None and current.parent is not None:
            chain.append(current)
            current = self.nodes[current.parent]
        return list(reversed(chain))


class BuilderField(BaseModel):
    """A path parameter value captured by a builder and threaded to its children."""

    name: str
    type: TypeRef


class BuilderAccessor(BaseModel):
    """A builder method that steps one segment down the path.

    ``argument`` is set for parameter segments; it names the new field the
    child receives.
    """

    method_name: str
    target: str
    argument: Optional[BuilderField] = None


class BuilderCall(BaseModel):
    """A builder method that invokes one operation.

    ``arguments`` name, in path template order, the values passed as the
    operation's path parameters: builder fields for parameter segments and
    entries of ``parameters`` for placeholders inside literal segments.
    """

    method_name: str
    operation: int
    arguments: list[str] = Field(default_factory=list)
    parameters: list[BuilderField] = Field(default_factory=list)


class BuilderClass(BaseModel):
    """The emitted class for one :class:`PathNode`."""

    node: int
    class_name: str
    path: str
    fields: list[BuilderField] = Field(default_factory=list)
    accessors: list[BuilderAccessor] = Field(default_factory=list)
    calls: list[BuilderCall] = Field(default_factory=list)


# --- Configuration ---


class NamingTables(BaseModel):
    """The shared naming configuration injected into every generator pass.

    Every pass that derives an operation's identifier or package reads the
    same instance, so the passes cannot drift apart. The
    :meth:`fingerprint` is stamped into each generated file header.

    Example::

        NamingTables(
            version="2",
            operation_service_overrides={"getPulsarV2": "pulsar"},
            reserved_service_keywords=["pulsar"],
        )
    """

    model_config = ConfigDict(frozen=True)

    version: str = "1"
    operation_id_overrides: dict[str, str] = Field(
        default_factory=dict,
        description="'METHOD:path' -> operation ID (fixes duplicate raw IDs)",
    )
    operation_service_overrides: dict[str, str] = Field(
        default_factory=dict,
        description="Operation ID -> service (reclassifies mis-tagged operations)",
    )
    service_package_overrides: dict[str, str] = Field(
        default_factory=dict,
        description="Service -> package name (consolidates related services)",
    )
    reserved_service_keywords: list[str] = Field(
        default_factory=list,
        description="Keywords that route an operation to the service of the same name",
    )
    routing_prefixes: dict[str, str] = Field(
        default_factory=dict,
        description="Path segment -> prefix stripped from the segment that follows it",
    )
    brand_names: list[str] = Field(
        default_factory=list,
        description="Names kept verbatim by the casing transforms",
    )
    service_extension: str = Field(
        default="x-service",
        description="Vendor extension naming the owning service",
    )

    def fingerprint(self) -> str:
        """Return a sha256 of the canonical JSON form of these tables."""
        canonical = json.dumps(
            self.model_dump(mode="json"), sort_keys=True, separators=(",", ":")
        )
        return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


class GeneratorConfig(BaseModel):
    """Effective settings for one generator invocation.

    Built by :func:`~specsdk.config.resolve_config` from CLI flags,
    environment variables, and the project config file.
    """

    spec: str = Field(default="openapi.json", description="Spec path, URL, or '-'")
    output: str = Field(default="sdk", description="Output directory")
    package: str = Field(default="sdk", description="Import name of the generated package")
    tables: Optional[str] = Field(
        default=None, description="Naming tables file; built-in tables when unset"
    )


# --- Whole-document IR ---


class APIInfo(BaseModel):
    """API metadata extracted from the document's *Info Object*.

    ``base_url`` comes from the first entry of ``servers``, with server
    variables replaced by their defaults.
    """

    title: str = "API"
    version: str = ""
    description: Optional[str] = None
    base_url: str = ""


class SpecIR(BaseModel):
    """The complete intermediate representation of one document.

    Every pass builds this from scratch; two builds from the same document
    and tables serialise to identical JSON.
    """

    openapi_version: str
    info: APIInfo = Field(default_factory=APIInfo)
    models: list[ModelSpec] = Field(default_factory=list)
    operations: list[ResolvedOperation] = Field(default_factory=list)
    excluded: list[ExcludedOperation] = Field(default_factory=list)
    tables_version: str = "1"
    tables_fingerprint: str = ""

    def packages(self) -> list[str]:
        """Return the sorted distinct package names of all operations."""
        return sorted({op.package for op in self.operations})

    def operations_for(self, package: str) -> list[ResolvedOperation]:
        """Return the operations of *package* in extraction order."""
        return [op for op in self.operations if op.package == package]


class Artifact(BaseModel):
    """One generated file, relative to the output directory."""

    path: str
    content: str


TypeRef.model_rebuild()
