"""Map JSON Schema nodes to Python types and classify component schemas."""

from specsdk.schema.modeler import SchemaModeler
from specsdk.schema.typemap import TypeMapper

__all__ = ["SchemaModeler", "TypeMapper"]
