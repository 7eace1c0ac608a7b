"""Load OpenAPI documents and extract canonical operations.

* :mod:`~specsdk.parser.loader` -- read JSON/YAML from a file, URL, or stdin.
* :mod:`~specsdk.parser.resolver` -- follow internal ``$ref`` pointers.
* :mod:`~specsdk.parser.extractor` -- turn path items into
  :class:`~specsdk.models.Operation` records.
"""

from specsdk.parser.extractor import extract_operations
from specsdk.parser.loader import load_spec, validate_openapi_version

__all__ = ["extract_operations", "load_spec", "validate_openapi_version"]
