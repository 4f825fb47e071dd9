"""
Core package for autoload schema contracts (descriptors, introspection, errors).

## Contracts (single source of truth)
- Descriptors — ordered (name, type) slot layouts with slot kinds.
- Introspection — native reflection for classes that declare fields, derivation
  for opaque positional records; one cached descriptor per schema type.
- Errors — definition-time failures (SchemaError, SchemaTooLarge, UnsupportedLayout).

## Notes
- Zero-IO policy: stdlib + pydantic only; nothing here opens a library.
- Slot names are used verbatim as exported symbol names.
- FIELD_CEILING (64) bounds the number of top-level slots on both paths.

## Downstream usage
- autoload.loader.binder walks a SchemaDescriptor to resolve and reinterpret symbols.
- autoload.cli prints descriptors for inspection.

## Examples
```python
import ctypes
from collections import namedtuple
from autoload.core import describe

# Derived schema: no annotations, defaults carry the slot types.
Api = namedtuple("Api", "pi foo", defaults=(ctypes.POINTER(ctypes.c_float), ctypes.c_void_p))
describe(Api).names  # ('pi', 'foo')
describe(Api).path  # 'derive'
```
"""

from __future__ import annotations

from .constants import FIELD_CEILING
from .descriptor import FieldSpec, SchemaDescriptor, SlotKind, slot_kind
from .errors import SchemaError, SchemaTooLarge, UnsupportedLayout
from .introspect import arity, clear_cache, describe, field_names, schema, select_path

__all__ = [
    "FIELD_CEILING",
    "FieldSpec",
    "SchemaDescriptor",
    "SlotKind",
    "slot_kind",
    "SchemaError",
    "SchemaTooLarge",
    "UnsupportedLayout",
    "arity",
    "clear_cache",
    "describe",
    "field_names",
    "schema",
    "select_path",
]
