"""
autoload — bind a shared library's exports into a declared schema, by slot name.

Declare a schema class whose slot names are export names and whose slot types are
ctypes pointer, function prototype, or address types; ``Library`` opens the library,
introspects the schema, and binds every slot.

```python
import ctypes
from dataclasses import dataclass
from autoload import Library, schema

class Point(ctypes.Structure):
    _fields_ = [("x", ctypes.c_int), ("y", ctypes.c_int)]

@schema
@dataclass(frozen=True)
class TestLib:
    pi: ctypes.POINTER(ctypes.c_float)
    foo: ctypes.CFUNCTYPE(Point, ctypes.c_int, ctypes.c_int)

lib = Library("./libtestlib.so", TestLib)  # doctest: +SKIP
lib.pi.contents.value  # 3.14
lib.foo(24, 40).x  # 48
```
"""

from __future__ import annotations

from .core import (
    FIELD_CEILING,
    SchemaDescriptor,
    SchemaError,
    SchemaTooLarge,
    SlotKind,
    UnsupportedLayout,
    describe,
    schema,
)
from .loader import (
    BindingReport,
    BindSettings,
    Library,
    LoaderError,
    ModuleOpenError,
    SymbolMissingError,
)

__version__ = "0.1.0"

__all__ = [
    "FIELD_CEILING",
    "BindSettings",
    "BindingReport",
    "Library",
    "LoaderError",
    "ModuleOpenError",
    "SchemaDescriptor",
    "SchemaError",
    "SchemaTooLarge",
    "SlotKind",
    "SymbolMissingError",
    "UnsupportedLayout",
    "describe",
    "schema",
]
