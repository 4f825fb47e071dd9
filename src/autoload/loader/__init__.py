"""
autoload.loader — Open shared libraries and bind their exports into schema instances.

## Responsibilities
- Wrap the OS loader (open/close/lookup) behind a never-raising platform contract.
- Resolve each slot of a SchemaDescriptor and assemble the schema instance.
- Own the opened library for exactly one handle at a time, releasing it exactly once.
- Report per-slot outcomes (pydantic models, Polars frames).

## Public API
- Library — owning handle over a library and its bound schema instance.
- BindSettings — policy and dlopen flags (env > TOML > defaults).
- BindingReport / SlotStatus — binding outcome.
- CtypesLoader / PlatformLoader — platform loader and its contract.

## Import DAG discipline
- Depends on stdlib, ctypes, pydantic, polars, and autoload.core.*.

## Examples
```python
import ctypes
from dataclasses import dataclass
from autoload import Library, schema

@schema
@dataclass(frozen=True)
class LibM:
    cos: ctypes.CFUNCTYPE(ctypes.c_double, ctypes.c_double)

with Library("libm.so.6", LibM) as m:  # doctest: +SKIP
    m.cos(0.0)  # 1.0
```
"""

from __future__ import annotations

from .config import BindSettings
from .errors import LoaderConfigError, LoaderError, ModuleOpenError, SymbolMissingError
from .library import Library
from .platform import CtypesLoader, PlatformLoader, default_loader
from .report import BindingReport, SlotStatus

__all__ = [
    "BindSettings",
    "BindingReport",
    "CtypesLoader",
    "Library",
    "LoaderConfigError",
    "LoaderError",
    "ModuleOpenError",
    "PlatformLoader",
    "SlotStatus",
    "SymbolMissingError",
    "default_loader",
]
