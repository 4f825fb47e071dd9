"""
Schema introspector: one cached SchemaDescriptor per schema type.

The introspection path is chosen once per schema type: classes that declare field
metadata go through ``autoload.core.reflect``; opaque positional records go through
``autoload.core.derive``. Both produce (name, type) pairs that are classified into
slot kinds here, with nested schemas described recursively.

Notes:
    - ``@schema`` describes a class when it is defined, so every SchemaError surfaces
      at import time of the declaring module rather than when a library is bound.
    - Descriptors are cached for the life of the process; ``clear_cache`` exists for tests.

Examples:
    >>> import ctypes
    >>> from dataclasses import dataclass
    >>> from autoload.core.introspect import schema, describe
    >>> @schema
    ... @dataclass(frozen=True)
    ... class MathLib:
    ...     cos: ctypes.CFUNCTYPE(ctypes.c_double, ctypes.c_double)
    >>> describe(MathLib).names
    ('cos',)
"""

from __future__ import annotations

import ctypes
import threading
from typing import Any, TypeVar

from .constants import FIELD_CEILING
from .derive import derive_fields
from .descriptor import FieldSpec, IntrospectionPath, SchemaDescriptor, SlotKind, slot_kind
from .errors import SchemaError, SchemaTooLarge
from .reflect import declared_fields, has_declared_fields

__all__ = [
    "schema",
    "describe",
    "select_path",
    "arity",
    "field_names",
    "clear_cache",
]

T = TypeVar("T", bound=type)

_CACHE: dict[type, SchemaDescriptor] = {}
# schemas being described by the current thread; guards self-containing groups
_LOCAL = threading.local()

# Modules whose classes are never nested groups.
_NON_GROUP_MODULES = frozenset({"builtins", "ctypes", "_ctypes"})


def select_path(cls: Any) -> IntrospectionPath:
    """Return the introspection path used for ``cls``."""
    return "reflect" if has_declared_fields(cls) else "derive"


def describe(cls: Any) -> SchemaDescriptor:
    """
    Return the descriptor of a schema class, computing it on first use.

    Args:
        cls: Schema class.

    Returns:
        SchemaDescriptor: Cached, immutable descriptor.

    Raises:
        SchemaError: If ``cls`` is not a usable schema (see autoload.core.errors).
    """
    cached = _CACHE.get(cls)
    if cached is not None:
        return cached
    if not isinstance(cls, type):
        raise SchemaError(f"schema must be a class, got {cls!r}")
    in_progress = _in_progress()
    if cls in in_progress:
        raise SchemaError(f"{cls.__qualname__} contains itself")

    in_progress.add(cls)
    try:
        path = select_path(cls)
        if path == "reflect":
            raw = [(name, tp, False) for name, tp in declared_fields(cls)]
            if len(raw) > FIELD_CEILING:
                raise SchemaTooLarge(
                    f"{cls.__qualname__} declares {len(raw)} slots; "
                    f"at most {FIELD_CEILING} are supported"
                )
        else:
            raw = [
                (slot.name, slot.type, slot.flattened)
                for slot in derive_fields(cls, measure=describe, ceiling=FIELD_CEILING)
            ]
        fields = tuple(
            _field_spec(cls, index, name, tp, flattened)
            for index, (name, tp, flattened) in enumerate(raw)
        )
        descriptor = SchemaDescriptor(cls, fields, path)
    finally:
        in_progress.discard(cls)
    return _CACHE.setdefault(cls, descriptor)


def schema(cls: T) -> T:
    """
    Class decorator: describe ``cls`` eagerly and return it unchanged.

    Raises:
        SchemaError: At class definition time if ``cls`` cannot be described.
    """
    describe(cls)
    return cls


def arity(cls: Any) -> int:
    """Number of top-level slots of ``cls``."""
    return describe(cls).arity


def field_names(cls: Any) -> tuple[str, ...]:
    """Slot names of ``cls`` in declaration order."""
    return describe(cls).names


def clear_cache() -> None:
    """Forget every cached descriptor."""
    _CACHE.clear()


def _is_group_candidate(tp: Any) -> bool:
    if not isinstance(tp, type) or tp.__module__ in _NON_GROUP_MODULES:
        return False
    return not issubclass(
        tp, (ctypes._SimpleCData, ctypes._Pointer, ctypes._CFuncPtr, ctypes.Array)
    )


def _field_spec(owner: type, index: int, name: str, tp: Any, flattened: bool) -> FieldSpec:
    try:
        return FieldSpec(name, tp, index, slot_kind(tp))
    except SchemaError:
        if not _is_group_candidate(tp):
            raise SchemaError(
                f"{owner.__qualname__}.{name}: {tp!r} is not a pointer, function prototype, "
                f"address type, or nested schema"
            ) from None
    return FieldSpec(name, tp, index, SlotKind.GROUP, group=describe(tp), flattened=flattened)


def _in_progress() -> set[type]:
    active = getattr(_LOCAL, "in_progress", None)
    if active is None:
        active = _LOCAL.in_progress = set()
    return active
