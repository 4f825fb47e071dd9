"""
Native-reflection path: read declared slot metadata straight off a schema class.

Responsibilities
- Recognise schema families that declare their fields: ctypes Structure/Union
  (``_fields_``), pydantic models (``model_fields``), dataclasses, and annotated
  classes including ``typing.NamedTuple``.
- Return the ordered (name, type) pairs in a single deterministic pass.

Notes
- ``ClassVar`` annotations are not slots.
- Inherited fields come first, in MRO order, matching how each family lays out
  its own fields.
- Annotations are resolved with ``typing.get_type_hints``; string annotations that
  cannot be evaluated surface as SchemaError.
"""

from __future__ import annotations

import ctypes
import dataclasses
import inspect
import typing
from typing import Any, ClassVar

from pydantic import BaseModel

from .errors import SchemaError

__all__ = [
    "declared_fields",
    "has_declared_fields",
]


def has_declared_fields(schema: Any) -> bool:
    """Return True if the reflection path can describe ``schema``."""
    return _family(schema) is not None


def declared_fields(schema: type) -> list[tuple[str, Any]]:
    """
    Enumerate a schema's declared slots.

    Args:
        schema (type): Schema class with declared field metadata.

    Returns:
        list[tuple[str, Any]]: (name, declared type) pairs in declaration order.

    Raises:
        SchemaError: If the class declares no fields the reflection path understands,
            or if its annotations cannot be resolved.

    Examples:
        >>> import ctypes
        >>> class Pair(ctypes.Structure):
        ...     _fields_ = [("left", ctypes.c_void_p), ("right", ctypes.c_void_p)]
        >>> [name for name, _ in declared_fields(Pair)]
        ['left', 'right']
    """
    family = _family(schema)
    if family == "ctypes":
        return _ctypes_fields(schema)
    if family == "pydantic":
        return [(name, info.annotation) for name, info in schema.model_fields.items()]
    if family == "dataclass":
        hints = _type_hints(schema)
        return [(f.name, hints.get(f.name, f.type)) for f in dataclasses.fields(schema)]
    if family == "annotated":
        hints = _type_hints(schema)
        return [(name, tp) for name, tp in hints.items() if typing.get_origin(tp) is not ClassVar]
    raise SchemaError(f"{schema!r} declares no fields")


def _family(schema: Any) -> str | None:
    if not isinstance(schema, type):
        return None
    if issubclass(schema, (ctypes.Structure, ctypes.Union)):
        return "ctypes"
    if issubclass(schema, BaseModel):
        return "pydantic"
    if dataclasses.is_dataclass(schema):
        return "dataclass"
    if issubclass(schema, (ctypes._SimpleCData, ctypes._Pointer, ctypes._CFuncPtr, ctypes.Array)):
        # pointer and scalar ctypes types are slot types, not schemas
        return None
    if any(inspect.get_annotations(klass) for klass in schema.__mro__ if klass is not object):
        return "annotated"
    return None


def _ctypes_fields(schema: type) -> list[tuple[str, Any]]:
    out: list[tuple[str, Any]] = []
    for klass in reversed(schema.__mro__):
        for entry in klass.__dict__.get("_fields_", ()):
            out.append((entry[0], entry[1]))
    return out


def _type_hints(schema: type) -> dict[str, Any]:
    try:
        return typing.get_type_hints(schema, localns=dict(vars(schema)))
    except Exception as exc:
        raise SchemaError(f"cannot resolve annotations of {schema.__qualname__}: {exc}") from exc
