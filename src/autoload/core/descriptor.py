"""
Frozen schema descriptors produced by the introspector.

A SchemaDescriptor is the ordered (name, type) list of one schema type, together
with the slot kind of every entry and the nested descriptor of grouped slots.
Descriptors are computed once per schema type and never mutated.

Notes:
    - Field order equals declaration order; names are unique within one schema.
    - ``arity`` counts top-level slots (a nested group counts once);
      ``flat_arity`` counts leaf slots with every group expanded.
    - Slot kinds follow the ctypes type of the slot: POINTER(T) is ``data``,
      CFUNCTYPE/PYFUNCTYPE prototypes are ``function``, c_void_p/c_char_p/c_wchar_p
      are ``address``, and nested schemas are ``group``.

Examples:
    >>> import ctypes
    >>> from autoload.core.descriptor import slot_kind, SlotKind
    >>> slot_kind(ctypes.POINTER(ctypes.c_float)) is SlotKind.DATA
    True
"""

from __future__ import annotations

import ctypes
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum
from typing import Any, Literal

from .constants import FIELD_CEILING
from .errors import SchemaError, SchemaTooLarge

__all__ = [
    "SlotKind",
    "FieldSpec",
    "SchemaDescriptor",
    "IntrospectionPath",
    "slot_kind",
]

IntrospectionPath = Literal["reflect", "derive"]

# ctypes simple type codes that are themselves addresses.
_ADDRESS_CODES = frozenset({"P", "z", "Z"})


class SlotKind(Enum):
    """
    How a slot's resolved address is reinterpreted.

    Members:
        DATA: ``ctypes.POINTER(T)``; the address is cast to the pointer type.
        FUNCTION: a function prototype; the address is wrapped by the prototype.
        ADDRESS: ``c_void_p``/``c_char_p``/``c_wchar_p``; the raw address is kept.
        GROUP: a nested schema bound recursively.
    """

    DATA = "data"
    FUNCTION = "function"
    ADDRESS = "address"
    GROUP = "group"


def slot_kind(tp: Any) -> SlotKind:
    """
    Classify a ctypes slot type.

    Args:
        tp: Declared slot type.

    Returns:
        SlotKind: Kind for pointer, function pointer, or address types.

    Raises:
        SchemaError: If ``tp`` is not a pointer-like ctypes type. Nested groups are
            classified by the introspector, not here.
    """
    if isinstance(tp, type):
        if issubclass(tp, ctypes._Pointer):
            return SlotKind.DATA
        if issubclass(tp, ctypes._CFuncPtr):
            return SlotKind.FUNCTION
        if issubclass(tp, ctypes._SimpleCData) and getattr(tp, "_type_", None) in _ADDRESS_CODES:
            return SlotKind.ADDRESS
    raise SchemaError(
        f"slot type {tp!r} is not a ctypes pointer, function prototype, or address type"
    )


@dataclass(frozen=True)
class FieldSpec:
    """
    One slot of a schema.

    Attributes:
        name (str): Declared slot name, used verbatim as the exported symbol name.
        type (Any): Declared slot type (ctypes type, or the nested schema class for groups).
        index (int): Zero-based declaration position.
        kind (SlotKind): Reinterpretation kind.
        group (SchemaDescriptor | None): Nested descriptor when ``kind`` is GROUP.
        flattened (bool): The schema constructor takes this group's leaves as separate
            positional arguments instead of one group value (derivation path only).
    """

    name: str
    type: Any
    index: int
    kind: SlotKind
    group: SchemaDescriptor | None = None
    flattened: bool = False

    def __post_init__(self) -> None:
        if (self.kind is SlotKind.GROUP) != (self.group is not None):
            raise SchemaError(f"slot {self.name!r}: group descriptor must be set iff kind is group")


@dataclass(frozen=True)
class SchemaDescriptor:
    """
    Ordered slot layout of one schema type.

    Attributes:
        schema (type): The described schema class.
        fields (tuple[FieldSpec, ...]): Slots in declaration order.
        path (IntrospectionPath): Which introspection path produced the descriptor.

    Raises:
        SchemaTooLarge: If more than FIELD_CEILING slots are declared.
        SchemaError: If names repeat or indices are out of order.

    Examples:
        >>> import ctypes
        >>> from autoload.core.descriptor import FieldSpec, SchemaDescriptor, SlotKind
        >>> pi = FieldSpec("pi", ctypes.POINTER(ctypes.c_float), 0, SlotKind.DATA)
        >>> desc = SchemaDescriptor(object, (pi,), "reflect")
        >>> desc.names, desc.arity
        (('pi',), 1)
    """

    schema: type
    fields: tuple[FieldSpec, ...]
    path: IntrospectionPath

    def __post_init__(self) -> None:
        if len(self.fields) > FIELD_CEILING:
            raise SchemaTooLarge(
                f"{_qualname(self.schema)} declares {len(self.fields)} slots; "
                f"at most {FIELD_CEILING} are supported"
            )
        seen: set[str] = set()
        for position, spec in enumerate(self.fields):
            if spec.index != position:
                raise SchemaError(
                    f"{_qualname(self.schema)}: slot {spec.name!r} has index {spec.index}, "
                    f"expected {position}"
                )
            if spec.name in seen:
                raise SchemaError(f"{_qualname(self.schema)}: duplicate slot name {spec.name!r}")
            seen.add(spec.name)

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(spec.name for spec in self.fields)

    @property
    def arity(self) -> int:
        return len(self.fields)

    @property
    def flat_arity(self) -> int:
        return sum(spec.group.flat_arity if spec.group else 1 for spec in self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    def __iter__(self) -> Iterator[tuple[str, Any]]:
        for spec in self.fields:
            yield spec.name, spec.type

    def field(self, name: str) -> FieldSpec:
        """Return the slot named ``name`` (KeyError if absent)."""
        for spec in self.fields:
            if spec.name == name:
                return spec
        raise KeyError(name)

    def leaves(self, prefix: str = "") -> Iterator[tuple[str, FieldSpec]]:
        """
        Iterate leaf slots with nested groups expanded.

        Args:
            prefix (str): Dotted path prepended to yielded slot paths.

        Yields:
            tuple[str, FieldSpec]: (dotted slot path, leaf FieldSpec) in declaration order.
        """
        for spec in self.fields:
            path = f"{prefix}{spec.name}"
            if spec.group is not None:
                yield from spec.group.leaves(prefix=f"{path}.")
            else:
                yield path, spec


def _qualname(tp: Any) -> str:
    return getattr(tp, "__qualname__", repr(tp))
