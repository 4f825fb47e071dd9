"""
Symbol binder: resolve every slot of a SchemaDescriptor and assemble a schema instance.

Responsibilities
- Look up each slot name verbatim in declaration order (nested groups recurse,
  looking up their own slot names without any prefix).
- Reinterpret resolved addresses according to the slot kind.
- Construct the schema instance the way its family expects (keyword, pydantic
  model_construct, ctypes field assignment, positional, or plain attributes).

Notes
- Lookups are sequential and independent; there are no retries and no validation
  pass here. An unresolved name leaves its slot as None.
- ``null_instance`` builds the all-None instance held by moved-from handles.
"""

from __future__ import annotations

import ctypes
import dataclasses
import logging
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel

from autoload.core.descriptor import FieldSpec, SchemaDescriptor, SlotKind
from autoload.core.errors import SchemaError

from .platform import Module, PlatformLoader
from .report import SlotStatus

logger = logging.getLogger(__name__)

__all__ = [
    "bind",
    "null_instance",
    "reinterpret",
]

Resolver = Callable[[str], "int | None"]


def reinterpret(address: int | None, spec: FieldSpec) -> Any:
    """
    Turn a resolved address into the slot's declared type.

    Args:
        address (int | None): Symbol address; None for an unresolved symbol.
        spec (FieldSpec): Leaf slot.

    Returns:
        Any: Pointer instance, function pointer, address object, or None.

    Examples:
        >>> import ctypes
        >>> from autoload.core.descriptor import FieldSpec, SlotKind
        >>> value = ctypes.c_float(3.5)
        >>> spec = FieldSpec("v", ctypes.POINTER(ctypes.c_float), 0, SlotKind.DATA)
        >>> reinterpret(ctypes.addressof(value), spec).contents.value
        3.5
    """
    if address is None:
        return None
    if spec.kind is SlotKind.DATA:
        return ctypes.cast(address, spec.type)
    if spec.kind is SlotKind.FUNCTION:
        return spec.type(address)
    if spec.kind is SlotKind.ADDRESS:
        if spec.type._type_ == "P":
            return spec.type(address)
        return ctypes.cast(address, spec.type)
    raise SchemaError(f"slot {spec.name!r} of kind {spec.kind.value} has no address form")


def bind(
    descriptor: SchemaDescriptor, module: Module | None, loader: PlatformLoader
) -> tuple[Any, list[SlotStatus]]:
    """
    Resolve every slot of ``descriptor`` against ``module``.

    Args:
        descriptor (SchemaDescriptor): Schema layout.
        module (CDLL | None): Open module, or None for a module that failed to open.
        loader (PlatformLoader): Provides lookup.

    Returns:
        tuple[Any, list[SlotStatus]]: The assembled schema instance and per-leaf outcomes.
    """
    statuses: list[SlotStatus] = []
    instance, _ = _bind(descriptor, lambda name: loader.lookup(module, name), "", statuses)
    logger.debug(
        "bound %s: %d/%d slots resolved",
        descriptor.schema.__qualname__,
        sum(s.bound for s in statuses),
        len(statuses),
    )
    return instance, statuses


def null_instance(descriptor: SchemaDescriptor) -> Any:
    """Schema instance with every leaf slot set to None."""
    instance, _ = _bind(descriptor, lambda name: None, "", [])
    return instance


def _bind(
    descriptor: SchemaDescriptor,
    resolve: Resolver,
    prefix: str,
    statuses: list[SlotStatus],
) -> tuple[Any, list[Any]]:
    values: list[Any] = []
    leaves: list[list[Any]] = []
    for spec in descriptor.fields:
        if spec.group is not None:
            value, group_leaves = _bind(spec.group, resolve, f"{prefix}{spec.name}.", statuses)
            values.append(value)
            leaves.append(group_leaves)
            continue
        address = resolve(spec.name)
        statuses.append(
            SlotStatus(slot=f"{prefix}{spec.name}", symbol=spec.name, kind=spec.kind, address=address)
        )
        value = reinterpret(address, spec)
        values.append(value)
        leaves.append([value])
    flat = [leaf for slot in leaves for leaf in slot]
    return _assemble(descriptor, values, leaves), flat


def _assemble(descriptor: SchemaDescriptor, values: list[Any], leaves: list[list[Any]]) -> Any:
    cls = descriptor.schema
    by_name = dict(zip(descriptor.names, values))

    if descriptor.path == "derive":
        args: list[Any] = []
        for spec, value, slot_leaves in zip(descriptor.fields, values, leaves):
            if spec.flattened:
                args.extend(slot_leaves)
            else:
                args.append(value)
        return cls(*args)

    if issubclass(cls, (ctypes.Structure, ctypes.Union)):
        instance = cls()
        for spec, value in zip(descriptor.fields, values):
            if value is None:
                continue
            if spec.kind is SlotKind.ADDRESS:
                value = ctypes.cast(value, ctypes.c_void_p).value
            setattr(instance, spec.name, value)
        return instance

    if issubclass(cls, BaseModel):
        return cls.model_construct(**by_name)

    if issubclass(cls, tuple) or (
        dataclasses.is_dataclass(cls) and cls.__dataclass_params__.init
    ):
        return cls(**by_name)

    instance = cls.__new__(cls)
    for name, value in by_name.items():
        object.__setattr__(instance, name, value)
    return instance
