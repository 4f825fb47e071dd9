"""
Derivation path: recover the slot layout of a schema that declares no field metadata.

Derived schemas are opaque positional records: classes that can be constructed
positionally and whose default-constructed instance carries each slot's type
(a ctypes type, a NULL ctypes instance, or a nested record for a group). Typical
examples are ``collections.namedtuple(..., defaults=...)`` and plain classes with a
defaulted positional ``__init__``.

Steps
1. Arity detection: probe the constructor with universal Filler values of
   increasing count; the largest accepted count is the positional count. A
   constructor may take a nested group's members flat, in which case the count
   overshoots the slot count; each such group is measured separately and its
   overcount (leaves consumed - 1) subtracted.
2. Name extraction: build a dummy from index-tagged fillers, take its repr, and
   slice each slot name between a start marker and an end marker. Marker pairs
   depend on the repr family (keyword, mapping, attribute style).
3. Field projection: decompose the default instance by position (tuples) or by
   extracted name (everything else) to read each slot's type.

Notes
- Every failure here is a SchemaError subclass raised while describing the schema.
- Nested tags (inside a group's own repr) are only used to measure the group.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from .constants import FIELD_CEILING, FILLER_TAG
from .errors import SchemaError, SchemaTooLarge, UnsupportedLayout

__all__ = [
    "Filler",
    "MarkerFamily",
    "MARKER_FAMILIES",
    "DerivedSlot",
    "positional_arity",
    "derive_fields",
]

_OPENERS = "([{<"
_CLOSERS = ")]}>"
_TAG_RE = re.compile(re.escape(FILLER_TAG).replace(re.escape("{index}"), r"(\d+)"))
_SCAN_RE = re.compile(_TAG_RE.pattern + r"|[\(\[\{<\)\]\}>]")


class Filler:
    """
    Universal filler: stands in for any constructor argument while probing.

    Attributes:
        index (int): Position tag rendered by repr; -1 for untagged fillers.
    """

    __slots__ = ("index",)

    def __init__(self, index: int = -1) -> None:
        self.index = index

    def __repr__(self) -> str:
        return FILLER_TAG.format(index=self.index)


@dataclass(frozen=True)
class MarkerFamily:
    """
    Start/end marker pair locating a slot name in a repr.

    Attributes:
        name (str): Family label used in error messages.
        starts (tuple[str, ...]): Text immediately preceding a slot name.
        separator (str): Text between a slot name and its value; the end marker
            of slot i is ``separator + repr(Filler(i))``.
    """

    name: str
    starts: tuple[str, ...]
    separator: str

    def slice_name(self, text: str, end: int) -> str | None:
        """Return the identifier ending at ``end`` (exclusive), or None."""
        begin = -1
        for marker in self.starts:
            pos = text.rfind(marker, 0, end)
            if pos >= 0:
                begin = max(begin, pos + len(marker))
        if begin < 0:
            return None
        name = text[begin:end]
        return name if name.isidentifier() else None

    def name_for_tag(self, text: str, index: int) -> str | None:
        end = text.find(self.separator + FILLER_TAG.format(index=index))
        if end < 0:
            return None
        return self.slice_name(text, end)

    def name_before(self, text: str, opener: int) -> str | None:
        """Name of the slot whose value starts with a nested record at ``opener``."""
        end = text.rfind(self.separator, 0, opener)
        if end < 0:
            return None
        return self.slice_name(text, end)


# Name(a=..., b=...): dataclass, namedtuple, SimpleNamespace, attrs
KEYWORD = MarkerFamily("keyword", ("(", ", "), "=")
# {'a': ..., 'b': ...}
MAPPING = MarkerFamily("mapping", ("{'", ", '"), "': ")
# <Name a=... b=...>
ATTRIBUTE = MarkerFamily("attribute", (" ",), "=")

MARKER_FAMILIES: tuple[MarkerFamily, ...] = (KEYWORD, MAPPING, ATTRIBUTE)


@dataclass(frozen=True)
class DerivedSlot:
    """One slot recovered by the derivation path."""

    name: str
    type: Any
    flattened: bool = False


def _construct(schema: type, count: int, tagged: bool = False) -> Any:
    return schema(*[Filler(i if tagged else -1) for i in range(count)])


def _accepts(schema: type, count: int) -> bool:
    try:
        _construct(schema, count)
    except TypeError:
        return False
    except Exception as exc:
        raise SchemaError(
            f"{schema.__qualname__} rejected {count} positional placeholder value(s): {exc!r}"
        ) from exc
    return True


def positional_arity(schema: type, ceiling: int = FIELD_CEILING) -> int:
    """
    Largest number of positional fillers the schema constructor accepts.

    Args:
        schema (type): Schema class.
        ceiling (int): Highest supported count.

    Returns:
        int: Positional count (may exceed the slot count when groups are taken flat).

    Raises:
        SchemaTooLarge: If the constructor still accepts ``ceiling + 1`` fillers.
        SchemaError: If no filler count is accepted.
    """
    accepted = [count for count in range(ceiling + 2) if _accepts(schema, count)]
    if not accepted:
        raise SchemaError(f"{schema.__qualname__} cannot be constructed positionally")
    if accepted[-1] > ceiling:
        raise SchemaTooLarge(
            f"{schema.__qualname__} accepts more than {ceiling} positional slots"
        )
    return accepted[-1]


def _scan(text: str) -> dict[int, tuple[int, int | None]]:
    """Map tag index -> (bracket depth, position of the enclosing depth-2 opener)."""
    out: dict[int, tuple[int, int | None]] = {}
    stack: list[int] = []
    for match in _SCAN_RE.finditer(text):
        if match.group(1) is not None:
            index = int(match.group(1))
            if index in out:
                raise UnsupportedLayout(f"slot #{index} appears more than once in repr {text!r}")
            out[index] = (len(stack), stack[1] if len(stack) > 1 else None)
        elif match.group(0) in _OPENERS:
            stack.append(match.start())
        elif stack:
            stack.pop()
    return out


def _layout(text: str, count: int, family: MarkerFamily) -> list[tuple[str, int | None]] | None:
    """
    Top-level (slot name, group opener) pairs read from a tagged repr, or None.

    Consecutive tags under the same depth-2 opener collapse into one group slot.
    """
    found = _scan(text)
    slots: list[tuple[str, int | None]] = []
    for index in range(count):
        if index not in found:
            return None
        depth, opener = found[index]
        if depth <= 1:
            name = family.name_for_tag(text, index)
            if name is None:
                return None
            slots.append((name, None))
        elif not slots or slots[-1][1] != opener:
            name = family.name_before(text, opener)
            if name is None:
                return None
            slots.append((name, opener))
    return slots


def _group_sizes(text: str, count: int) -> dict[int, int]:
    sizes: dict[int, int] = {}
    for index, (depth, opener) in _scan(text).items():
        if index < count and depth > 1 and opener is not None:
            sizes[opener] = sizes.get(opener, 0) + 1
    return sizes


def _project(instance: Any, names: list[str]) -> tuple[Any, ...]:
    if isinstance(instance, tuple):
        values = tuple(instance)
        if len(values) != len(names):
            raise SchemaError(
                f"{type(instance).__qualname__} unpacks into {len(values)} values, "
                f"expected {len(names)}"
            )
        return values
    try:
        return tuple(getattr(instance, name) for name in names)
    except AttributeError as exc:
        raise SchemaError(f"{type(instance).__qualname__}: {exc}") from exc


def _slot_type(schema: type, name: str, value: Any) -> Any:
    if value is None or isinstance(value, Filler):
        raise SchemaError(
            f"{schema.__qualname__}.{name}: default value must carry the slot type"
        )
    if isinstance(value, type):
        return value
    return type(value)


def derive_fields(
    schema: type,
    *,
    measure: Callable[[Any], Any],
    ceiling: int = FIELD_CEILING,
) -> list[DerivedSlot]:
    """
    Derive the ordered slots of an opaque positional record.

    Args:
        schema (type): Schema class without declared field metadata.
        measure (Callable): Describes a nested group type; must return an object with
            ``flat_arity`` (a SchemaDescriptor).
        ceiling (int): Highest supported positional count.

    Returns:
        list[DerivedSlot]: Slots in declaration order.

    Raises:
        SchemaTooLarge: Constructor accepts more than ``ceiling`` positional values.
        UnsupportedLayout: The dummy repr matches no marker family.
        SchemaError: Not positionally constructible, not default-constructible,
            defaults without types, or inconsistent group sizes.

    Examples:
        >>> import ctypes
        >>> from collections import namedtuple
        >>> Api = namedtuple("Api", "pi", defaults=(ctypes.POINTER(ctypes.c_float),))
        >>> [slot.name for slot in derive_fields(Api, measure=lambda tp: None)]
        ['pi']
    """
    count = positional_arity(schema, ceiling)
    if count == 0:
        return []

    try:
        text = repr(_construct(schema, count, tagged=True))
    except Exception as exc:
        raise SchemaError(f"cannot render a tagged {schema.__qualname__}: {exc!r}") from exc
    layout = None
    for family in MARKER_FAMILIES:
        layout = _layout(text, count, family)
        if layout is not None:
            break
    if layout is None:
        raise UnsupportedLayout(
            f"cannot recover slot names of {schema.__qualname__} from repr {text!r}; "
            f"supported styles: {', '.join(f.name for f in MARKER_FAMILIES)}"
        )

    # flat-style count minus the extra positions each flattened group consumed
    sizes = _group_sizes(text, count)
    arity = count - sum(size - 1 for size in sizes.values())
    if arity != len(layout):
        raise SchemaError(
            f"{schema.__qualname__}: {count} positional values map to {len(layout)} slots, "
            f"expected {arity}"
        )
    names = [name for name, _ in layout]
    if len(set(names)) != len(names):
        raise SchemaError(f"{schema.__qualname__}: duplicate slot names in {names}")

    try:
        default = schema()
    except Exception as exc:
        raise SchemaError(
            f"{schema.__qualname__} must be default-constructible with typed defaults"
        ) from exc

    out: list[DerivedSlot] = []
    for (name, opener), value in zip(layout, _project(default, names)):
        tp = _slot_type(schema, name, value)
        if opener is not None:
            measured = measure(tp).flat_arity
            if measured != sizes[opener]:
                raise SchemaError(
                    f"{schema.__qualname__}.{name}: group takes {sizes[opener]} positional "
                    f"values but {tp.__qualname__} has {measured} slots"
                )
        out.append(DerivedSlot(name, tp, flattened=opener is not None))
    return out
