import ctypes

import pytest

from autoload.core.constants import FIELD_CEILING
from autoload.core.descriptor import FieldSpec, SchemaDescriptor, SlotKind, slot_kind
from autoload.core.errors import SchemaError, SchemaTooLarge

FloatPtr = ctypes.POINTER(ctypes.c_float)
AddProto = ctypes.CFUNCTYPE(ctypes.c_int, ctypes.c_int, ctypes.c_int)


@pytest.mark.parametrize(
    "tp,kind",
    [
        (FloatPtr, SlotKind.DATA),
        (ctypes.POINTER(ctypes.c_void_p), SlotKind.DATA),
        (AddProto, SlotKind.FUNCTION),
        (ctypes.PYFUNCTYPE(ctypes.py_object), SlotKind.FUNCTION),
        (ctypes.c_void_p, SlotKind.ADDRESS),
        (ctypes.c_char_p, SlotKind.ADDRESS),
        (ctypes.c_wchar_p, SlotKind.ADDRESS),
    ],
)
def test_slot_kind_classifies_pointer_types(tp, kind) -> None:
    assert slot_kind(tp) is kind


@pytest.mark.parametrize("tp", [ctypes.c_int, ctypes.c_float, int, float, "pi", None])
def test_slot_kind_rejects_non_pointer_types(tp) -> None:
    with pytest.raises(SchemaError, match="not a ctypes pointer"):
        slot_kind(tp)


def _spec(name: str, index: int) -> FieldSpec:
    return FieldSpec(name, FloatPtr, index, SlotKind.DATA)


def test_descriptor_exposes_names_and_pairs_in_order() -> None:
    desc = SchemaDescriptor(object, (_spec("pi", 0), _spec("tau", 1)), "reflect")

    assert desc.names == ("pi", "tau")
    assert desc.arity == desc.flat_arity == len(desc) == 2
    assert list(desc) == [("pi", FloatPtr), ("tau", FloatPtr)]
    assert desc.field("tau").index == 1
    with pytest.raises(KeyError):
        desc.field("missing")


def test_descriptor_rejects_duplicate_names() -> None:
    with pytest.raises(SchemaError, match="duplicate slot name 'pi'"):
        SchemaDescriptor(object, (_spec("pi", 0), _spec("pi", 1)), "reflect")


def test_descriptor_rejects_out_of_order_indices() -> None:
    with pytest.raises(SchemaError, match="expected 0"):
        SchemaDescriptor(object, (_spec("pi", 1),), "reflect")


def test_descriptor_enforces_ceiling() -> None:
    ok = tuple(_spec(f"s{i}", i) for i in range(FIELD_CEILING))
    assert SchemaDescriptor(object, ok, "reflect").arity == FIELD_CEILING

    too_many = tuple(_spec(f"s{i}", i) for i in range(FIELD_CEILING + 1))
    with pytest.raises(SchemaTooLarge):
        SchemaDescriptor(object, too_many, "reflect")


def test_group_spec_requires_nested_descriptor() -> None:
    inner = SchemaDescriptor(object, (_spec("c", 0), _spec("d", 1)), "reflect")
    group = FieldSpec("grp", object, 1, SlotKind.GROUP, group=inner)
    outer = SchemaDescriptor(object, (_spec("a", 0), group), "reflect")

    assert outer.arity == 2
    assert outer.flat_arity == 3
    assert [path for path, _ in outer.leaves()] == ["a", "grp.c", "grp.d"]

    with pytest.raises(SchemaError, match="group descriptor"):
        FieldSpec("grp", object, 0, SlotKind.GROUP)
    with pytest.raises(SchemaError, match="group descriptor"):
        FieldSpec("pi", FloatPtr, 0, SlotKind.DATA, group=inner)
