"""Binding against a real shared library compiled from tests/data/testlib.c."""

import ctypes
import os
from collections import namedtuple
from dataclasses import dataclass

import pytest

from autoload import Library, schema
from autoload.loader.errors import ModuleOpenError
from autoload.loader.platform import CtypesLoader


class Point(ctypes.Structure):
    _fields_ = [("x", ctypes.c_int), ("y", ctypes.c_int)]


FloatPtr = ctypes.POINTER(ctypes.c_float)
PrintProto = ctypes.CFUNCTYPE(None, ctypes.c_char_p)
FooProto = ctypes.CFUNCTYPE(Point, ctypes.c_int, ctypes.c_int)
AddProto = ctypes.CFUNCTYPE(ctypes.c_int, ctypes.c_int, ctypes.c_int)


@schema
@dataclass(frozen=True)
class NativeApi:
    pi: FloatPtr
    vptr: ctypes.POINTER(ctypes.c_void_p)
    greeting: ctypes.c_char_p
    print: PrintProto
    foo: FooProto


@schema
@dataclass(frozen=True)
class Partial:
    pi: FloatPtr
    not_in_library: AddProto


Positional = schema(namedtuple("Positional", "add pi", defaults=(AddProto, FloatPtr)))


def test_binds_data_and_functions(testlib_path) -> None:
    with Library(testlib_path, NativeApi) as lib:
        assert lib.valid
        assert lib.report.complete
        assert lib.pi.contents.value == pytest.approx(3.14, rel=1e-6)
        assert lib.vptr.contents.value == 1234
        assert lib.greeting.value == b"hello"
        assert lib.print is not None

        point = lib.foo(24, 40)
        assert (point.x, point.y) == (48, 42)


def test_data_slots_alias_library_storage(testlib_path) -> None:
    with Library(testlib_path, NativeApi) as first, Library(testlib_path, NativeApi) as second:
        first.pi.contents.value = 2.5
        assert second.pi.contents.value == pytest.approx(2.5)
        first.pi.contents.value = 3.14


def test_missing_export_is_none(testlib_path) -> None:
    with Library(testlib_path, Partial) as lib:
        assert lib.valid
        assert lib.not_in_library is None
        assert lib.missing == ["not_in_library"]


def test_positional_schema_binds(testlib_path) -> None:
    with Library(testlib_path, Positional) as lib:
        assert isinstance(lib.symbols, Positional)
        assert lib.add(40, 2) == 42
        assert lib.pi.contents.value == pytest.approx(3.14, rel=1e-6)


def test_nonexistent_library() -> None:
    lib = Library("/nonexistent/libautoload-missing.so", NativeApi)
    assert not lib.valid
    assert lib.symbols == NativeApi(None, None, None, None, None)
    with pytest.raises(ModuleOpenError):
        Library("/nonexistent/libautoload-missing.so", NativeApi, policy="strict")


def _is_loaded(path) -> bool:
    try:
        probe = ctypes.CDLL(str(path), mode=os.RTLD_NOLOAD)
    except OSError:
        return False
    # RTLD_NOLOAD still takes a reference when the library is resident
    CtypesLoader().close(probe)
    return True


@pytest.mark.skipif(not hasattr(os, "RTLD_NOLOAD"), reason="RTLD_NOLOAD unavailable")
def test_repeated_open_close_releases_library(testlib_path) -> None:
    for _ in range(5):
        lib = Library(testlib_path, NativeApi)
        assert lib.valid
        assert _is_loaded(testlib_path)
        moved = lib.move()
        lib.close()
        assert _is_loaded(testlib_path)
        moved.close()
        assert not _is_loaded(testlib_path)
