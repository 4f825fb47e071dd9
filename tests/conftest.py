from __future__ import annotations

import ctypes
import shutil
import subprocess
import sys
from pathlib import Path

import pytest

DATA_DIR = Path(__file__).parent / "data"

AddProto = ctypes.CFUNCTYPE(ctypes.c_int, ctypes.c_int, ctypes.c_int)


class FakeModule:
    def __init__(self, path: str) -> None:
        self.path = path

    def __repr__(self) -> str:
        return f"<FakeModule {self.path}>"


class FakeLoader:
    """In-process PlatformLoader that hands out addresses of live ctypes objects."""

    def __init__(self, exports: dict[str, int], openable: bool = True) -> None:
        self.exports = exports
        self.openable = openable
        self.last_error: str | None = None
        self.opened: list[FakeModule] = []
        self.closed: list[FakeModule] = []
        self.lookups: list[str] = []

    def open(self, path: str, mode: int = 0) -> FakeModule | None:
        if not self.openable:
            self.last_error = f"{path}: cannot open shared object file"
            return None
        module = FakeModule(path)
        self.opened.append(module)
        return module

    def close(self, module: FakeModule | None) -> None:
        if module is None:
            return
        assert module not in self.closed, f"double release of {module!r}"
        self.closed.append(module)

    def lookup(self, module: FakeModule | None, name: str) -> int | None:
        self.lookups.append(name)
        if module is None:
            return None
        return self.exports.get(name)


@pytest.fixture
def native_objects():
    """Live ctypes objects whose addresses stand in for library exports."""
    pi = ctypes.c_float(3.14)
    counter = ctypes.c_int(7)
    add = AddProto(lambda a, b: a + b)
    return {"pi": pi, "counter": counter, "add": add}


@pytest.fixture
def fake_loader(native_objects) -> FakeLoader:
    exports = {
        "pi": ctypes.addressof(native_objects["pi"]),
        "counter": ctypes.addressof(native_objects["counter"]),
        "add": ctypes.cast(native_objects["add"], ctypes.c_void_p).value,
    }
    return FakeLoader(exports)


@pytest.fixture
def broken_loader() -> FakeLoader:
    return FakeLoader({}, openable=False)


@pytest.fixture
def make_loader():
    return FakeLoader


@pytest.fixture(autouse=True)
def _isolate_settings(monkeypatch, tmp_path):
    # BindSettings.load() reads ./autoload.toml, ./pyproject.toml and AUTOLOAD_* env
    monkeypatch.chdir(tmp_path)
    for key in ("POLICY", "VISIBILITY", "LAZY", "LOG_MISSES"):
        monkeypatch.delenv(f"AUTOLOAD_{key}", raising=False)


@pytest.fixture(scope="session")
def testlib_path(tmp_path_factory) -> Path:
    """Compile tests/data/testlib.c into a shared library (skips without a C compiler)."""
    if sys.platform == "win32":
        pytest.skip("test library build is POSIX-only")
    cc = shutil.which("cc") or shutil.which("gcc") or shutil.which("clang")
    if cc is None:
        pytest.skip("no C compiler available")
    suffix = ".dylib" if sys.platform == "darwin" else ".so"
    out = tmp_path_factory.mktemp("native") / f"libtestlib{suffix}"
    result = subprocess.run(
        [cc, "-shared", "-fPIC", "-o", str(out), str(DATA_DIR / "testlib.c")],
        capture_output=True,
        text=True,
    )
    if result.returncode != 0:
        pytest.skip(f"cannot build test library: {result.stderr.strip()}")
    return out
