"""
Platform loader: open and close shared libraries and look up symbol addresses.

Responsibilities
- Wrap the OS loader primitives behind a three-call contract (open, close, lookup)
  used by the binder and the library handle.
- Never raise for runtime conditions: a failed open yields None (an invalid module)
  and a missing symbol yields None (a null address).

Notes
- Modules are ctypes.CDLL objects; ``None`` is the invalid module.
- close releases one OS reference (dlclose on POSIX, FreeLibrary on Windows); the OS
  reference-counts libraries process-wide, so callers must close each open exactly once.
- lookup uses item access on the CDLL, which does not cache the result on the object.
"""

from __future__ import annotations

import _ctypes
import ctypes
import logging
import os
import sys
from typing import Protocol

logger = logging.getLogger(__name__)

__all__ = [
    "Module",
    "PlatformLoader",
    "CtypesLoader",
    "DEFAULT_MODE",
    "default_loader",
]

Module = ctypes.CDLL

DEFAULT_MODE: int = ctypes.RTLD_LOCAL | getattr(os, "RTLD_NOW", 0)


class PlatformLoader(Protocol):
    """Contract consumed by the binder and the library handle."""

    last_error: str | None

    def open(self, path: str, mode: int = DEFAULT_MODE) -> Module | None: ...

    def close(self, module: Module | None) -> None: ...

    def lookup(self, module: Module | None, name: str) -> int | None: ...


class CtypesLoader:
    """
    PlatformLoader backed by ctypes.

    Attributes:
        last_error (str | None): OS message of the most recent failed open.

    Examples:
        >>> loader = CtypesLoader()
        >>> loader.open("/nonexistent/libnothing.so") is None
        True
        >>> loader.lookup(None, "anything") is None
        True
    """

    def __init__(self) -> None:
        self.last_error: str | None = None

    def open(self, path: str, mode: int = DEFAULT_MODE) -> Module | None:
        """
        Open a shared library.

        Args:
            path (str): Platform-native library path.
            mode (int): dlopen flags (ignored on Windows).

        Returns:
            CDLL | None: Open module, or None when the OS loader refused the path.
        """
        try:
            module = ctypes.CDLL(os.fspath(path), mode=mode)
        except OSError as exc:
            self.last_error = str(exc)
            logger.warning("failed to open library %s: %s", path, exc)
            return None
        self.last_error = None
        logger.info("opened library %s (handle=%#x)", path, module._handle)
        return module

    def close(self, module: Module | None) -> None:
        """Release one OS reference to ``module``; None is ignored."""
        if module is None:
            return
        if sys.platform == "win32":
            _ctypes.FreeLibrary(module._handle)
        else:
            _ctypes.dlclose(module._handle)
        logger.debug("closed library %s (handle=%#x)", module._name, module._handle)

    def lookup(self, module: Module | None, name: str) -> int | None:
        """
        Resolve an exported symbol.

        Args:
            module (CDLL | None): Open module; None always yields None.
            name (str): Exact export name.

        Returns:
            int | None: Symbol address, or None if the module is invalid or the export is absent.
        """
        if module is None:
            return None
        try:
            symbol = module[name]
        except AttributeError:
            logger.debug("symbol %s not found in %s", name, module._name)
            return None
        address = ctypes.cast(symbol, ctypes.c_void_p).value
        logger.debug("symbol %s resolved in %s at %#x", name, module._name, address or 0)
        return address


_DEFAULT = CtypesLoader()


def default_loader() -> CtypesLoader:
    """Process-wide ctypes loader used when no loader is injected."""
    return _DEFAULT
