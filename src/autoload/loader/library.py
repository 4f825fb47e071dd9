"""
Library handle: owns one opened library and the schema instance bound against it.

Responsibilities
- Open the library, describe the schema (cached per type), and bind every slot at
  construction; the instance is never re-bound afterwards.
- Release the library exactly once: on close(), on context-manager exit, or when the
  handle is garbage collected.
- Transfer ownership with move()/swap(); refuse copies.

Binding policy
- "partial" (default): construction never raises for runtime conditions. A library
  that fails to open yields an invalid handle with an all-None instance; missing
  exports leave their slots None. Both are recorded in ``report``.
- "strict": a failed open raises ModuleOpenError; any missing export closes the
  library and raises SymbolMissingError.

Notes
- Schema problems (SchemaError) are definition-time errors and propagate under both
  policies; decorate schemas with ``@schema`` to surface them at import time.
- ``symbols`` is exposed read-only; attribute access on the handle is delegated to it.
  Handle attributes (path, valid, report, close, ...) take precedence over slots of
  the same name, so ``lib.symbols.<name>`` is the unambiguous access path.
"""

from __future__ import annotations

import logging
import os
import weakref
from typing import Any, Generic, TypeVar

from autoload.core.introspect import describe

from .binder import bind, null_instance
from .config import BindPolicy, BindSettings, check_policy
from .errors import ModuleOpenError, SymbolMissingError
from .platform import Module, PlatformLoader, default_loader
from .report import BindingReport

logger = logging.getLogger(__name__)

__all__ = [
    "HANDLE_ATTRIBUTES",
    "Library",
]

S = TypeVar("S")


class Library(Generic[S]):
    """
    Owning handle over an opened library and its bound schema instance.

    Args:
        path (str | os.PathLike): Platform-native library path; suffixes are the
            caller's responsibility.
        schema (type[S]): Schema class whose slot names are the exports to bind.
        settings (BindSettings | None): Loader settings; defaults to BindSettings.load().
        loader (PlatformLoader | None): Platform loader; defaults to the ctypes loader.
        policy (Literal["partial","strict"] | None): Overrides ``settings.policy``.

    Raises:
        SchemaError: If ``schema`` cannot be described.
        ModuleOpenError: Under the strict policy, if the library does not open.
        SymbolMissingError: Under the strict policy, if any slot is unresolved.

    Examples:
        >>> import ctypes
        >>> from dataclasses import dataclass
        >>> from autoload import Library, schema
        >>> @schema
        ... @dataclass(frozen=True)
        ... class Nothing:
        ...     pi: ctypes.POINTER(ctypes.c_float)
        >>> lib = Library("/nonexistent/libnothing.so", Nothing)
        >>> lib.valid, lib.pi
        (False, None)
    """

    __slots__ = ("_path", "_schema", "_loader", "_module", "_symbols", "_report", "_finalizer", "__weakref__")

    def __init__(
        self,
        path: str | os.PathLike[str],
        schema: type[S],
        *,
        settings: BindSettings | None = None,
        loader: PlatformLoader | None = None,
        policy: BindPolicy | None = None,
    ) -> None:
        settings = settings or BindSettings.load()
        effective = check_policy(policy or settings.policy)
        loader = loader or default_loader()
        path = os.fspath(path)
        descriptor = describe(schema)
        shadowed = sorted(set(descriptor.names) & HANDLE_ATTRIBUTES)
        if shadowed:
            logger.warning(
                "%s: slot(s) %s are shadowed by Library attributes; use .symbols to reach them",
                schema.__qualname__,
                ", ".join(shadowed),
            )

        module = loader.open(path, settings.dlopen_mode())
        open_error = getattr(loader, "last_error", None) if module is None else None
        if module is None and effective == "strict":
            raise ModuleOpenError(path, open_error)

        try:
            symbols, statuses = bind(descriptor, module, loader)
            report = BindingReport(
                schema_name=schema.__qualname__,
                path=path,
                module_loaded=module is not None,
                open_error=open_error,
                slots=statuses,
            )
        except BaseException:
            loader.close(module)
            raise

        if report.missing and module is not None:
            if effective == "strict":
                loader.close(module)
                raise SymbolMissingError(path, report.missing)
            if settings.log_misses:
                logger.warning(
                    "%s: %d symbol(s) missing from %s: %s",
                    schema.__qualname__,
                    len(report.missing),
                    path,
                    ", ".join(report.missing),
                )

        self._init(path, schema, loader, module, symbols, report)

    def _init(
        self,
        path: str,
        schema: type[S],
        loader: PlatformLoader,
        module: Module | None,
        symbols: S,
        report: BindingReport,
    ) -> None:
        object.__setattr__(self, "_path", path)
        object.__setattr__(self, "_schema", schema)
        object.__setattr__(self, "_loader", loader)
        object.__setattr__(self, "_module", module)
        object.__setattr__(self, "_symbols", symbols)
        object.__setattr__(self, "_report", report)
        object.__setattr__(self, "_finalizer", None)
        self._arm()

    def _arm(self) -> None:
        finalizer = None
        if self._module is not None:
            finalizer = weakref.finalize(self, self._loader.close, self._module)
        object.__setattr__(self, "_finalizer", finalizer)

    def _disarm(self) -> None:
        if self._finalizer is not None:
            self._finalizer.detach()
        object.__setattr__(self, "_finalizer", None)

    def _reset(self) -> None:
        report = self._report.model_copy(
            update={
                "module_loaded": False,
                "slots": [s.model_copy(update={"address": None}) for s in self._report.slots],
            }
        )
        object.__setattr__(self, "_module", None)
        object.__setattr__(self, "_symbols", null_instance(describe(self._schema)))
        object.__setattr__(self, "_report", report)

    # Access -----------------------------------------------------------------

    @property
    def symbols(self) -> S:
        """Bound schema instance (read-only)."""
        return self._symbols

    @property
    def module(self) -> Module | None:
        """Underlying module, or None when invalid."""
        return self._module

    @property
    def valid(self) -> bool:
        """True while the handle owns an open library."""
        return self._module is not None

    @property
    def path(self) -> str:
        return self._path

    @property
    def schema(self) -> type[S]:
        return self._schema

    @property
    def report(self) -> BindingReport:
        """Binding outcome recorded at construction."""
        return self._report

    @property
    def missing(self) -> list[str]:
        """Dotted slot paths left unbound at construction."""
        return self._report.missing

    def validate(self) -> Library[S]:
        """
        Post-construction validation pass.

        Returns:
            Library: ``self`` when the library opened and every slot is bound.

        Raises:
            ModuleOpenError: If the library failed to open.
            SymbolMissingError: If any slot is unbound.
        """
        if not self._report.module_loaded:
            raise ModuleOpenError(self._path, self._report.open_error)
        if self._report.missing:
            raise SymbolMissingError(self._path, self._report.missing)
        return self

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        return getattr(self._symbols, name)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"{type(self).__name__} is read-only")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"{type(self).__name__} is read-only")

    # Ownership --------------------------------------------------------------

    def move(self) -> Library[S]:
        """
        Transfer the library, instance and report to a new handle.

        The source is left empty: invalid module and an all-None instance, so
        closing it releases nothing.
        """
        target = Library.__new__(Library)
        self._disarm()
        target._init(self._path, self._schema, self._loader, self._module, self._symbols, self._report)
        self._reset()
        logger.debug("moved handle for %s", self._path)
        return target

    def swap(self, other: Library[Any]) -> None:
        """Exchange the contents (module, instance, report, schema) of two handles."""
        if other is self:
            return
        self._disarm()
        other._disarm()
        mine = (self._path, self._schema, self._loader, self._module, self._symbols, self._report)
        theirs = (other._path, other._schema, other._loader, other._module, other._symbols, other._report)
        self._init(*theirs)
        other._init(*mine)

    def close(self) -> None:
        """Release the library if still owned; later calls are no-ops."""
        finalizer = self._finalizer
        if finalizer is None:
            return
        object.__setattr__(self, "_finalizer", None)
        finalizer()
        self._reset()

    def __enter__(self) -> Library[S]:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def __copy__(self) -> Library[S]:
        raise TypeError("Library handles cannot be copied; use move()")

    def __deepcopy__(self, memo: dict[int, Any]) -> Library[S]:
        raise TypeError("Library handles cannot be copied; use move()")

    def __reduce_ex__(self, protocol: Any) -> Any:
        raise TypeError("Library handles cannot be pickled")

    def __repr__(self) -> str:
        state = "open" if self.valid else "invalid"
        return (
            f"<Library {self._schema.__qualname__} path={self._path!r} {state} "
            f"bound={len(self._report.bound)}/{len(self._report.slots)}>"
        )


# Public handle names that win over same-named slots in attribute access.
HANDLE_ATTRIBUTES: frozenset[str] = frozenset(name for name in dir(Library) if not name.startswith("_"))
