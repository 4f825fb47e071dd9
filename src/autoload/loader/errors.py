"""
Custom exceptions for the autoload.loader module.

Purpose
- Provide runtime error types for opening libraries and resolving symbols.
- Keep autoload.core as the source of truth for definition-time schema errors
  (see autoload.core.errors).

Source of truth and boundaries
- autoload.core.errors.SchemaError and subclasses are raised while describing schemas.
- autoload.loader raises Loader* errors only under the strict binding policy, from
  Library.validate(), or for invalid settings:
  - ModuleOpenError: the OS loader could not open the library path.
  - SymbolMissingError: declared slot names have no matching export.
  - LoaderConfigError: invalid or unsupported settings value.

Notes
- Under the default partial policy nothing here is raised during construction;
  failures are recorded in the BindingReport instead.
"""

from __future__ import annotations

from collections.abc import Sequence


class LoaderError(Exception):
    """
    Base class for runtime errors in autoload.loader.

    Notes:
        Use this as a catch-all for loader failures, distinct from autoload.core errors.
    """


class ModuleOpenError(LoaderError):
    """
    Raised when a library cannot be opened.

    Attributes:
        path (str): Path passed to the OS loader.
        reason (str | None): OS loader message, when one was captured.
    """

    def __init__(self, path: str, reason: str | None = None) -> None:
        self.path = path
        self.reason = reason
        detail = f": {reason}" if reason else ""
        super().__init__(f"cannot open library {path!r}{detail}")


class SymbolMissingError(LoaderError):
    """
    Raised when declared slots have no matching export.

    Attributes:
        path (str): Library path.
        missing (tuple[str, ...]): Dotted slot paths left unbound.
    """

    def __init__(self, path: str, missing: Sequence[str]) -> None:
        self.path = path
        self.missing = tuple(missing)
        super().__init__(
            f"{len(self.missing)} symbol(s) missing from {path!r}: {', '.join(self.missing)}"
        )


class LoaderConfigError(LoaderError):
    """
    Raised when loader configuration is invalid or unsupported.

    Examples:
        - Unknown binding policy
        - Unknown symbol visibility
    """
