"""
Definition-time exception types raised while describing a schema.

Provides typed exceptions for introspection failures:
- SchemaError for unsupported slot types, duplicate names, and inconsistent layouts.
- SchemaTooLarge when a schema declares more slots than FIELD_CEILING.
- UnsupportedLayout when the derivation path cannot recognise a schema's repr.

Notes:
    - These errors are raised by ``autoload.core.introspect.describe`` (and the
      ``@schema`` decorator), never while binding symbols.
    - Runtime loader failures live in ``autoload.loader.errors``.

Examples:
    >>> from autoload.core.errors import SchemaError, SchemaTooLarge
    >>> issubclass(SchemaTooLarge, SchemaError)
    True
"""

from __future__ import annotations

__all__ = [
    "SchemaError",
    "SchemaTooLarge",
    "UnsupportedLayout",
]


class SchemaError(ValueError):
    """Schema cannot be used as a binding layout (slot types, names, or shape)."""


class SchemaTooLarge(SchemaError):
    """Schema declares more slots than the supported ceiling."""


class UnsupportedLayout(SchemaError):
    """Schema repr matches no known marker family, so slot names cannot be recovered."""
