"""
Pydantic models describing the outcome of binding one schema against one library.

Responsibilities
- Record, per leaf slot, whether its export was found and at which address.
- Summarize the bind (module loaded, missing slots, completeness).
- Export the per-slot table as a Polars DataFrame for CLIs and notebooks.

Notes
- Slot paths are dotted for nested groups (``math.cos``); the exported symbol name
  is always the last component.
- Reports are frozen; a Library keeps the report produced at construction.
"""

from __future__ import annotations

import polars as pl
from pydantic import BaseModel, ConfigDict, Field, model_validator

from autoload.core.descriptor import SlotKind

__all__ = [
    "SlotStatus",
    "BindingReport",
]


class SlotStatus(BaseModel):
    """
    Binding outcome of one leaf slot.

    Attributes:
        slot (str): Dotted slot path within the schema.
        symbol (str): Export name looked up (last path component).
        kind (SlotKind): Reinterpretation kind of the slot.
        address (int | None): Resolved address, or None when unresolved.

    Examples:
        >>> from autoload.loader.report import SlotStatus
        >>> SlotStatus(slot="pi", symbol="pi", kind="data", address=None).bound
        False
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    slot: str
    symbol: str
    kind: SlotKind
    address: int | None = None

    @property
    def bound(self) -> bool:
        return self.address is not None

    @model_validator(mode="after")
    def _symbol_matches_slot(self) -> SlotStatus:
        if self.slot.rsplit(".", 1)[-1] != self.symbol:
            raise ValueError(f"symbol {self.symbol!r} does not match slot path {self.slot!r}")
        if self.kind is SlotKind.GROUP:
            raise ValueError("group slots are reported through their leaves")
        return self


class BindingReport(BaseModel):
    """
    Outcome of binding a schema against a library.

    Attributes:
        schema_name (str): Qualified name of the schema class.
        path (str): Library path passed to the loader.
        module_loaded (bool): Whether the library opened.
        open_error (str | None): OS loader message when the open failed.
        slots (list[SlotStatus]): Per-leaf outcomes in declaration order.

    Notes:
        A report for a library that failed to open lists every slot as unbound.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    schema_name: str
    path: str
    module_loaded: bool
    open_error: str | None = None
    slots: list[SlotStatus] = Field(default_factory=list)

    @model_validator(mode="after")
    def _unique_slots(self) -> BindingReport:
        paths = [s.slot for s in self.slots]
        if len(set(paths)) != len(paths):
            raise ValueError("slot paths must be unique")
        if not self.module_loaded and any(s.bound for s in self.slots):
            raise ValueError("slots cannot be bound when the module failed to load")
        return self

    @property
    def bound(self) -> list[str]:
        return [s.slot for s in self.slots if s.bound]

    @property
    def missing(self) -> list[str]:
        return [s.slot for s in self.slots if not s.bound]

    @property
    def complete(self) -> bool:
        return self.module_loaded and not self.missing

    def to_frame(self) -> pl.DataFrame:
        """
        Per-slot table.

        Returns:
            pl.DataFrame: Columns slot (str), symbol (str), kind (str), bound (bool),
            address (i64, null when unbound).
        """
        return pl.DataFrame(
            {
                "slot": [s.slot for s in self.slots],
                "symbol": [s.symbol for s in self.slots],
                "kind": [s.kind.value for s in self.slots],
                "bound": [s.bound for s in self.slots],
                "address": [s.address for s in self.slots],
            },
            schema={
                "slot": pl.Utf8,
                "symbol": pl.Utf8,
                "kind": pl.Utf8,
                "bound": pl.Boolean,
                "address": pl.Int64,
            },
        )
