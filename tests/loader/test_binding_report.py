import polars as pl
import pytest
from pydantic import ValidationError

from autoload.core.descriptor import SlotKind
from autoload.loader.report import BindingReport, SlotStatus


def _report(**overrides) -> BindingReport:
    fields = {
        "schema_name": "Api",
        "path": "libapi.so",
        "module_loaded": True,
        "slots": [
            SlotStatus(slot="pi", symbol="pi", kind=SlotKind.DATA, address=4096),
            SlotStatus(slot="trig.cos", symbol="cos", kind=SlotKind.FUNCTION, address=8192),
            SlotStatus(slot="trig.sin", symbol="sin", kind=SlotKind.FUNCTION),
        ],
    }
    fields.update(overrides)
    return BindingReport(**fields)


def test_summary_properties() -> None:
    report = _report()

    assert report.bound == ["pi", "trig.cos"]
    assert report.missing == ["trig.sin"]
    assert not report.complete


def test_to_frame_columns_and_nulls() -> None:
    df = _report().to_frame()

    assert df.columns == ["slot", "symbol", "kind", "bound", "address"]
    assert df.schema["address"] == pl.Int64
    assert df["kind"].to_list() == ["data", "function", "function"]
    assert df["bound"].to_list() == [True, True, False]
    assert df["address"].to_list() == [4096, 8192, None]


def test_empty_report_frame_keeps_schema() -> None:
    df = BindingReport(schema_name="Empty", path="x.so", module_loaded=True).to_frame()
    assert df.height == 0
    assert df.schema["bound"] == pl.Boolean


@pytest.mark.parametrize(
    "status",
    [
        {"slot": "trig.cos", "symbol": "trig.cos", "kind": "function"},
        {"slot": "trig", "symbol": "trig", "kind": "group"},
        {"slot": "pi", "symbol": "pi", "kind": "data", "extra": 1},
    ],
)
def test_slot_status_validation(status) -> None:
    with pytest.raises(ValidationError):
        SlotStatus(**status)


def test_report_rejects_duplicate_slots() -> None:
    dup = SlotStatus(slot="pi", symbol="pi", kind=SlotKind.DATA)
    with pytest.raises(ValidationError, match="unique"):
        _report(slots=[dup, dup])


def test_report_rejects_bound_slots_without_module() -> None:
    with pytest.raises(ValidationError, match="failed to load"):
        _report(module_loaded=False)


def test_reports_are_frozen() -> None:
    report = _report()
    with pytest.raises(ValidationError):
        report.path = "other.so"
