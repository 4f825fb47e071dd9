from __future__ import annotations

import argparse
import importlib
import logging
import sys

import polars as pl

from .core.descriptor import SchemaDescriptor
from .core.errors import SchemaError
from .core.introspect import describe
from .loader.config import BindSettings
from .loader.errors import LoaderError
from .loader.library import Library


def _resolve(target: str) -> type:
    """Import ``package.module:Schema`` and return the schema class.

    Args:
        target: Dotted module path and attribute separated by a colon.
    """
    module_name, sep, attr = target.partition(":")
    if not sep or not module_name or not attr:
        raise SystemExit(f"Expected MODULE:SCHEMA, got {target!r}")
    try:
        obj: object = importlib.import_module(module_name)
    except ImportError as exc:
        raise SystemExit(f"Cannot import {module_name!r}: {exc}") from exc
    for part in attr.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError as exc:
            raise SystemExit(f"{module_name!r} has no attribute {attr!r}") from exc
    if not isinstance(obj, type):
        raise SystemExit(f"{target!r} is not a class")
    return obj


def descriptor_frame(descriptor: SchemaDescriptor) -> pl.DataFrame:
    """Leaf slots of a descriptor as a table (slot, kind, type, flattened)."""
    rows = list(descriptor.leaves())
    return pl.DataFrame(
        {
            "slot": [path for path, _ in rows],
            "kind": [spec.kind.value for _, spec in rows],
            "type": [getattr(spec.type, "__name__", repr(spec.type)) for _, spec in rows],
        },
        schema={"slot": pl.Utf8, "kind": pl.Utf8, "type": pl.Utf8},
    )


def _print_frame(df: pl.DataFrame) -> None:
    with pl.Config(tbl_rows=-1, fmt_str_lengths=80):
        print(df)


def _cmd_describe(argv: list[str]) -> int:
    p = argparse.ArgumentParser(prog="describe", description="Print the slot layout of a schema.")
    p.add_argument("schema", type=str, help="Schema class as MODULE:SCHEMA.")
    args = p.parse_args(argv)

    cls = _resolve(args.schema)
    try:
        descriptor = describe(cls)
    except SchemaError as exc:
        print(f"[ERROR] {exc}", file=sys.stderr)
        return 1
    print(
        f"[INFO] {cls.__qualname__}: {descriptor.arity} slot(s), "
        f"{descriptor.flat_arity} leaf slot(s), path={descriptor.path}"
    )
    _print_frame(descriptor_frame(descriptor))
    return 0


def _cmd_bind(argv: list[str]) -> int:
    p = argparse.ArgumentParser(
        prog="bind",
        description="Open a library, bind a schema against it, and print the binding report.",
    )
    p.add_argument("library", type=str, help="Path to the shared library.")
    p.add_argument("schema", type=str, help="Schema class as MODULE:SCHEMA.")
    p.add_argument("--strict", action="store_true", help="Fail when any slot is unbound.")
    p.add_argument("--config", type=str, default=None, help="Explicit TOML settings path.")
    args = p.parse_args(argv)

    cls = _resolve(args.schema)
    settings = BindSettings.load(args.config)
    try:
        lib = Library(args.library, cls, settings=settings, policy="partial")
    except SchemaError as exc:
        print(f"[ERROR] {exc}", file=sys.stderr)
        return 1

    with lib:
        report = lib.report
        _print_frame(report.to_frame())
        if not report.module_loaded:
            print(f"[ERROR] cannot open {args.library}: {report.open_error}", file=sys.stderr)
            return 1
        print(f"[INFO] bound {len(report.bound)}/{len(report.slots)} slot(s) from {args.library}")
        if args.strict or settings.policy == "strict":
            try:
                lib.validate()
            except LoaderError as exc:
                print(f"[ERROR] {exc}", file=sys.stderr)
                return 1
    return 0


def build_argparser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="autoload", description="Shared-library schema binding utilities.")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    sub = p.add_subparsers(dest="cmd", required=True)

    sub.add_parser("describe")
    sub.add_parser("bind")
    return p


def main(argv: list[str] | None = None) -> None:
    argv = list(sys.argv[1:] if argv is None else argv)
    if argv and argv[0] in ("-v", "--verbose"):
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
        argv = argv[1:]
    if not argv:
        build_argparser().print_help()
        return
    cmd, rest = argv[0], argv[1:]
    if cmd == "describe":
        code = _cmd_describe(rest)
    elif cmd == "bind":
        code = _cmd_bind(rest)
    else:
        print(f"Unknown command: {cmd}", file=sys.stderr)
        code = 2
    raise SystemExit(code)


if __name__ == "__main__":
    main()
