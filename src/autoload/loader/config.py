"""
Configuration for the autoload.loader module.

Defines BindSettings, a frozen dataclass carrying runtime configuration for opening
libraries and binding symbols.

Source of truth
- Binding policy semantics live in autoload.loader.library.
- dlopen flag values come from ctypes/os for the running platform.

Import DAG discipline
- Depends only on stdlib and autoload.loader.errors.

Notes
- Precedence: environment > TOML > defaults.
- The default flags match RTLD_NOW | RTLD_LOCAL; Windows ignores them.
"""

from __future__ import annotations

import ctypes
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Literal

try:  # Python 3.11+ stdlib TOML parser
    import tomllib  # type: ignore
except Exception:  # pragma: no cover - environments without tomllib
    tomllib = None  # type: ignore[assignment]

from .errors import LoaderConfigError

BindPolicy = Literal["partial", "strict"]
Visibility = Literal["local", "global"]

POLICIES: frozenset[str] = frozenset({"partial", "strict"})
VISIBILITIES: frozenset[str] = frozenset({"local", "global"})


def _bool(v: Any) -> bool:
    if isinstance(v, bool):
        return v
    if isinstance(v, (int, float)):
        return bool(v)
    if isinstance(v, str):
        return v.strip().lower() in {"1", "true", "t", "yes", "y", "on"}
    return False


def check_policy(value: str) -> BindPolicy:
    """
    Normalize and validate a binding policy name.

    Raises:
        LoaderConfigError: If ``value`` is not "partial" or "strict".
    """
    lo = str(value).strip().lower()
    if lo not in POLICIES:
        raise LoaderConfigError(f"unknown binding policy {value!r}; expected one of {sorted(POLICIES)}")
    return lo  # type: ignore[return-value]


@dataclass(frozen=True)
class BindSettings:
    """
    Runtime settings for the autoload.loader layer.

    Attributes:
        policy (Literal["partial","strict"]): "partial" binds what it can and leaves
            missing slots as None; "strict" raises ModuleOpenError/SymbolMissingError.
        visibility (Literal["local","global"]): Symbol visibility of the opened library
            (RTLD_LOCAL or RTLD_GLOBAL).
        lazy (bool): Resolve function references lazily (RTLD_LAZY) instead of at open
            time (RTLD_NOW).
        log_misses (bool): Log a warning listing unresolved slots after binding.

    Examples:
        >>> from autoload.loader import BindSettings
        >>> BindSettings(policy="strict")  # doctest: +ELLIPSIS
        BindSettings(...)
    """

    policy: BindPolicy = "partial"
    visibility: Visibility = "local"
    lazy: bool = False
    log_misses: bool = True

    def __post_init__(self) -> None:
        check_policy(self.policy)
        if self.visibility not in VISIBILITIES:
            raise LoaderConfigError(
                f"unknown visibility {self.visibility!r}; expected one of {sorted(VISIBILITIES)}"
            )

    def dlopen_mode(self) -> int:
        """Integer flags passed to ctypes.CDLL."""
        mode = ctypes.RTLD_GLOBAL if self.visibility == "global" else ctypes.RTLD_LOCAL
        binding = getattr(os, "RTLD_LAZY" if self.lazy else "RTLD_NOW", 0)
        return mode | binding

    # Configuration loaders (env/TOML) with precedence: env > TOML > defaults.

    @classmethod
    def _apply_mapping(cls, base: BindSettings, cfg: dict[str, Any] | None) -> BindSettings:
        """Apply a loose config mapping onto BindSettings, returning a new instance."""
        if not isinstance(cfg, dict):
            return base

        s = base

        if "policy" in cfg and isinstance(cfg["policy"], str):
            s = replace(s, policy=check_policy(cfg["policy"]))

        if "visibility" in cfg and isinstance(cfg["visibility"], str):
            vis = cfg["visibility"].strip().lower()
            if vis not in VISIBILITIES:
                raise LoaderConfigError(f"unknown visibility {cfg['visibility']!r}")
            s = replace(s, visibility=vis)  # type: ignore[arg-type]

        if "lazy" in cfg:
            s = replace(s, lazy=_bool(cfg["lazy"]))

        if "log_misses" in cfg:
            s = replace(s, log_misses=_bool(cfg["log_misses"]))

        return s

    @classmethod
    def from_env(cls, base: BindSettings | None = None, prefix: str = "AUTOLOAD_") -> BindSettings:
        """
        Build BindSettings from environment variables. Precedence is env > base (if provided) > defaults.

        Recognized variables:
            - AUTOLOAD_POLICY ("partial" | "strict")
            - AUTOLOAD_VISIBILITY ("local" | "global")
            - AUTOLOAD_LAZY (1/0/true/false/yes/no/on/off)
            - AUTOLOAD_LOG_MISSES (1/0/true/false/yes/no/on/off)
        """
        s = base or cls()

        mapping: dict[str, Any] = {}
        for key in ("policy", "visibility", "lazy", "log_misses"):
            v = os.getenv(prefix + key.upper())
            if v:
                mapping[key] = v

        return cls._apply_mapping(s, mapping)

    @classmethod
    def from_toml(cls, path: str | os.PathLike[str] | None = None) -> BindSettings:
        """
        Build BindSettings from a TOML file.

        Search order when `path` is None:
            1) ./autoload.toml (with either top-level [bind] or direct keys)
            2) ./pyproject.toml under [tool.autoload.bind]

        Returns defaults if no file present or tomllib is unavailable.
        """
        s = cls()
        if tomllib is None:
            return s

        def _load_toml(p: Path) -> dict[str, Any] | None:
            try:
                with p.open("rb") as fh:
                    return tomllib.load(fh)  # type: ignore[arg-type]
            except (OSError, tomllib.TOMLDecodeError):
                return None

        cfg: dict[str, Any] | None = None

        cand: list[Path] = []
        if path is not None:
            cand.append(Path(path))
        else:
            cand.append(Path.cwd() / "autoload.toml")
            cand.append(Path.cwd() / "pyproject.toml")

        for p in cand:
            if not p.exists():
                continue
            data = _load_toml(p)
            if not isinstance(data, dict):
                continue
            if p.name == "pyproject.toml":
                tool = data.get("tool", {})
                cfg = tool.get("autoload", {}).get("bind", {}) if isinstance(tool, dict) else None
            elif isinstance(data.get("bind"), dict):
                cfg = data["bind"]
            else:
                cfg = data
            if cfg:
                break

        return cls._apply_mapping(s, cfg)

    @classmethod
    def load(cls, path: str | os.PathLike[str] | None = None) -> BindSettings:
        """
        Load BindSettings applying precedence: environment > TOML > defaults.

        Args:
            path: Optional explicit TOML path. If None, search defaults (autoload.toml, pyproject.toml).

        Returns:
            BindSettings
        """
        s = cls.from_toml(path)
        s = cls.from_env(base=s)
        return s
