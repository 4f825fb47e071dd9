from __future__ import annotations

import ctypes
import os
from pathlib import Path

import pytest

from autoload.loader.config import BindSettings
from autoload.loader.errors import LoaderConfigError


def _write_autoload_toml(tmp: Path, content: str) -> Path:
    p = tmp / "autoload.toml"
    p.write_text(content)
    return p


def test_bind_settings_precedence_env_over_toml(tmp_path: Path, monkeypatch) -> None:
    # Arrange TOML
    _write_autoload_toml(
        tmp_path,
        """
        [bind]
        policy = "partial"
        visibility = "global"
        lazy = true
        """.strip(),
    )
    monkeypatch.chdir(tmp_path)
    # Arrange ENV that should override TOML
    monkeypatch.setenv("AUTOLOAD_POLICY", "strict")
    monkeypatch.setenv("AUTOLOAD_LAZY", "0")

    s = BindSettings.load()

    assert s.policy == "strict"  # env override
    assert s.lazy is False  # env override
    assert s.visibility == "global"  # from TOML


def test_bind_settings_from_toml_when_no_env(tmp_path: Path, monkeypatch) -> None:
    _write_autoload_toml(
        tmp_path,
        """
        [bind]
        policy = "strict"
        log_misses = false
        """.strip(),
    )
    monkeypatch.chdir(tmp_path)

    s = BindSettings.load()

    assert s.policy == "strict"
    assert s.log_misses is False
    assert s.visibility == "local"


def test_bind_settings_from_pyproject_tool_table(tmp_path: Path, monkeypatch) -> None:
    (tmp_path / "pyproject.toml").write_text(
        """
        [project]
        name = "consumer"

        [tool.autoload.bind]
        visibility = "global"
        """.strip()
    )
    monkeypatch.chdir(tmp_path)

    s = BindSettings.load()

    assert s.visibility == "global"
    assert s.policy == "partial"


def test_bind_settings_explicit_path_with_top_level_keys(tmp_path: Path) -> None:
    p = tmp_path / "custom.toml"
    p.write_text('policy = "strict"\nlazy = "yes"\n')

    s = BindSettings.load(p)

    assert s.policy == "strict"
    assert s.lazy is True


def test_bind_settings_defaults_when_no_config(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)

    s = BindSettings.load()

    assert s == BindSettings()
    assert s.policy == "partial"
    assert s.lazy is False
    assert s.log_misses is True


def test_bind_settings_rejects_unknown_values(tmp_path: Path, monkeypatch) -> None:
    with pytest.raises(LoaderConfigError):
        BindSettings(policy="eventually")  # type: ignore[arg-type]
    with pytest.raises(LoaderConfigError):
        BindSettings(visibility="public")  # type: ignore[arg-type]

    monkeypatch.setenv("AUTOLOAD_VISIBILITY", "public")
    with pytest.raises(LoaderConfigError):
        BindSettings.load()


def test_dlopen_mode_combines_visibility_and_binding() -> None:
    now = getattr(os, "RTLD_NOW", 0)
    lazy = getattr(os, "RTLD_LAZY", 0)

    assert BindSettings().dlopen_mode() == ctypes.RTLD_LOCAL | now
    assert BindSettings(visibility="global", lazy=True).dlopen_mode() == ctypes.RTLD_GLOBAL | lazy
