"""Shared test fixtures.

Unit tests build workspaces from in-memory descriptors rooted at a fake
``/repo`` path; nothing touches the filesystem.  Tests that need real
manifests (scanner, CLI) write them under ``tmp_path`` via ``write_project``.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest
from loguru import logger

from plexus.workspace.settings import get_settings


@pytest.fixture(autouse=True)
def _isolate_settings_and_logging(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Clear PLEXUS_* env vars and drop loguru sinks added during a test."""
    for key in list(os.environ):
        if key.startswith("PLEXUS_"):
            monkeypatch.delenv(key)
    get_settings.cache_clear()
    yield
    logger.remove()
    get_settings.cache_clear()


@pytest.fixture
def plexus_env(monkeypatch: pytest.MonkeyPatch) -> Callable[[str, str], None]:
    """Set a PLEXUS_* variable for the duration of a test."""

    def _set(key: str, value: str) -> None:
        monkeypatch.setenv(key, value)
        get_settings.cache_clear()

    return _set


# ---------------------------------------------------------------------------
# On-disk workspaces
# ---------------------------------------------------------------------------


def _toml_list(values: list[str]) -> str:
    return "[" + ", ".join(f'"{v}"' for v in values) + "]"


@pytest.fixture
def write_project() -> Callable[..., Path]:
    """Write a ``pyproject.toml`` and return its directory.

    ``path_deps`` maps dependency name -> relative path and ends up in
    ``[tool.uv.sources]``; ``external`` are plain requirement strings.
    """

    def _write(
        directory: Path,
        name: str | None = None,
        *,
        path_deps: dict[str, str] | None = None,
        external: list[str] | None = None,
        workspace: bool = False,
        tool_options: str = "",
    ) -> Path:
        path_deps = path_deps or {}
        dependencies = list(external or []) + list(path_deps)
        lines = []
        if name is not None:
            lines += ["[project]", f'name = "{name}"', f"dependencies = {_toml_list(dependencies)}", ""]
        if path_deps:
            lines.append("[tool.uv.sources]")
            lines += [f'{dep} = {{ path = "{rel}" }}' for dep, rel in path_deps.items()]
            lines.append("")
        if workspace or tool_options:
            lines.append("[tool.plexus]")
            if workspace:
                lines.append("workspace = true")
            if tool_options:
                lines.append(tool_options)
            lines.append("")

        directory.mkdir(parents=True, exist_ok=True)
        (directory / "pyproject.toml").write_text("\n".join(lines), encoding="utf-8")
        return directory

    return _write


@pytest.fixture
def repo(tmp_path: Path, write_project: Callable[..., Path]) -> Path:
    """A small on-disk workspace::

        app -> core -> utils
        app -> web
        tool (isolated, external deps only)
    """
    write_project(tmp_path, "repo", workspace=True)
    write_project(tmp_path / "apps" / "app", "app", path_deps={"core": "../../libs/core", "web": "../../libs/web"})
    write_project(tmp_path / "libs" / "core", "core", path_deps={"utils": "../utils"}, external=["pydantic>=2"])
    write_project(tmp_path / "libs" / "utils", "utils")
    write_project(tmp_path / "libs" / "web", "web", external=["httpx"])
    write_project(tmp_path / "tools" / "tool", "tool", external=["click>=8", "rich"])
    return tmp_path
