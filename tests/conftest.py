from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict

import pytest

import repo_explorer


def build_tree(root: Path, layout: Dict[str, Any]) -> Path:
    """Create files (str/bytes values) and directories (dict values) under root."""
    root.mkdir(parents=True, exist_ok=True)
    for name, value in layout.items():
        path = root / name
        if isinstance(value, dict):
            build_tree(path, value)
        elif isinstance(value, bytes):
            path.write_bytes(value)
        else:
            path.write_text(value, encoding="utf-8")
    return root


@pytest.fixture
def make_tree(tmp_path: Path):
    def _make(layout: Dict[str, Any], name: str = "root") -> Path:
        return build_tree(tmp_path / name, layout)

    return _make


@pytest.fixture
def scenario_tree(make_tree) -> Path:
    """root/{a.txt (5 bytes), b/.hidden (1 byte), b/c.js (10 bytes)}"""
    return make_tree({
        "a.txt": "hello",
        "b": {".hidden": "x", "c.js": "0123456789"},
    })


@pytest.fixture
def deny_listing(monkeypatch):
    """Make listing of directories with the given names fail with EACCES."""

    def _deny(*names: str) -> None:
        real = repo_explorer._list_dir

        def fake(directory: Path):
            if directory.name in names:
                raise PermissionError(13, "Permission denied", str(directory))
            return real(directory)

        monkeypatch.setattr(repo_explorer, "_list_dir", fake)

    return _deny


@pytest.fixture
def undecodable_tree(make_tree) -> Path:
    """root/{ok.txt, bad\\xff.txt}; the second name is not valid UTF-8."""
    root = make_tree({"ok.txt": "fine"})
    raw = os.path.join(os.fsencode(root), b"bad\xff.txt")
    try:
        with open(raw, "wb") as f:
            f.write(b"data")
    except OSError:
        pytest.skip("filesystem rejects non-UTF-8 file names")
    return root
