"""Shared fixtures for the omni_archiver tests."""

import pathlib
from typing import Dict, Optional

import pytest


def _snapshot(root: pathlib.Path) -> Dict[str, Optional[bytes]]:
    """Map each path below root (directories with a trailing slash) to its content."""
    result = {}
    for fn in root.rglob("*"):
        name = fn.relative_to(root).as_posix()
        if fn.is_dir():
            result[name + "/"] = None
        else:
            result[name] = fn.read_bytes()
    return result


@pytest.fixture
def snapshot():
    return _snapshot


@pytest.fixture
def source_tree(tmp_path) -> pathlib.Path:
    root = tmp_path / "tree"
    (root / "sub" / "deeper").mkdir(parents=True)
    (root / "empty").mkdir()
    (root / "a.txt").write_bytes(b"a")
    (root / "sub" / "b.txt").write_bytes(b"b" * 1000)
    (root / "sub" / "deeper" / "c.bin").write_bytes(bytes(range(256)) * 1024)
    (root / "sub" / "deeper" / "zero.bin").write_bytes(b"")
    return root


@pytest.fixture(params=["tar", "zip"])
def archiver_name(request) -> str:
    return request.param
