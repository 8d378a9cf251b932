from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

import pytest


def write_file(path: Path, content: str = "", mtime_ms: Optional[int] = None) -> int:
    """Create ``path`` (and its folders); returns its mtime in milliseconds."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    if mtime_ms is not None:
        ns = mtime_ms * 1_000_000
        os.utime(path, ns=(ns, ns))
    return path.stat().st_mtime_ns // 1_000_000


@pytest.fixture
def touch(tmp_path):
    def _touch(name: str, content: str = "", mtime_ms: Optional[int] = None) -> int:
        return write_file(tmp_path / name, content, mtime_ms)

    return _touch
