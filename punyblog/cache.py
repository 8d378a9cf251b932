from __future__ import annotations

import logging
import os
import stat
import time
from pathlib import Path
from typing import Optional, Union
from urllib.parse import unquote

MISSING_SUFFIX = "-m"

log = logging.getLogger(__name__)


def list_files(root: Path) -> list[Path]:
    if not root.exists():
        return []
    return sorted((path for path in root.rglob("*") if path.is_file()), key=lambda p: p.as_posix())


def now_millis() -> int:
    return time.time_ns() // 1_000_000


def mtime_millis(path: Union[str, Path]) -> Optional[int]:
    """Modification time of a regular file in whole milliseconds, or None when absent."""
    try:
        info = os.stat(path)
    except (FileNotFoundError, NotADirectoryError):
        return None
    except (OSError, ValueError) as exc:
        # ValueError: embedded null byte from a decoded %00.
        log.debug("Cannot stat %s: %s", path, exc)
        return None
    if not stat.S_ISREG(info.st_mode):
        return None
    return info.st_mtime_ns // 1_000_000


def resolve_asset(base_path: Union[str, Path], filename: str) -> Path:
    # Root-relative references resolve against the base path as well.
    relative = unquote(filename).lstrip("/")
    return Path(base_path, relative)


def timestamp(base_path: Union[str, Path], filename: str) -> str:
    """Cache-bust token for ``filename`` relative to ``base_path``.

    Existing files give their mtime in milliseconds. Missing files give the
    current time with ``MISSING_SUFFIX`` appended, e.g. ``1654646722102-m``.
    """
    path = resolve_asset(base_path, filename)
    millis = mtime_millis(path)
    if millis is None:
        log.debug("Asset not found, marking as missing: %s", path)
        return f"{now_millis()}{MISSING_SUFFIX}"
    return str(millis)


class TimestampCache:
    """Memoizes tokens per (base_path, filename) for one rewrite call."""

    def __init__(self) -> None:
        self._tokens: dict[tuple[str, str], str] = {}

    def __call__(self, base_path: Union[str, Path], filename: str) -> str:
        key = (str(base_path), filename)
        token = self._tokens.get(key)
        if token is None:
            token = timestamp(base_path, filename)
            self._tokens[key] = token
        return token

    def __len__(self) -> int:
        return len(self._tokens)
