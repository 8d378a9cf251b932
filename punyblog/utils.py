from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path

log = logging.getLogger(__name__)


def parse_bool(value: object) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "y", "on"}
    return False


def parse_int(value: object, default: int) -> int:
    if value is None:
        return default
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return default


def parse_list(value: object) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, (list, tuple)):
        items = value
    else:
        items = [value]
    return [str(item).strip() for item in items if str(item).strip()]


def write_text(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def match_timestamps(src: Path, dest: Path) -> None:
    stats_src = src.stat()
    stats_dest = dest.stat()
    if stats_src.st_mtime_ns != stats_dest.st_mtime_ns:
        os.utime(dest, ns=(stats_src.st_atime_ns, stats_src.st_mtime_ns))


def copy_file(src: Path, dest: Path) -> None:
    dest.parent.mkdir(parents=True, exist_ok=True)
    shutil.copy2(src, dest)
    match_timestamps(src, dest)


def clean_output_dir(output_dir: Path, source_dir: Path) -> bool:
    if not output_dir.exists():
        return True
    output_resolved = output_dir.resolve()
    source_resolved = source_dir.resolve()
    if output_resolved == source_resolved or source_resolved.is_relative_to(output_resolved):
        log.error("Refusing to clean %s: it contains the source directory.", output_dir)
        return False
    shutil.rmtree(output_dir)
    return True
