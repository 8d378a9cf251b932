from __future__ import annotations

import json
import logging
import sys
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from .cachebust import DEFAULT_KEY, DEFAULT_TAGS, CachebustOptions

log = logging.getLogger(__name__)


def load_config(path: Path) -> dict:
    if not path.exists():
        return {}
    suffix = path.suffix.lower()
    text = path.read_text(encoding="utf-8")
    if suffix == ".toml":
        try:
            data = tomllib.loads(text)
        except tomllib.TOMLDecodeError as exc:
            print(f"Invalid TOML in config file {path}: {exc}", file=sys.stderr)
            sys.exit(1)
        return data
    if suffix in {".yml", ".yaml"}:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            print(f"Invalid YAML in config file {path}: {exc}", file=sys.stderr)
            sys.exit(1)
        if data is None:
            return {}
        if not isinstance(data, dict):
            print(f"YAML config must be a mapping: {path}", file=sys.stderr)
            sys.exit(1)
        return data
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        print(f"Invalid JSON in config file {path}: {exc}", file=sys.stderr)
        sys.exit(1)
    if not isinstance(data, dict):
        print(f"JSON config must be an object: {path}", file=sys.stderr)
        sys.exit(1)
    return data


@dataclass
class SiteConfig:
    path_src: Optional[Path] = None
    path_dest: Optional[Path] = None
    paths_partials: list[Path] = field(default_factory=list)
    template_vars: dict = field(default_factory=dict)
    markdown_exclude: list[str] = field(default_factory=list)
    cachebust: bool = True
    cachebust_key: str = DEFAULT_KEY
    cachebust_tags: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_TAGS))
    highlight_style: str = "default"
    highlight_css: str = ""
    clean: bool = False
    build_workers: int = 1

    def cachebust_options(self, path: Path) -> CachebustOptions:
        return CachebustOptions(path=path, key=self.cachebust_key, tags=dict(self.cachebust_tags))


def validate_config(config: SiteConfig) -> bool:
    """Source must be an existing absolute folder; destination absolute and creatable."""
    if config.path_src is None:
        log.error("Config missing path_src")
        return False
    if config.path_dest is None:
        log.error("Config missing path_dest")
        return False
    if not config.path_src.is_absolute():
        log.error("path_src must be an absolute path, got: %s", config.path_src)
        return False
    if not config.path_dest.is_absolute():
        log.error("path_dest must be an absolute path, got: %s", config.path_dest)
        return False
    if not config.path_src.is_dir():
        log.error("path_src doesn't exist: %s", config.path_src)
        return False
    if not config.cachebust_key:
        log.error("cachebust_key must not be empty")
        return False
    try:
        config.path_dest.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        log.error("Cannot create path_dest %s: %s", config.path_dest, exc)
        return False
    return True
