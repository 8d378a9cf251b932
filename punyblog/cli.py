from __future__ import annotations

import argparse
import logging
import os
import sys
import time
from pathlib import Path
from typing import Optional

from .cachebust import DEFAULT_KEY, DEFAULT_TAGS
from .config import SiteConfig, load_config
from .render import RenderError
from .site import build_site
from .utils import parse_bool, parse_int, parse_list


def resolve_path(value: str, base: Path) -> Path:
    path = Path(value).expanduser()
    if not path.is_absolute():
        path = base / path
    return path.resolve()


def config_from_args(args: argparse.Namespace, config: dict) -> SiteConfig:
    config_dir = Path(args.config).resolve().parent
    cwd = Path.cwd()
    workers = args.build_workers
    if workers <= 0:
        workers = os.cpu_count() or 1
    tags = config.get("cachebust_tags")
    if not isinstance(tags, dict) or not tags:
        tags = dict(DEFAULT_TAGS)
    template_vars = config.get("template_vars")
    if not isinstance(template_vars, dict):
        template_vars = {}
    return SiteConfig(
        path_src=resolve_path(args.src, cwd),
        path_dest=resolve_path(args.dest, cwd),
        paths_partials=[resolve_path(item, config_dir) for item in args.partials],
        template_vars=template_vars,
        markdown_exclude=list(args.exclude),
        cachebust=args.cachebust,
        cachebust_key=args.cachebust_key,
        cachebust_tags={str(tag): str(attr) for tag, attr in tags.items()},
        highlight_style=args.highlight_style,
        highlight_css=args.highlight_css,
        clean=args.clean,
        build_workers=max(1, min(workers, 32)),
    )


def build_parser(config: dict, config_path: str) -> argparse.ArgumentParser:
    def cfg_value(key: str, default: object) -> object:
        value = config.get(key)
        return default if value is None else value

    def cfg_str(key: str, default: str) -> str:
        return str(cfg_value(key, default))

    def cfg_bool(key: str, default: bool) -> bool:
        return parse_bool(cfg_value(key, default))

    def cfg_int(key: str, default: int) -> int:
        return parse_int(cfg_value(key, default), default)

    parser = argparse.ArgumentParser(description="Build a static site from a folder of Markdown and assets.")
    parser.add_argument("--config", default=config_path, help="Path to site config file (TOML/YAML/JSON).")
    parser.add_argument("--src", default=cfg_str("src", "src"), help="Source directory.")
    parser.add_argument("--dest", default=cfg_str("dest", "dist"), help="Output directory for the site.")
    parser.add_argument(
        "--partials",
        action="append",
        default=parse_list(config.get("partials")),
        help="Directory searched for templates and partials (repeatable).",
    )
    parser.add_argument(
        "--exclude",
        action="append",
        default=parse_list(config.get("exclude")),
        help="Regex for Markdown files that should not be rendered (repeatable).",
    )
    parser.add_argument(
        "--cachebust",
        action=argparse.BooleanOptionalAction,
        default=cfg_bool("cachebust", True),
        help="Add modification-time query parameters to local asset URLs.",
    )
    parser.add_argument(
        "--cachebust-key",
        default=cfg_str("cachebust_key", DEFAULT_KEY),
        help="Query parameter name used for cache-busting.",
    )
    parser.add_argument(
        "--highlight-style",
        default=cfg_str("highlight_style", "default"),
        help="Pygments style used for the code highlighting stylesheet.",
    )
    parser.add_argument(
        "--highlight-css",
        default=cfg_str("highlight_css", ""),
        help="Write the code highlighting stylesheet to this path inside the output directory.",
    )
    parser.add_argument(
        "--clean",
        action=argparse.BooleanOptionalAction,
        default=cfg_bool("clean", False),
        help="Clean output directory before build.",
    )
    parser.add_argument(
        "--build-workers",
        default=cfg_int("build_workers", 1),
        type=int,
        help="Number of worker threads for rendering (0 = auto).",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every rendered page and missing asset.")
    return parser


def main(argv: Optional[list[str]] = None) -> None:
    pre_parser = argparse.ArgumentParser(add_help=False)
    pre_parser.add_argument(
        "--config",
        default="site.toml",
        help="Path to site config file (TOML/YAML/JSON).",
    )
    pre_args, _ = pre_parser.parse_known_args(argv)
    config = load_config(Path(pre_args.config))

    args = build_parser(config, pre_args.config).parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    site_config = config_from_args(args, config)
    start = time.perf_counter()
    try:
        built = build_site(site_config)
    except RenderError as exc:
        print(f"Error rendering page: {exc}", file=sys.stderr)
        sys.exit(1)
    if not built:
        print("Build failed: invalid configuration.", file=sys.stderr)
        sys.exit(1)
    elapsed = time.perf_counter() - start
    print(f"Build completed in {elapsed:.2f}s.")
    print(f"Site generated in: {site_config.path_dest}")
