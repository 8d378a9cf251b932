from __future__ import annotations

import logging
import re
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Iterable, Optional

from .cache import list_files
from .cachebust import cachebust_css, cachebust_html
from .config import SiteConfig, validate_config
from .render import Renderer, highlight_stylesheet
from .utils import clean_output_dir, copy_file, match_timestamps, write_text

log = logging.getLogger(__name__)


def is_markdown(path: Path) -> bool:
    return path.suffix.lower() == ".md"


def list_markdown_files(src: Path) -> list[Path]:
    return [path for path in list_files(src) if is_markdown(path)]


def list_static_files(src: Path) -> list[Path]:
    return [path for path in list_files(src) if not is_markdown(path)]


def is_inside(path: Path, folder: Path) -> bool:
    return path.resolve().is_relative_to(folder.resolve())


def should_render(path: Path, exclude: Iterable[str]) -> bool:
    text = str(path)
    return not any(re.search(pattern, text) for pattern in exclude)


def dest_path(config: SiteConfig, src_file: Path, suffix: Optional[str] = None) -> Path:
    dest = config.path_dest / src_file.relative_to(config.path_src)
    if suffix is not None:
        dest = dest.with_suffix(suffix)
    return dest


def render_page(config: SiteConfig, renderer: Renderer, md_file: Path) -> Path:
    text = md_file.read_text(encoding="utf-8")
    # Partials and relative assets are resolved against the page's own folder.
    html = renderer.render(text, local_partials=md_file.parent, source=str(md_file))
    if config.cachebust:
        html = cachebust_html(html, config.cachebust_options(md_file.parent))
    target = dest_path(config, md_file, ".html")
    write_text(target, html)
    log.debug("Rendered %s -> %s", md_file, target)
    return target


def copy_static(config: SiteConfig, files: list[Path]) -> list[tuple[Path, Path]]:
    """Copy assets with their timestamps; returns (source, copy) pairs for stylesheets."""
    stylesheets = []
    for src_file in files:
        target = dest_path(config, src_file)
        copy_file(src_file, target)
        if target.suffix.lower() == ".css":
            stylesheets.append((src_file, target))
    log.info("Copied %d static file(s).", len(files))
    return stylesheets


def cachebust_stylesheets(config: SiteConfig, stylesheets: list[tuple[Path, Path]]) -> int:
    changed = 0
    for src_file, css_file in stylesheets:
        css = css_file.read_text(encoding="utf-8")
        result = cachebust_css(css, config.cachebust_options(css_file.parent))
        if result is not None and result != css:
            css_file.write_text(result, encoding="utf-8")
            # Stylesheets imported by others must keep the source mtime.
            match_timestamps(src_file, css_file)
            changed += 1
    return changed


def build_site(config: SiteConfig) -> bool:
    """Render markdown, copy assets and cache-bust references into ``path_dest``.

    Returns False when the configuration is invalid. Rendering failures raise
    ``RenderError``.
    """
    if not validate_config(config):
        return False
    if config.clean:
        if not clean_output_dir(config.path_dest, config.path_src):
            return False
        config.path_dest.mkdir(parents=True, exist_ok=True)

    renderer = Renderer(config.paths_partials, config.template_vars)
    pages = [
        path
        for path in list_markdown_files(config.path_src)
        if should_render(path, config.markdown_exclude) and not is_inside(path, config.path_dest)
    ]

    workers = max(1, int(config.build_workers or 1))
    if workers <= 1 or len(pages) <= 1:
        for md_file in pages:
            render_page(config, renderer, md_file)
    else:
        with ThreadPoolExecutor(max_workers=min(workers, len(pages))) as executor:
            list(executor.map(lambda md_file: render_page(config, renderer, md_file), pages))
    log.info("Rendered %d page(s).", len(pages))

    static_files = [path for path in list_static_files(config.path_src) if not is_inside(path, config.path_dest)]
    stylesheets = copy_static(config, static_files)
    if config.cachebust:
        changed = cachebust_stylesheets(config, stylesheets)
        if changed:
            log.info("Cache-busted @import rules in %d stylesheet(s).", changed)

    if config.highlight_css:
        write_text(config.path_dest / config.highlight_css, highlight_stylesheet(config.highlight_style))
    return True
