from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional, Union

import markdown
from jinja2 import Environment, FileSystemLoader, TemplateError
from pygments.formatters import HtmlFormatter
from pygments.util import ClassNotFound

from .content import FrontMatterError, extract_title, normalize_list_spacing, parse_front_matter

MARKDOWN_EXTENSIONS = ["fenced_code", "tables", "codehilite"]
HIGHLIGHT_CLASS = "codehilite"


class RenderError(RuntimeError):
    pass


def highlight_stylesheet(style: str = "default") -> str:
    try:
        formatter = HtmlFormatter(style=style)
    except ClassNotFound as exc:
        raise RenderError(f"Unknown highlight style: {style}") from exc
    return formatter.get_style_defs(f".{HIGHLIGHT_CLASS}")


def markdown_to_html(text: str) -> str:
    md = markdown.Markdown(
        extensions=MARKDOWN_EXTENSIONS,
        extension_configs={"codehilite": {"guess_lang": False, "css_class": HIGHLIGHT_CLASS}},
    )
    return md.convert(normalize_list_spacing(text))


class Renderer:
    """Markdown to HTML, then through Jinja2 for variables, includes and layouts.

    Template variables come from ``template_vars`` overlaid with the page's
    front matter. Templates are looked up in the page's own directory first,
    then in ``partials``. A ``layout`` front matter key renders the page inside
    that template as ``content``.
    """

    def __init__(
        self,
        partials: Iterable[Union[str, Path]] = (),
        template_vars: Optional[dict] = None,
    ) -> None:
        self.partials = [Path(path) for path in partials]
        self.template_vars = dict(template_vars or {})

    def environment(self, local_partials: Optional[Union[str, Path]] = None) -> Environment:
        search_path = []
        if local_partials is not None:
            search_path.append(str(local_partials))
        search_path.extend(str(path) for path in self.partials)
        return Environment(loader=FileSystemLoader(search_path), keep_trailing_newline=True)

    def render(
        self,
        text: Optional[str] = None,
        local_partials: Optional[Union[str, Path]] = None,
        source: str = "<string>",
    ) -> str:
        if not text:
            return ""
        try:
            meta, body = parse_front_matter(text)
        except FrontMatterError as exc:
            raise RenderError(f"{source}: {exc}") from exc

        context = {**self.template_vars, **meta}
        context.setdefault("title", extract_title(meta, body))
        html = markdown_to_html(body.strip())

        env = self.environment(local_partials)
        try:
            html = env.from_string(html).render(context)
            layout = meta.get("layout")
            if layout:
                html = env.get_template(str(layout)).render({**context, "content": html})
        except TemplateError as exc:
            raise RenderError(f"{source}: {exc}") from exc
        return html
