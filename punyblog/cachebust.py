"""Cache-busting for asset references in generated HTML and CSS.

Markup is matched with regular expressions instead of being parsed, so the
surrounding text is never reformatted. Every local reference gets a query
parameter (``ts`` by default) holding the referenced file's modification time
in milliseconds, e.g. ``href="site.css"`` becomes
``href="site.css?ts=1654646722102"``. Files that cannot be found get the
current time with a ``-m`` suffix. Absolute URLs are never touched.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Callable, Mapping, Optional, Union

from .cache import TimestampCache, timestamp
from .urls import ParsedUrl, is_absolute_url

DEFAULT_KEY = "ts"
DEFAULT_TAGS = {
    "link": "href",
    "img": "src",
    "script": "src",
    "source": "srcset",
}
CSS_IMPORT_RE = re.compile(r"""@import\s+(?:url\(\s*)?(["'])([^"'\r\n]*)\1""", re.IGNORECASE)
CSS_IMPORT_HINT_RE = re.compile(r"@import", re.IGNORECASE)
SRCSET_URL_RE = re.compile(r"[\s,]*([^\s,]\S*)")

Resolver = Callable[[Union[str, Path], str], str]


@dataclass(frozen=True)
class CachebustOptions:
    path: Union[str, Path] = ""
    key: str = DEFAULT_KEY
    tags: Mapping[str, str] = field(default_factory=lambda: dict(DEFAULT_TAGS))


@lru_cache(maxsize=64)
def element_pattern(tag: str, attr: str) -> re.Pattern:
    # [^>] also matches newlines, so tags split across lines are found.
    return re.compile(
        rf'<{re.escape(tag)}(?=[\s/>])[^>]*?\s{re.escape(attr)}="([^"]*)"',
        re.IGNORECASE,
    )


def cachebust_url(
    url: str,
    base_path: Union[str, Path],
    key: str = DEFAULT_KEY,
    resolve: Resolver = timestamp,
) -> str:
    """Return ``url`` with ``key`` set to a fresh token, moved to the last query position."""
    if is_absolute_url(url):
        return url
    parsed = ParsedUrl.parse(url)
    token = resolve(base_path, parsed.path)
    return str(parsed.with_param(key, token))


def cachebust_srcset(
    value: str,
    base_path: Union[str, Path],
    key: str = DEFAULT_KEY,
    resolve: Resolver = timestamp,
) -> str:
    """Cache-bust each image candidate URL in a ``srcset`` value.

    A candidate URL is a run of non-whitespace (commas inside it belong to
    the URL, trailing commas end the candidate). Separators and descriptors
    such as ``2x`` are copied unchanged.
    """
    if not value:
        return cachebust_url(value, base_path, key, resolve)
    out = []
    pos = 0
    while True:
        match = SRCSET_URL_RE.match(value, pos)
        if match is None:
            break
        url = match.group(1).rstrip(",")
        url_end = match.start(1) + len(url)
        out.append(value[pos:match.start(1)])
        out.append(cachebust_url(url, base_path, key, resolve))
        if url_end < match.end(1):
            pos = url_end
            continue
        comma = value.find(",", url_end)
        pos = len(value) if comma == -1 else comma
        out.append(value[url_end:pos])
    out.append(value[pos:])
    return "".join(out)


def rewrite_fragment(
    fragment: str,
    tag: str,
    attr: str,
    base_path: Union[str, Path],
    key: str = DEFAULT_KEY,
    resolve: Resolver = timestamp,
) -> str:
    """Cache-bust the ``attr`` value of the single ``<tag`` element at the start of ``fragment``.

    ``fragment`` is the text matched by the scanner, e.g.
    ``'<link rel="stylesheet" href="myfile.css"'``. It is returned unchanged when
    the attribute cannot be found again or holds an absolute URL.
    """
    match = element_pattern(tag, attr).match(fragment)
    if match is None:
        return fragment
    value = match.group(1)
    if attr.lower() == "srcset":
        new_value = cachebust_srcset(value, base_path, key, resolve)
    else:
        new_value = cachebust_url(value, base_path, key, resolve)
    if new_value == value:
        return fragment
    return f"{fragment[:match.start(1)]}{new_value}{fragment[match.end(1):]}"


def cachebust_html(html: object, options: Optional[CachebustOptions] = None) -> Optional[str]:
    """Rewrite every configured tag/attribute reference in ``html``.

    Returns None when ``html`` is not a string.
    """
    if not isinstance(html, str):
        return None
    options = options or CachebustOptions()
    resolve = TimestampCache()
    for tag, attr in options.tags.items():
        pattern = element_pattern(tag, attr)

        def repl(match: re.Match, tag: str = tag, attr: str = attr) -> str:
            return rewrite_fragment(match.group(0), tag, attr, options.path, options.key, resolve)

        html = pattern.sub(repl, html)
    return html


def cachebust_css(css: object, options: Optional[CachebustOptions] = None) -> Optional[str]:
    """Rewrite quoted ``@import`` references in a stylesheet.

    Returns None when ``css`` is not a string.
    """
    if not isinstance(css, str):
        return None
    if not CSS_IMPORT_HINT_RE.search(css):
        return css
    options = options or CachebustOptions()
    resolve = TimestampCache()

    def repl(match: re.Match) -> str:
        text = match.group(0)
        url = cachebust_url(match.group(2), options.path, options.key, resolve)
        start = match.start(2) - match.start(0)
        end = match.end(2) - match.start(0)
        return f"{text[:start]}{url}{text[end:]}"

    return CSS_IMPORT_RE.sub(repl, css)
