from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Optional

SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]+:")


def is_absolute_url(url: str) -> bool:
    """True when ``url`` stands on its own (scheme or ``//host``), False for local paths."""
    if not isinstance(url, str):
        return False
    url = url.strip()
    if not url:
        return False
    if url.startswith("//"):
        return len(url) > 2 and url[2] != "/"
    # Single letter schemes are Windows drive letters, not URLs.
    return SCHEME_RE.match(url) is not None


@dataclass
class ParsedUrl:
    path: str
    query: dict[str, Optional[str]] = field(default_factory=dict)
    fragment: Optional[str] = None

    @classmethod
    def parse(cls, value: str) -> "ParsedUrl":
        fragment = None
        if "#" in value:
            value, fragment = value.split("#", 1)
        query: dict[str, Optional[str]] = {}
        if "?" in value:
            value, raw_query = value.split("?", 1)
            for part in raw_query.split("&"):
                if not part:
                    continue
                if "=" in part:
                    key, param = part.split("=", 1)
                else:
                    key, param = part, None
                query[key] = param
        return cls(path=value, query=query, fragment=fragment)

    def with_param(self, key: str, value: str) -> "ParsedUrl":
        query = {name: param for name, param in self.query.items() if name != key}
        query[key] = value
        return ParsedUrl(path=self.path, query=query, fragment=self.fragment)

    def query_string(self) -> str:
        parts = []
        for key, value in self.query.items():
            parts.append(key if value is None else f"{key}={value}")
        return "&".join(parts)

    def __str__(self) -> str:
        text = self.path
        query = self.query_string()
        if query:
            text = f"{text}?{query}"
        if self.fragment is not None:
            text = f"{text}#{self.fragment}"
        return text
