"""Regex helpers for pulling media links and metadata out of raw HTML."""

import json
import re
from typing import Any, Iterable, List, Optional

_SCRIPT_RE = r'<script[^>]*type="{kind}"[^>]*>([\s\S]*?)</script>'


def clean_media_url(u: str = "") -> str:
    """Undo the JSON/HTML escaping platforms wrap around embedded URLs."""
    return (str(u)
            .replace('\\u002F', '/')
            .replace('\\u0025', '%')
            .replace('\\u0026', '&')
            .replace('\\/', '/')
            .replace('\\', '')
            .replace('&amp;', '&')
            .strip())


def meta_content(html: str, prop: str) -> Optional[str]:
    """Value of ``<meta property|name=prop content=...>`` in either attribute order."""
    p = re.escape(prop)
    patterns = (
        rf'<meta\s+[^>]*?(?:property|name)=["\']{p}["\'][^>]*?content=["\']([^"\']+)["\']',
        rf'<meta\s+[^>]*?content=["\']([^"\']+)["\'][^>]*?(?:property|name)=["\']{p}["\']',
    )
    for pattern in patterns:
        match = re.search(pattern, html, re.IGNORECASE)
        if match:
            return clean_media_url(match.group(1))
    return None


def page_title(html: str, suffix: str = "", default: str = "Media") -> str:
    match = re.search(r'<title[^>]*>([^<]+)</title>', html, re.IGNORECASE)
    if match and match.group(1).strip():
        title = match.group(1)
        if suffix:
            title = title.replace(suffix, '')
        return title.strip()
    return meta_content(html, 'og:title') or default


def first_match(html: str, patterns: Iterable[str], flags: int = re.IGNORECASE) -> Optional[str]:
    for pattern in patterns:
        match = re.search(pattern, html, flags)
        if match:
            return clean_media_url(match.group(1) if match.groups() else match.group(0))
    return None


def all_matches(html: str, patterns: Iterable[str], flags: int = re.IGNORECASE) -> List[str]:
    """Every match of every pattern, cleaned, in first-seen order without duplicates."""
    found = []
    for pattern in patterns:
        for match in re.finditer(pattern, html, flags):
            url = clean_media_url(match.group(1) if match.groups() else match.group(0))
            if url and url not in found:
                found.append(url)
    return found


def script_json_blocks(html: str, kind: str = "application/ld+json") -> List[Any]:
    blocks = []
    for raw in re.findall(_SCRIPT_RE.format(kind=re.escape(kind)), html, re.IGNORECASE):
        try:
            blocks.append(json.loads(raw))
        except ValueError:
            continue
    return blocks


def walk_strings(obj: Any):
    """Yield every string nested anywhere inside decoded JSON."""
    if isinstance(obj, str):
        yield obj
    elif isinstance(obj, dict):
        for value in obj.values():
            yield from walk_strings(value)
    elif isinstance(obj, list):
        for item in obj:
            yield from walk_strings(item)
