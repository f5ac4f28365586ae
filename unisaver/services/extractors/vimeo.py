import json
import re
from typing import Any, Dict, List, Optional

from unisaver.core.errors import ExtractionError
from unisaver.models.schemas import ExtractionResult
from unisaver.services import fetch
from unisaver.services.extractors.base import PlatformExtractor
from unisaver.services.formats import as_format
from unisaver.services.scrape import meta_content, page_title

CONFIG_PATTERNS = (
    r'window\.playerConfig\s*=\s*({.+?})\s*(?:;|</script>)',
    r'var\s+config\s*=\s*({[\s\S]*?});',
)

_UNQUOTED_KEY_RE = re.compile(r'([{,]\s*)([A-Za-z0-9_]+)\s*:')


def load_config(raw: str) -> Optional[Dict[str, Any]]:
    try:
        return json.loads(raw)
    except ValueError:
        pass
    # inline JS objects sometimes leave keys unquoted
    try:
        return json.loads(_UNQUOTED_KEY_RE.sub(r'\1"\2":', raw))
    except ValueError:
        return None


def progressive_sources(config: Dict[str, Any]) -> List[Dict[str, Any]]:
    for path in (('request', 'files', 'progressive'), ('video', 'play', 'progressive')):
        node: Any = config
        for key in path:
            node = node.get(key) if isinstance(node, dict) else None
        if isinstance(node, list) and node:
            return [s for s in node if isinstance(s, dict) and s.get('url')]
    return []


class VimeoExtractor(PlatformExtractor):
    name = "vimeo"
    label = "Vimeo"
    default_title = "Vimeo Video"
    strategies = ("html", "ydl")
    ydl_prefer = "any"

    def parse_page(self, html: str) -> ExtractionResult:
        for pattern in CONFIG_PATTERNS:
            match = re.search(pattern, html, re.DOTALL)
            config = load_config(match.group(1)) if match else None
            sources = progressive_sources(config) if config else []
            if not sources:
                continue

            sources.sort(key=lambda s: s.get('height') or 0, reverse=True)
            formats = []
            for i, source in enumerate(sources):
                fmt = as_format(source['url'], i, f"{source['height']}p" if source.get('height') else 'Original')
                fmt.height = source.get('height')
                formats.append(fmt)
            return self.build_result(
                formats,
                title=page_title(html, default=self.default_title),
                thumbnail=meta_content(html, 'og:image'),
            )
        raise ExtractionError("no progressive sources")

    async def _strategy_html(self, url: str) -> ExtractionResult:
        return self.parse_page(await fetch.fetch_page(url, referer=self.referer))


extractor = VimeoExtractor()
