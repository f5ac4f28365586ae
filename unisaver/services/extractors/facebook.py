import re
from typing import Any, Dict, List

from unisaver.core.config import settings
from unisaver.core.errors import ExtractionError
from unisaver.models.schemas import ExtractionResult
from unisaver.services import fetch
from unisaver.services.extractors.base import PlatformExtractor
from unisaver.services.formats import as_format
from unisaver.services.scrape import all_matches, meta_content, page_title

SOURCE_PATTERNS = (
    r'"hd_src_no_ratelimit":"([^"]+)"',
    r'"sd_src_no_ratelimit":"([^"]+)"',
    r'"browser_native_hd_url":"([^"]+)"',
    r'"browser_native_sd_url":"([^"]+)"',
    r'"playable_url_quality_hd":"([^"]+)"',
    r'"playable_url":"([^"]+)"',
    r'"video_url":"([^"]+)"',
    r'https?://video\.xx\.fbcdn\.net/[^"\'\s]+',
)

# sources embedded in escaped JS blocks
ESCAPED_PATTERNS = (
    r'hd_src\\":\\"(https:[^"]+?)\\"',
    r'sd_src\\":\\"(https:[^"]+?)\\"',
    r'playable_url\\":\\"(https:[^"]+?)\\"',
)

_HD_RE = re.compile(r'hd|1080|720')


def find_sources(html: str) -> List[str]:
    found = all_matches(html, SOURCE_PATTERNS, flags=0)
    decoded = html.replace('\\u0025', '%')
    for url in all_matches(decoded, ESCAPED_PATTERNS, flags=0):
        if url not in found:
            found.append(url)
    found = [u for u in found if re.search(r'fbcdn\.net|facebook\.com', u)]
    # HD first, otherwise page order
    return sorted(found, key=lambda u: not _HD_RE.search(u))


class FacebookExtractor(PlatformExtractor):
    name = "facebook"
    label = "Facebook"
    default_title = "Facebook Video"
    strategies = ("html", "ydl")

    def parse_page(self, html: str) -> ExtractionResult:
        sources = find_sources(html)
        if not sources:
            raise ExtractionError("no direct media found")
        formats = [as_format(u, i, 'Best' if i == 0 else 'Alt') for i, u in enumerate(sources)]
        return self.build_result(
            formats,
            title=page_title(html, suffix=' | Facebook', default=self.default_title),
            thumbnail=meta_content(html, 'og:image'),
        )

    async def _strategy_html(self, url: str) -> ExtractionResult:
        html = await fetch.fetch_page(url, referer=self.referer, cookie=settings.FB_COOKIE_STRING or None)
        return self.parse_page(html)

    def ydl_options(self, url: str) -> Dict[str, Any]:
        return {
            'referer': self.referer,
            'cookiefile': settings.FB_COOKIES_FILE or None,
            'cookie': settings.FB_COOKIE_STRING or None,
        }


extractor = FacebookExtractor()
