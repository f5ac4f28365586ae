from typing import Any, Dict, List, Tuple
from urllib.parse import urljoin

from unisaver.core.config import settings
from unisaver.core.errors import ExtractionError
from unisaver.models.schemas import ExtractionResult
from unisaver.services import fetch
from unisaver.services.extractors.base import PlatformExtractor
from unisaver.services.formats import as_format

DEFAULT_EXT = {'Audio': 'mp3', 'Image': 'jpg'}


def tikwm_sources(data: Dict[str, Any], base: str = "https://www.tikwm.com/") -> List[Tuple[str, str]]:
    candidates = [(data.get('play'), 'No Watermark'), (data.get('hdplay'), 'HD'), (data.get('wmplay'), 'Watermark')]
    candidates.append((data.get('music') or (data.get('music_info') or {}).get('play'), 'Audio'))
    # photo posts carry a list of images instead of a video
    candidates.extend((image, 'Image') for image in data.get('images') or [])

    sources = []
    for url, label in candidates:
        if url:
            # tikwm sometimes answers with site-relative paths
            sources.append((urljoin(base, url), label))
    return sources


class TikTokExtractor(PlatformExtractor):
    name = "tiktok"
    label = "TikTok"
    default_title = "TikTok Video"
    strategies = ("tikwm", "ydl")

    async def _strategy_tikwm(self, url: str) -> ExtractionResult:
        payload = await fetch.fetch_json(
            'POST', settings.TIKWM_API_URL,
            data={'url': url, 'hd': 1},
            headers={
                'User-Agent': settings.USER_AGENT,
                'Accept': 'application/json',
                'Referer': 'https://www.tikwm.com/',
            },
        )
        if not payload or payload.get('code') != 0 or not payload.get('data'):
            raise ExtractionError(f"TikWM API returned no data: {(payload or {}).get('msg')}")

        data = payload['data']
        sources = tikwm_sources(data, base=settings.TIKWM_API_URL)
        if not sources:
            raise ExtractionError("library returned no media")

        formats = [as_format(u, i, label, default_ext=DEFAULT_EXT.get(label, 'mp4'))
                   for i, (u, label) in enumerate(sources)]
        return self.build_result(
            formats,
            title=data.get('title'),
            thumbnail=data.get('cover') or data.get('origin_cover'),
            duration=data.get('duration'),
        )


extractor = TikTokExtractor()
