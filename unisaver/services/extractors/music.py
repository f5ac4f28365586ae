import json
import logging
import re
from typing import Any, Dict, Optional

from unisaver.core.errors import ExtractionError
from unisaver.models.schemas import ExtractionResult, MediaType
from unisaver.services import fetch, ytdl
from unisaver.services.detector import PLATFORM_REFERERS, music_platform_of
from unisaver.services.extractors.base import PlatformExtractor
from unisaver.services.formats import formats_from_ytdl
from unisaver.services.scrape import meta_content

logger = logging.getLogger(__name__)

_HYDRATION_RE = re.compile(r'window\.__sc_hydration\s*=\s*(\[.*?\]);', re.DOTALL)
_CLIENT_ID_RE = re.compile(r'client_id[=:]\s*"?([A-Za-z0-9_-]{16,})')


def soundcloud_progressive(html: str) -> Optional[Dict[str, str]]:
    """Progressive transcoding endpoint and client_id from a SoundCloud track page."""
    hydration = _HYDRATION_RE.search(html)
    client_id = _CLIENT_ID_RE.search(html)
    if not hydration or not client_id:
        return None
    try:
        data = json.loads(hydration.group(1))
    except ValueError:
        return None

    for entry in data:
        if not isinstance(entry, dict):
            continue
        media = (entry.get('data') or {}).get('media') or {}
        transcodings = media.get('transcodings') or []
        for transcoding in transcodings:
            if (transcoding.get('format') or {}).get('protocol') == 'progressive' and transcoding.get('url'):
                return {'url': transcoding['url'], 'client_id': client_id.group(1)}
    return None


class MusicExtractor(PlatformExtractor):
    name = "music"
    label = "Music"
    default_title = "Audio"
    strategies = ("soundcloud", "ydl", "embed")
    ydl_prefer = "audio"

    async def extract(self, url: str) -> ExtractionResult:
        if music_platform_of(url) == "unknown":
            raise ExtractionError("Unsupported music platform for this controller")
        return await super().extract(url)

    def _finish(self, result: ExtractionResult, url: str) -> ExtractionResult:
        platform = music_platform_of(url)
        if not result.title or result.title == self.default_title:
            result.title = f"{platform} Audio"
        result.source = platform
        result.media_type = MediaType.AUDIO
        return result

    def ydl_options(self, url: str) -> Dict[str, Any]:
        return {'referer': PLATFORM_REFERERS.get(music_platform_of(url)), 'format': 'bestaudio/best'}

    async def _strategy_soundcloud(self, url: str) -> Optional[ExtractionResult]:
        if music_platform_of(url) != "soundcloud":
            return None
        html = await fetch.fetch_page(url, referer=PLATFORM_REFERERS['soundcloud'])
        progressive = soundcloud_progressive(html)
        if not progressive:
            raise ExtractionError("no progressive transcoding on page")

        resolved = await fetch.fetch_json(
            'GET', progressive['url'],
            params={'client_id': progressive['client_id']},
            headers={'User-Agent': 'Mozilla/5.0', 'Referer': PLATFORM_REFERERS['soundcloud']},
        )
        stream_url = (resolved or {}).get('url')
        if not stream_url:
            raise ExtractionError("progressive stream did not resolve")

        formats = formats_from_ytdl({'url': stream_url, 'ext': 'mp3', 'acodec': 'mp3', 'vcodec': 'none', 'abr': 128},
                                    prefer='audio')
        result = self.build_result(formats, title=meta_content(html, 'og:title'),
                                   thumbnail=meta_content(html, 'og:image'))
        return self._finish(result, url)

    async def _strategy_ydl(self, url: str) -> ExtractionResult:
        info = await ytdl.extract_info(url, **self.ydl_options(url))
        formats = formats_from_ytdl(info, prefer='audio')
        if not formats:
            raise ExtractionError("No audio formats returned")
        best = formats[0]
        result = ExtractionResult(
            title=info.get('title'),
            thumbnail=info.get('thumbnail') or '',
            duration=info.get('duration'),
            formats=formats,
            direct_url=best.url,
            quality=best.quality,
        )
        return self._finish(result, url)

    async def _strategy_embed(self, url: str) -> ExtractionResult:
        # Spotify and friends never expose a stream; hand back something a webview can open
        html = await fetch.fetch_page(url, user_agent='Mozilla/5.0')
        result = ExtractionResult(
            title=meta_content(html, 'og:title'),
            thumbnail=meta_content(html, 'og:image') or '',
            embed_url=url,
            note='Direct download is not provided; streams on this platform are protected.',
        )
        return self._finish(result, url)


extractor = MusicExtractor()
