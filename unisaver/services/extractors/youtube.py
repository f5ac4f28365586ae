from typing import Any, Dict, List

from unisaver.core.config import settings
from unisaver.core.errors import ExtractionError
from unisaver.models.schemas import ExtractionResult, MediaFormat, MediaType
from unisaver.services import fetch
from unisaver.services.extractors.base import PlatformExtractor
from unisaver.services.formats import quality_to_number

VIDFLY_HEADERS = {
    'accept': '*/*',
    'content-type': 'application/json',
    'x-app-name': 'vidfly-web',
    'x-app-version': '1.0.0',
    'Referer': 'https://vidfly.ai/',
}


def vidfly_formats(items: List[Dict[str, Any]]) -> List[MediaFormat]:
    """Vidfly items are typed 'video', 'audio', 'video-only' or 'audio-only'."""
    formats = []
    for index, item in enumerate(i for i in items if i and i.get('url')):
        kind = item.get('type') or 'video'
        audio_only = kind in ('audio', 'audio-only')
        video_only = kind == 'video-only'
        ext = item.get('ext') or item.get('extension') or ('mp3' if audio_only else 'mp4')
        quality = item.get('label') or item.get('quality') or 'unknown'
        formats.append(MediaFormat(
            itag=str(index),
            quality=str(quality),
            url=item['url'],
            mime_type=f"{'audio' if audio_only else 'video'}/{ext}",
            has_audio=not video_only,
            has_video=not audio_only,
            container=ext,
            height=quality_to_number(quality) if not audio_only else None,
            audio_bitrate=128 if audio_only else None,
            video_codec='none' if audio_only else 'h264',
            audio_codec='none' if video_only else 'aac',
        ))
    return formats


class YouTubeExtractor(PlatformExtractor):
    name = "youtube"
    label = "YouTube"
    default_title = "YouTube Video"
    strategies = ("vidfly", "ydl")

    async def _strategy_vidfly(self, url: str) -> ExtractionResult:
        payload = await fetch.fetch_json('GET', settings.VIDFLY_API_URL, params={'url': url},
                                         headers=VIDFLY_HEADERS, timeout=25)
        data = (payload or {}).get('data') or {}
        if not isinstance(data.get('items'), list) or not data.get('title'):
            raise ExtractionError("Invalid or empty response from YouTube downloader API")

        formats = vidfly_formats(data['items'])
        if not formats:
            raise ExtractionError("No valid download URL found")

        # highest muxed video first; video-only streams can't play on their own
        muxed = sorted((f for f in formats if f.has_video and f.has_audio),
                       key=lambda f: f.height or 0, reverse=True)
        best = muxed[0] if muxed else formats[0]
        return ExtractionResult(
            title=data['title'],
            thumbnail=data.get('cover') or "",
            duration=data.get('duration'),
            media_type=MediaType.VIDEO,
            formats=formats,
            direct_url=best.url,
            quality=best.quality,
            source=self.name,
        )

    def ydl_options(self, url: str) -> Dict[str, Any]:
        return {'referer': self.referer, 'format': 'best[ext=mp4]/best'}


extractor = YouTubeExtractor()
