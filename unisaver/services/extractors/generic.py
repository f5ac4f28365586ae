from typing import Optional

from unisaver.core.config import settings
from unisaver.core.errors import ExtractionError
from unisaver.models.schemas import ExtractionResult
from unisaver.services import fetch, ytdl
from unisaver.services.extractors.base import PlatformExtractor
from unisaver.services.formats import IMAGE_EXTS, as_format, ext_from, formats_from_ytdl, looks_playable

DIRECT_EXTS = IMAGE_EXTS + ('jpeg', 'bmp', 'mp4', 'webm', 'ogg', 'mov', 'm4v', 'mp3', 'm4a', 'm3u8')


class GenericExtractor(PlatformExtractor):
    """Last resort for hosts without a dedicated chain."""

    name = "generic"
    label = "Generic"
    default_title = "Media"
    strategies = ("direct_file", "ydl", "og", "fallback_node")

    async def _strategy_direct_file(self, url: str) -> Optional[ExtractionResult]:
        path = url.lower().split('?')[0].split('#')[0]
        if not path.endswith(tuple('.' + ext for ext in DIRECT_EXTS)):
            return None
        ext = path.rsplit('.', 1)[-1]
        fmt = as_format(url, 0, 'Original', default_ext=ext)
        return self.build_result(
            [fmt],
            title=f"Direct {ext.upper()} Content",
            thumbnail=url if fmt.is_image else None,
        )

    async def _strategy_ydl(self, url: str) -> ExtractionResult:
        info = await ytdl.extract_info(url)
        formats = formats_from_ytdl(info, prefer='any')

        # one playable stream with video, or an HLS/DASH manifest
        candidates = [
            f for f in formats
            if (f.has_video or f.container in ('hls', 'dash')) and looks_playable(f.url)
        ]
        best = candidates[0] if candidates else (formats[0] if formats else None)
        if best is None:
            raise ExtractionError("yt-dlp returned no usable formats")
        return self.build_result(
            [best],
            title=info.get('title'),
            thumbnail=info.get('thumbnail'),
            duration=info.get('duration'),
        )

    async def _strategy_fallback_node(self, url: str) -> Optional[ExtractionResult]:
        """Ask a public media resolution node, when one is configured."""
        if not settings.COBALT_API_URL:
            return None
        data = await fetch.fetch_json(
            'POST', settings.COBALT_API_URL,
            json={'url': url},
            headers={'Accept': 'application/json', 'Content-Type': 'application/json'},
            timeout=10,
        )
        media_url = (data or {}).get('url') or (data or {}).get('stream')
        if not media_url:
            return None
        fmt = as_format(media_url, 0, 'HD', default_ext=ext_from(data.get('filename') or '', 'mp4'))
        return self.build_result(
            [fmt],
            title=data.get('filename') or "Media Content (Resolved via Fallback)",
            thumbnail=data.get('thumbnail'),
        )


extractor = GenericExtractor()
