from unisaver.core.errors import ExtractionError
from unisaver.models.schemas import ExtractionResult
from unisaver.services import fetch
from unisaver.services.extractors.base import PlatformExtractor
from unisaver.services.formats import as_format, media_type_of
from unisaver.services.scrape import first_match, meta_content, page_title

VIDEO_PATTERNS = (
    r'<meta\s+property="og:video"\s+content="([^"]+)"',
    r'<meta\s+property="og:video:url"\s+content="([^"]+)"',
    r'"video_url":"([^"]+)"',
    r'"playbackUrl":"([^"]+)"',
    r'"mediaUrl":"([^"]+)"',
    r'"videoUrl":"([^"]+)"',
    r'"url":"([^"]+\.mp4[^"]*)"',
    r'https?://[^\s"\']+\.mp4[^\s"\']*',
)

IMAGE_PATTERNS = (
    r'"display_url":"([^"]+)"',
    r'"image_url":"([^"]+)"',
    r'"thumbnail_url":"([^"]+)"',
)


class ThreadsExtractor(PlatformExtractor):
    name = "threads"
    label = "Threads"
    default_title = "Threads Post"
    strategies = ("html", "ydl")

    def parse_page(self, html: str) -> ExtractionResult:
        thumbnail = meta_content(html, 'og:image')
        media = first_match(html, VIDEO_PATTERNS)
        if not media:
            media = first_match(html, IMAGE_PATTERNS) or thumbnail
        if not media:
            raise ExtractionError("no media found in HTML")

        formats = [as_format(media, 0, default_ext='mp4')]
        if not formats[0].has_video and not formats[0].has_audio:
            thumbnail = thumbnail or media
        return ExtractionResult(
            title=page_title(html, default=self.default_title),
            thumbnail=thumbnail or '',
            media_type=media_type_of(formats),
            formats=formats,
            direct_url=media,
            quality=formats[0].quality,
            source=self.name,
        )

    async def _strategy_html(self, url: str) -> ExtractionResult:
        return self.parse_page(await fetch.fetch_page(url, referer=self.referer))


extractor = ThreadsExtractor()
